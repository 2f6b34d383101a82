"""
Jail directory endpoints
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user, require_super_admin
from app.api.v1.endpoints.police_stations import get_station_or_404
from app.db.database import get_db
from app.db import models, schemas
from app.utils.helpers import model_to_dict
from app.utils.validators import is_truthy_flag, require_fields

router = APIRouter()


def _get_jail(db: Session, jail_id: UUID) -> models.Jail:
    jail = db.query(models.Jail).filter(models.Jail.id == jail_id).first()
    if not jail:
        raise HTTPException(status_code=404, detail="Jail not found")
    return jail


def _jail_to_api(jail: models.Jail) -> dict:
    data = model_to_dict(jail)
    station = jail.police_station
    data["police_station"] = (
        {"id": station.id, "name": station.name, "emirate": station.emirate} if station else None
    )
    return data


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_jail(
    body: schemas.JailCreate,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    require_fields(
        body.model_dump(),
        ("name", "police_station_id", "jail_type"),
        "Name, police station and jail type are required"
    )
    station = get_station_or_404(db, body.police_station_id)
    jail = models.Jail(
        name=body.name.strip(),
        police_station_id=station.id,
        emirate=station.emirate,
        jail_type=body.jail_type,
        capacity=body.capacity,
        description=body.description,
        created_by=current_user.id,
    )
    db.add(jail)
    db.commit()
    db.refresh(jail)
    return {"success": True, "message": "Jail created", "data": _jail_to_api(jail)}


@router.get("/")
def list_jails(
    emirate: Optional[str] = None,
    police_station_id: Optional[UUID] = None,
    search: Optional[str] = None,
    include_inactive: Optional[str] = None,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = db.query(models.Jail)
    if emirate and emirate.lower() != "all":
        query = query.filter(models.Jail.emirate == emirate)
    if police_station_id:
        query = query.filter(models.Jail.police_station_id == police_station_id)
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(or_(models.Jail.name.ilike(term), models.Jail.description.ilike(term)))
    if not is_truthy_flag(include_inactive):
        query = query.filter(models.Jail.is_active.is_(True))

    jails = query.order_by(models.Jail.name).all()
    return {"success": True, "data": [_jail_to_api(j) for j in jails], "count": len(jails)}


@router.get("/{jail_id}")
def get_jail(jail_id: UUID, current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "data": _jail_to_api(_get_jail(db, jail_id))}


@router.put("/{jail_id}")
def update_jail(
    jail_id: UUID,
    body: schemas.JailUpdate,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    jail = _get_jail(db, jail_id)
    data = body.model_dump(exclude_unset=True)

    station_id = data.pop("police_station_id", None)
    if station_id and station_id != jail.police_station_id:
        station = get_station_or_404(db, station_id)
        jail.police_station_id = station.id
        jail.emirate = station.emirate

    for field, value in data.items():
        if value is None and field not in ("capacity", "description"):
            continue
        setattr(jail, field, value.strip() if isinstance(value, str) else value)
    db.commit()
    db.refresh(jail)
    return {"success": True, "message": "Jail updated", "data": _jail_to_api(jail)}


@router.delete("/{jail_id}")
def delete_jail(
    jail_id: UUID,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    db.delete(_get_jail(db, jail_id))
    db.commit()
    return {"success": True, "message": "Jail deleted"}
