"""
Police station directory endpoints
"""
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user, require_super_admin
from app.core.logger import logger
from app.db.database import get_db
from app.db import models, schemas
from app.services.export_service import export_response, import_summary, is_no, parse_import_data, yes_no
from app.utils.helpers import model_to_dict
from app.utils.validators import is_truthy_flag, require_fields, validate_facility_emirate

router = APIRouter()

EXPORT_COLUMNS = ("name", "emirate", "address", "contact_number", "officer_in_charge", "is_active")


def get_station_or_404(db: Session, station_id: UUID) -> models.PoliceStation:
    station = db.query(models.PoliceStation).filter(models.PoliceStation.id == station_id).first()
    if not station:
        raise HTTPException(status_code=404, detail="Police station not found")
    return station


def _station_to_api(station: models.PoliceStation, include_jails: bool = True) -> Dict[str, Any]:
    data = model_to_dict(station)
    if include_jails:
        data["jails"] = [model_to_dict(j) for j in station.jails]
    return data


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_police_station(
    body: schemas.PoliceStationCreate,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    require_fields(
        body.model_dump(),
        ("name", "emirate", "address", "contact_number"),
        "Name, emirate, address and contact number are required"
    )
    station = models.PoliceStation(
        name=body.name.strip(),
        emirate=validate_facility_emirate(body.emirate),
        address=body.address.strip(),
        contact_number=body.contact_number.strip(),
        officer_in_charge=body.officer_in_charge,
        created_by=current_user.id,
    )
    db.add(station)
    db.commit()
    db.refresh(station)
    logger.info(f"Police station created: {station.name} ({station.emirate})")
    return {"success": True, "message": "Police station created", "data": _station_to_api(station)}


@router.get("/")
def list_police_stations(
    emirate: Optional[str] = None,
    search: Optional[str] = None,
    include_inactive: Optional[str] = None,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = db.query(models.PoliceStation)
    if emirate and emirate.lower() != "all":
        query = query.filter(models.PoliceStation.emirate == emirate)
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(
            or_(
                models.PoliceStation.name.ilike(term),
                models.PoliceStation.address.ilike(term),
                models.PoliceStation.officer_in_charge.ilike(term),
            )
        )
    if not is_truthy_flag(include_inactive):
        query = query.filter(models.PoliceStation.is_active.is_(True))

    stations = query.order_by(models.PoliceStation.name).all()
    return {
        "success": True,
        "data": {
            "police_stations": [_station_to_api(s) for s in stations],
            "count": len(stations),
        },
    }


@router.get("/stats/overview")
def police_station_stats(current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    active = models.PoliceStation.is_active.is_(True)
    total = db.query(func.count(models.PoliceStation.id)).filter(active).scalar() or 0
    by_emirate = (
        db.query(models.PoliceStation.emirate, func.count(models.PoliceStation.id))
        .filter(active)
        .group_by(models.PoliceStation.emirate)
        .order_by(models.PoliceStation.emirate)
        .all()
    )
    return {
        "success": True,
        "data": {
            "total": total,
            "by_emirate": [{"emirate": e, "count": c} for e, c in by_emirate],
        },
    }


@router.get("/export")
def export_police_stations(
    format: str = "json",
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    rows = [
        {
            "name": s.name,
            "emirate": s.emirate,
            "address": s.address,
            "contact_number": s.contact_number,
            "officer_in_charge": s.officer_in_charge,
            "is_active": yes_no(s.is_active),
        }
        for s in db.query(models.PoliceStation).order_by(models.PoliceStation.emirate, models.PoliceStation.name).all()
    ]
    return export_response(rows, EXPORT_COLUMNS, format, "police_stations", attachment=True)


@router.post("/import")
def import_police_stations(
    body: schemas.PoliceStationImport,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    rows = parse_import_data(body.data, body.format)
    success, errors = 0, []
    for row in rows:
        if not isinstance(row, dict):
            errors.append({"item": row, "error": "Row must be an object"})
            continue
        name = str(row.get("name") or "").strip()
        if not name or not str(row.get("emirate") or "").strip():
            errors.append({"item": row, "error": "name and emirate are required"})
            continue
        try:
            emirate = validate_facility_emirate(str(row["emirate"]))
        except HTTPException as exc:
            errors.append({"item": row, "error": exc.detail})
            continue

        station = models.PoliceStation(
            name=name,
            emirate=emirate,
            address=str(row.get("address") or "").strip() or "N/A",
            contact_number=str(row.get("contact_number") or "").strip() or "N/A",
            officer_in_charge=row.get("officer_in_charge") or None,
            is_active=not is_no(row["is_active"]) if "is_active" in row else True,
            created_by=current_user.id,
        )
        db.add(station)
        db.commit()
        success += 1

    logger.info(f"Police station import by {current_user.email}: {success} ok, {len(errors)} failed")
    return {"success": True, "data": import_summary(success, errors)}


@router.get("/{station_id}")
def get_police_station(station_id: UUID, current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "data": _station_to_api(get_station_or_404(db, station_id))}


@router.put("/{station_id}")
def update_police_station(
    station_id: UUID,
    body: schemas.PoliceStationUpdate,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    station = get_station_or_404(db, station_id)
    data = body.model_dump(exclude_unset=True)
    if data.get("emirate"):
        data["emirate"] = validate_facility_emirate(data["emirate"])
    for field, value in data.items():
        if value is None and field != "officer_in_charge":
            continue
        setattr(station, field, value.strip() if isinstance(value, str) else value)
    db.commit()
    db.refresh(station)
    return {"success": True, "message": "Police station updated", "data": _station_to_api(station)}


@router.delete("/{station_id}")
def delete_police_station(
    station_id: UUID,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    station = get_station_or_404(db, station_id)
    deleted_jails = len(station.jails)
    db.delete(station)
    db.commit()
    logger.info(f"Police station {station_id} deleted with {deleted_jails} jail(s)")
    return {"success": True, "message": "Police station deleted", "data": {"deleted_jails": deleted_jails}}
