"""
System settings (super admin)
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.v1.deps import require_super_admin
from app.db.database import get_db
from app.db import models, schemas
from app.utils.helpers import model_to_dict

router = APIRouter()


@router.get("/")
def list_settings(current_user: models.User = Depends(require_super_admin), db: Session = Depends(get_db)):
    rows = db.query(models.Setting).order_by(models.Setting.category, models.Setting.key).all()
    return {"success": True, "data": [model_to_dict(s) for s in rows]}


@router.get("/{key}")
def get_setting(key: str, current_user: models.User = Depends(require_super_admin), db: Session = Depends(get_db)):
    setting = db.query(models.Setting).filter(models.Setting.key == key).first()
    if not setting:
        raise HTTPException(status_code=404, detail="Setting not found")
    return {"success": True, "data": model_to_dict(setting)}


@router.put("/{key}")
def upsert_setting(
    key: str,
    body: schemas.SettingUpdate,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    setting = db.query(models.Setting).filter(models.Setting.key == key).first()
    if setting is None:
        setting = models.Setting(key=key)
        db.add(setting)

    setting.value = body.value
    if body.category is not None:
        setting.category = body.category
    if body.description is not None:
        setting.description = body.description
    setting.updated_by = current_user.id
    db.commit()
    db.refresh(setting)
    return {"success": True, "message": "Setting saved", "data": model_to_dict(setting)}
