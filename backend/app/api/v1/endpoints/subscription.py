"""
Mailing-list subscription endpoints.

Subscribe / unsubscribe are public; the listing is for the super admin.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.v1.deps import require_super_admin
from app.db.database import get_db
from app.db import schemas
from app.db.models import User
from app.services import subscription_service

router = APIRouter()


@router.post("/subscribe")
def subscribe(body: schemas.SubscribeRequest, db: Session = Depends(get_db)):
    if not body.email:
        return JSONResponse(status_code=400, content={"success": False, "message": "Email is required"})
    status_code, message, subscription = subscription_service.subscribe(db, body.email, body.user_id, body.source)
    return JSONResponse(
        status_code=status_code,
        content={"success": True, "message": message, "data": subscription},
    )


@router.post("/unsubscribe")
def unsubscribe(body: schemas.UnsubscribeRequest, db: Session = Depends(get_db)) -> Dict[str, Any]:
    subscription = subscription_service.unsubscribe(db, body.id, body.email)
    return {"success": True, "message": "Unsubscribed", "data": subscription}


@router.get("/")
def list_subscriptions(
    current_user: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    return {"success": True, "data": subscription_service.list_subscriptions(db)}
