"""
Mailing-list subscriptions
"""
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.logger import logger
from app.db.models import Subscription, SubscriptionStatus


def _enum_out(value) -> Optional[str]:
    if value is None:
        return None
    return getattr(value, "value", value)


def _subscription_to_api(sub: Subscription) -> Dict[str, Any]:
    return {
        "id": sub.id,
        "email": sub.email,
        "user_id": str(sub.user_id) if sub.user_id else None,
        "status": _enum_out(sub.status),
        "source": sub.source,
        "created_at": sub.created_at.isoformat() if sub.created_at else None,
        "updated_at": sub.updated_at.isoformat() if sub.updated_at else None,
    }


def subscribe(db: Session, email: str, user_id: Optional[UUID] = None, source: Optional[str] = None) -> Tuple[int, str, Dict[str, Any]]:
    """
    Returns (http status, message, subscription) for new, repeated and
    renewed subscriptions.
    """
    email = email.strip().lower()
    sub = db.query(Subscription).filter(func.lower(Subscription.email) == email).first()

    if sub is None:
        sub = Subscription(email=email, user_id=user_id, source=source, status=SubscriptionStatus.subscribed)
        db.add(sub)
        db.commit()
        db.refresh(sub)
        logger.info(f"New subscription: {email}")
        return 201, "Subscribed", _subscription_to_api(sub)

    if sub.status == SubscriptionStatus.subscribed:
        return 200, "Already subscribed", _subscription_to_api(sub)

    sub.status = SubscriptionStatus.subscribed
    if sub.user_id is None and user_id is not None:
        sub.user_id = user_id
    if not sub.source and source:
        sub.source = source
    db.commit()
    db.refresh(sub)
    logger.info(f"Resubscribed: {email}")
    return 200, "Resubscribed", _subscription_to_api(sub)


def unsubscribe(db: Session, subscription_id: Optional[int] = None, email: Optional[str] = None) -> Dict[str, Any]:
    if subscription_id is None and not email:
        raise HTTPException(status_code=400, detail="Subscription id or email is required")

    query = db.query(Subscription)
    if subscription_id is not None:
        query = query.filter(Subscription.id == subscription_id)
    else:
        query = query.filter(func.lower(Subscription.email) == email.strip().lower())
    sub = query.first()
    if not sub:
        raise HTTPException(status_code=404, detail="Subscription not found")

    sub.status = SubscriptionStatus.unsubscribed
    db.commit()
    db.refresh(sub)
    logger.info(f"Unsubscribed: {sub.email}")
    return _subscription_to_api(sub)


def list_subscriptions(db: Session) -> List[Dict[str, Any]]:
    rows = db.query(Subscription).order_by(Subscription.created_at.desc(), Subscription.id.desc()).all()
    return [_subscription_to_api(s) for s in rows]
