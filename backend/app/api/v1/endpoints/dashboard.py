"""
Role dashboards
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import func

from app.api.v1.deps import require_roles
from app.db.database import get_db
from app.db.models import (
    Case,
    CaseStatus,
    JailVisit,
    JailVisitStatus,
    Payment,
    User,
    UserRole,
)
from app.utils.helpers import model_to_dict, user_summary

router = APIRouter()

ACTIVE_STATUSES = (CaseStatus.active, CaseStatus.in_progress)


@router.get("/super-admin")
def super_admin_dashboard(
    current_user: User = Depends(require_roles(UserRole.super_admin)),
    db: Session = Depends(get_db)
):
    total_revenue = db.query(func.coalesce(func.sum(Payment.amount), 0)).scalar()
    return {
        "success": True,
        "data": {
            "total_cases": db.query(Case).count(),
            "total_users": db.query(User).count(),
            "total_revenue": float(total_revenue or 0),
            "pending_cases": db.query(Case).filter(Case.status == CaseStatus.pending).count(),
        },
    }


@router.get("/coordinator")
def coordinator_dashboard(
    current_user: User = Depends(require_roles(UserRole.coordinator)),
    db: Session = Depends(get_db)
):
    mine = db.query(Case).filter(Case.coordinator_id == current_user.id)
    return {
        "success": True,
        "data": {
            "my_cases": mine.count(),
            "pending_assignment": mine.filter(Case.lawyer_id.is_(None)).count(),
            "active_cases": mine.filter(Case.status.in_(ACTIVE_STATUSES)).count(),
        },
    }


@router.get("/lawyer")
def lawyer_dashboard(
    current_user: User = Depends(require_roles(UserRole.lawyer)),
    db: Session = Depends(get_db)
):
    assigned = db.query(Case).filter(Case.lawyer_id == current_user.id)
    return {
        "success": True,
        "data": {
            "assigned_cases": assigned.count(),
            "active_cases": assigned.filter(Case.status.in_(ACTIVE_STATUSES)).count(),
        },
    }


@router.get("/counsellor")
def counsellor_dashboard(
    current_user: User = Depends(require_roles(UserRole.counsellor)),
    db: Session = Depends(get_db)
):
    assigned = db.query(Case).filter(Case.counsellor_id == current_user.id)
    pending_visits = (
        db.query(JailVisit)
        .filter(JailVisit.counselor_id == current_user.id, JailVisit.status == JailVisitStatus.pending)
        .count()
    )
    return {
        "success": True,
        "data": {
            "total_cases": assigned.count(),
            "active_cases": assigned.filter(Case.status.in_(ACTIVE_STATUSES)).count(),
            "pending_jail_visits": pending_visits,
        },
    }


@router.get("/client")
def client_dashboard(
    current_user: User = Depends(require_roles(UserRole.client)),
    db: Session = Depends(get_db)
):
    latest = (
        db.query(Case)
        .filter(Case.client_id == current_user.id)
        .order_by(Case.created_at.desc())
        .first()
    )
    total_paid = (
        db.query(func.coalesce(func.sum(Payment.amount), 0))
        .filter(Payment.client_id == current_user.id)
        .scalar()
    )

    case_data = None
    if latest:
        case_data = model_to_dict(latest)
        case_data["lawyer"] = user_summary(latest.lawyer)

    return {
        "success": True,
        "data": {
            "case": case_data,
            "total_paid": float(total_paid or 0),
        },
    }
