# backend/app/db/seed.py

"""
Database Seeding Script

Creates (or resets) the super admin and the default settings.

    python -m app.db.seed
"""

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.logger import logger
from app.core.security import get_password_hash
from app.db.database import SessionLocal, init_db
from app.db.models import Setting, User, UserRole

# ============================================================================
# Seed Data
# ============================================================================

DEFAULT_SETTINGS = [
    {"key": "firm_name", "value": settings.FIRM_NAME, "category": "general", "description": "Firm display name"},
    {"key": "default_consultation_price", "value": "400.00", "category": "consultations", "description": "Default consultation fee (AED)"},
    {"key": "currency", "value": "AED", "category": "general", "description": "Currency for fees and payments"},
    {"key": "case_update_emails", "value": True, "category": "notifications", "description": "Email clients on case status changes"},
]


def seed_super_admin(db: Session) -> User:
    """Create the super admin, or reset its password and 2FA if it exists"""
    email = settings.SEED_ADMIN_EMAIL.lower()
    admin = db.query(User).filter(User.email == email).first()
    password_hash = get_password_hash(settings.SEED_ADMIN_PASSWORD)

    if admin:
        admin.password_hash = password_hash
        admin.is_active = True
        admin.phone_verified = True
        admin.two_factor_enabled = False
        admin.two_factor_secret = None
        admin.two_factor_confirmed_at = None
        admin.two_factor_failed_attempts = 0
        admin.two_factor_lock_until = None
        logger.info(f"Super admin password reset: {email}")
    else:
        admin = User(
            name="Super Admin",
            email=email,
            password_hash=password_hash,
            phone=settings.SEED_ADMIN_PHONE,
            role=UserRole.super_admin,
            is_active=True,
            phone_verified=True,
        )
        db.add(admin)
        logger.info(f"Super admin created: {email}")

    db.commit()
    db.refresh(admin)
    return admin


def seed_settings(db: Session, updated_by=None) -> int:
    """Insert missing default settings; existing values are left alone"""
    created = 0
    for entry in DEFAULT_SETTINGS:
        if db.query(Setting).filter(Setting.key == entry["key"]).first():
            continue
        db.add(Setting(updated_by=updated_by, **entry))
        created += 1
    db.commit()
    return created


def seed_database() -> None:
    init_db()
    db = SessionLocal()
    try:
        admin = seed_super_admin(db)
        created = seed_settings(db, updated_by=admin.id)
        logger.info(f"Seeded {created} default setting(s)")
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
