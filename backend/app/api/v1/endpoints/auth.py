from datetime import datetime, timedelta
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session
import httpx
import jwt

from app.api.v1.deps import get_current_user, require_super_admin
from app.core.constants import PASSWORD_RESET_REQUEST_HOURS
from app.core.logger import logger
from app.core.security import (
    TOKEN_2FA_PENDING,
    TOKEN_REFRESH,
    TOKEN_RESET,
    create_access_token,
    create_reset_token,
    create_two_factor_pending_token,
    decode_token,
    get_password_hash,
    issue_session_tokens,
    verify_password,
)
from app.db.database import get_db
from app.db import models, schemas
from app.db.models import PasswordResetStatus, UserRole
from app.services.email_templates import new_password_email, password_reset_link_email
from app.services.notification_service import notification_service
from app.services.otp_service import OTPError, otp_service
from app.services.two_factor_service import two_factor_service
from app.utils.exceptions import AccountLockedError, ServiceUnavailableError
from app.utils.helpers import (
    client_ip,
    format_phone_number,
    generate_client_number,
    generate_random_password,
    sanitize_user,
)
from app.utils.validators import validate_password

router = APIRouter()

LOCKED_MESSAGE = "Two-factor verification is temporarily locked. Try again later."


def _session_payload(user: models.User) -> dict:
    return {"user": sanitize_user(user), **issue_session_tokens(str(user.id))}


def _record_login(user: models.User, request: Request) -> None:
    user.last_login = datetime.utcnow()
    user.last_login_ip = client_ip(request)


def _user_from_subject(db: Session, payload: dict) -> models.User:
    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        return None
    return db.query(models.User).filter(models.User.id == user_id).first()


# ============================================================================
# Password login + 2FA
# ============================================================================

@router.post("/login")
def login(body: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    """Login endpoint. Email is matched case-insensitively."""
    email = body.email.strip().lower()
    user = db.query(models.User).filter(func.lower(models.User.email) == email).first()

    if not user or not user.is_active or not verify_password(body.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    if two_factor_service.is_locked(user):
        raise AccountLockedError(LOCKED_MESSAGE)

    if user.two_factor_enabled:
        return {
            "success": True,
            "data": {
                "two_factor_required": True,
                "pending_two_factor_token": create_two_factor_pending_token(str(user.id)),
            },
        }

    _record_login(user, request)
    db.commit()
    db.refresh(user)
    logger.info(f"User logged in: {user.email}")
    return {"success": True, "message": "Login successful", "data": _session_payload(user)}


@router.post("/2fa/verify-login")
def verify_two_factor_login(body: schemas.TwoFactorLoginRequest, request: Request, db: Session = Depends(get_db)):
    try:
        payload = decode_token(body.pending_token, expected_type=TOKEN_2FA_PENDING)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired two-factor session")

    user = _user_from_subject(db, payload)
    if not user or not user.is_active or not user.two_factor_enabled:
        raise HTTPException(status_code=401, detail="Invalid or expired two-factor session")

    if two_factor_service.is_locked(user):
        raise AccountLockedError(LOCKED_MESSAGE)

    if not two_factor_service.verify_code(user.two_factor_secret, body.code):
        two_factor_service.register_failure(user)
        db.commit()
        raise HTTPException(status_code=401, detail="Invalid two-factor code")

    two_factor_service.reset_counters(user)
    _record_login(user, request)
    db.commit()
    db.refresh(user)
    return {"success": True, "message": "Login successful", "data": _session_payload(user)}


@router.post("/2fa/setup")
def setup_two_factor(current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    secret = two_factor_service.new_secret()
    current_user.two_factor_secret = secret
    current_user.two_factor_enabled = False
    current_user.two_factor_confirmed_at = None
    two_factor_service.reset_counters(current_user)
    db.commit()
    return {
        "success": True,
        "data": {
            "secret": secret,
            "otpauth_url": two_factor_service.provisioning_uri(current_user, secret),
        },
    }


@router.post("/2fa/confirm")
def confirm_two_factor(
    body: schemas.TwoFactorCodeRequest,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not current_user.two_factor_secret:
        raise HTTPException(status_code=400, detail="Two-factor setup has not been started")
    if not two_factor_service.verify_code(current_user.two_factor_secret, body.code):
        raise HTTPException(status_code=400, detail="Invalid two-factor code")

    current_user.two_factor_enabled = True
    current_user.two_factor_confirmed_at = datetime.utcnow()
    two_factor_service.reset_counters(current_user)
    db.commit()
    return {"success": True, "message": "Two-factor authentication enabled"}


@router.post("/2fa/disable")
def disable_two_factor(
    body: schemas.TwoFactorCodeRequest,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not current_user.two_factor_enabled or not current_user.two_factor_secret:
        raise HTTPException(status_code=400, detail="Two-factor authentication is not enabled")
    if not two_factor_service.verify_code(current_user.two_factor_secret, body.code):
        raise HTTPException(status_code=400, detail="Invalid two-factor code")

    current_user.two_factor_enabled = False
    current_user.two_factor_secret = None
    current_user.two_factor_confirmed_at = None
    two_factor_service.reset_counters(current_user)
    db.commit()
    return {"success": True, "message": "Two-factor authentication disabled"}


# ============================================================================
# Registration
# ============================================================================

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(body: schemas.UserRegister, request: Request, db: Session = Depends(get_db)):
    """Self-service registration; only client accounts."""
    role = body.role or UserRole.client
    if role != UserRole.client:
        raise HTTPException(status_code=403, detail="Only client accounts can self-register")

    email = body.email.strip().lower()
    if db.query(models.User.id).filter(func.lower(models.User.email) == email).first():
        raise HTTPException(status_code=409, detail="Email already registered")

    user = models.User(
        email=email,
        password_hash=get_password_hash(body.password),
        name=body.full_name.strip(),
        phone=format_phone_number(body.phone) or body.phone,
        role=UserRole.client,
        client_number=generate_client_number(db),
        is_active=True,
    )
    db.add(user)
    db.flush()
    _record_login(user, request)
    db.commit()
    db.refresh(user)

    logger.info(f"Client registered: {user.email} ({user.client_number})")
    return {"success": True, "message": "Registration successful", "data": _session_payload(user)}


# ============================================================================
# Phone OTP login
# ============================================================================

@router.post("/otp/request")
def request_otp(body: schemas.OTPRequest, db: Session = Depends(get_db)):
    phone = format_phone_number(body.phone)
    user = db.query(models.User).filter(models.User.phone == phone).first() if phone else None
    if not user:
        raise HTTPException(status_code=404, detail="No account found for this phone number")
    if not user.is_active:
        raise HTTPException(status_code=401, detail="Account is inactive")

    try:
        session = otp_service.start(db, user, phone)
    except (ValueError, httpx.HTTPError) as exc:
        logger.error(f"OTP delivery failed for {phone}: {exc}")
        raise ServiceUnavailableError("Could not send OTP. Please try again later.")

    return {
        "success": True,
        "message": "OTP sent",
        "data": {"session_id": session.id, "expires_in": 600},
    }


@router.post("/otp/verify")
def verify_otp(body: schemas.OTPVerifyRequest, request: Request, db: Session = Depends(get_db)):
    try:
        session = otp_service.verify(db, body.session_id, body.otp)
    except OTPError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    user = db.query(models.User).filter(models.User.id == session.user_id).first()
    if not user or not user.is_active:
        db.commit()
        raise HTTPException(status_code=401, detail="Account is inactive")

    user.phone_verified = True
    _record_login(user, request)
    db.commit()
    db.refresh(user)
    return {"success": True, "message": "Login successful", "data": _session_payload(user)}


# ============================================================================
# Tokens / session
# ============================================================================

@router.post("/refresh")
def refresh_token(body: schemas.RefreshRequest, db: Session = Depends(get_db)):
    try:
        payload = decode_token(body.refresh_token, expected_type=TOKEN_REFRESH)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    user = _user_from_subject(db, payload)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    return {"success": True, "data": {"token": create_access_token({"sub": str(user.id)})}}


@router.post("/logout")
def logout():
    """Logout endpoint (stateless JWT - client deletes token)"""
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me")
def get_current_user_info(current_user: models.User = Depends(get_current_user)):
    """Get current user profile"""
    return {"success": True, "data": sanitize_user(current_user)}


# ============================================================================
# Self-service password reset (emailed link)
# ============================================================================

@router.post("/forgot-password")
def forgot_password(body: schemas.ForgotPasswordRequest, db: Session = Depends(get_db)):
    """
    Request password reset. Always returns success to prevent email enumeration.
    """
    email = body.email.strip().lower()
    user = db.query(models.User).filter(func.lower(models.User.email) == email).first()

    if user and user.is_active:
        subject, html = password_reset_link_email(user.name, create_reset_token(str(user.id)))
        notification_service.try_send_email(user.email, subject, html)
        logger.info(f"Password reset link issued for {user.email}")

    return {
        "success": True,
        "message": "If an account exists for this email, a reset link has been sent.",
    }


@router.post("/reset-password")
def reset_password(body: schemas.ResetPasswordRequest, db: Session = Depends(get_db)):
    try:
        payload = decode_token(body.token, expected_type=TOKEN_RESET)
    except jwt.PyJWTError:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    validate_password(body.new_password)
    user = _user_from_subject(db, payload)
    if not user:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    user.password_hash = get_password_hash(body.new_password)
    db.commit()
    logger.info(f"Password reset completed for {user.email}")
    return {"success": True, "message": "Password has been reset"}


# ============================================================================
# Admin-mediated password reset
# ============================================================================

def _reset_request_to_api(req: models.PasswordResetRequest) -> dict:
    user = req.user
    return {
        "id": req.id,
        "user_id": req.user_id,
        "status": req.status,
        "request_date": req.request_date,
        "expires_at": req.expires_at,
        "user": {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "phone": user.phone,
            "role": user.role,
        } if user else None,
    }


@router.post("/request-reset", status_code=status.HTTP_201_CREATED)
def request_admin_reset(body: schemas.PasswordResetRequestCreate, db: Session = Depends(get_db)):
    email = body.email.strip().lower()
    user = db.query(models.User).filter(func.lower(models.User.email) == email).first()
    if not user:
        raise HTTPException(status_code=404, detail="No account found for this email")

    now = datetime.utcnow()
    existing = (
        db.query(models.PasswordResetRequest)
        .filter(
            models.PasswordResetRequest.user_id == user.id,
            models.PasswordResetRequest.status == PasswordResetStatus.pending,
            models.PasswordResetRequest.expires_at > now,
        )
        .first()
    )
    if existing:
        raise HTTPException(status_code=400, detail="A password reset request is already pending")

    req = models.PasswordResetRequest(
        user_id=user.id,
        status=PasswordResetStatus.pending,
        request_date=now,
        expires_at=now + timedelta(hours=PASSWORD_RESET_REQUEST_HOURS),
    )
    db.add(req)
    db.commit()
    db.refresh(req)
    logger.info(f"Password reset requested by {user.email}")
    return {"success": True, "message": "Password reset request submitted", "data": {"id": req.id}}


@router.get("/pending-resets")
def list_pending_resets(
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    requests = (
        db.query(models.PasswordResetRequest)
        .filter(models.PasswordResetRequest.status == PasswordResetStatus.pending)
        .order_by(models.PasswordResetRequest.request_date.desc())
        .all()
    )
    return {"success": True, "data": [_reset_request_to_api(r) for r in requests]}


def _get_pending_request(db: Session, request_id) -> models.PasswordResetRequest:
    req = db.query(models.PasswordResetRequest).filter(models.PasswordResetRequest.id == request_id).first()
    if not req:
        raise HTTPException(status_code=404, detail="Password reset request not found")
    if req.status != PasswordResetStatus.pending:
        raise HTTPException(status_code=400, detail="Password reset request already processed")
    return req


@router.put("/pending-resets/{request_id}/approve")
def approve_reset(
    request_id: UUID,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    req = _get_pending_request(db, request_id)
    now = datetime.utcnow()
    if req.expires_at < now:
        req.status = PasswordResetStatus.rejected
        req.rejection_reason = "Expired"
        db.commit()
        raise HTTPException(status_code=400, detail="Password reset request has expired")

    user = req.user
    new_password = generate_random_password()
    user.password_hash = get_password_hash(new_password)
    req.status = PasswordResetStatus.approved
    req.approved_by = current_user.id
    req.approved_date = now
    db.commit()

    subject, html = new_password_email(user.name, new_password)
    email_sent = notification_service.try_send_email(user.email, subject, html)
    logger.info(f"Password reset approved for {user.email} by {current_user.email}")
    return {
        "success": True,
        "message": "Password reset approved",
        "data": {"new_password": new_password, "email_sent": email_sent},
    }


@router.put("/pending-resets/{request_id}/reject")
def reject_reset(
    request_id: UUID,
    body: schemas.PasswordResetReject = None,
    current_user: models.User = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    req = _get_pending_request(db, request_id)
    req.status = PasswordResetStatus.rejected
    req.rejection_reason = body.reason if body else None
    req.approved_by = current_user.id
    req.approved_date = datetime.utcnow()
    db.commit()
    return {"success": True, "message": "Password reset request rejected"}
