"""
Public case inquiry intake form
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.api.v1.deps import require_staff
from app.api.v1.endpoints.documents import storage_key
from app.core.config import settings
from app.core.constants import ALLOWED_FILE_TYPES
from app.core.logger import logger
from app.db.database import get_db
from app.db import models, schemas
from app.db.models import ConsultationPreference, InquiryStatus, InquiryUrgency
from app.services.storage_service import storage_service
from app.utils.helpers import model_to_dict
from app.utils.validators import require_fields, validate_choice

router = APIRouter()


def _store_documents(files: List[UploadFile]) -> List[dict]:
    documents = []
    for upload in files:
        if not upload.filename:
            continue
        content_type = upload.content_type or "application/octet-stream"
        if content_type not in ALLOWED_FILE_TYPES:
            logger.warning(f"Skipping inquiry document {upload.filename}: type {content_type} not allowed")
            continue
        try:
            content = upload.file.read()
            if not content or len(content) > settings.MAX_UPLOAD_SIZE:
                logger.warning(f"Skipping inquiry document {upload.filename}: empty or over the size limit")
                continue
            file_name, key = storage_key("inquiries", upload.filename)
            url = storage_service.save(key, content, content_type)
        except (OSError, ValueError, BotoCoreError, ClientError) as exc:
            logger.error(f"Failed to store inquiry document {upload.filename}: {exc}")
            continue
        documents.append({
            "name": upload.filename,
            "path": url,
            "filename": file_name,
            "mimetype": content_type,
            "size": len(content),
        })
    return documents


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_inquiry(
    first_name: Optional[str] = Form(None),
    last_name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    emirates_id: Optional[str] = Form(None),
    case_type: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    urgency: Optional[str] = Form(None),
    consultation_preference: Optional[str] = Form(None),
    preferred_date: Optional[datetime] = Form(None),
    documents: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db)
):
    require_fields(
        {"first_name": first_name, "last_name": last_name, "email": email, "phone": phone},
        ("first_name", "last_name", "email", "phone"),
        "First name, last name, email and phone are required"
    )

    inquiry = models.CaseInquiry(
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        email=email.strip().lower(),
        phone=phone.strip(),
        emirates_id=emirates_id,
        case_type=case_type,
        title=title,
        description=description,
        urgency=validate_choice(urgency, InquiryUrgency, "urgency") if urgency else InquiryUrgency.medium,
        consultation_preference=(
            validate_choice(consultation_preference, ConsultationPreference, "consultation preference")
            if consultation_preference else None
        ),
        preferred_date=preferred_date,
        documents=_store_documents(documents or []),
        status=InquiryStatus.pending,
    )
    db.add(inquiry)
    db.commit()
    db.refresh(inquiry)
    logger.info(f"Case inquiry {inquiry.id} received with {len(inquiry.documents)} document(s)")
    return {"success": True, "message": "Case inquiry submitted successfully", "data": model_to_dict(inquiry)}


@router.get("/")
def list_inquiries(current_user: models.User = Depends(require_staff), db: Session = Depends(get_db)):
    inquiries = db.query(models.CaseInquiry).order_by(models.CaseInquiry.created_at.desc()).all()
    return {"success": True, "data": [model_to_dict(i) for i in inquiries], "count": len(inquiries)}


@router.put("/{inquiry_id}/status")
def update_inquiry_status(
    inquiry_id: UUID,
    body: schemas.InquiryStatusUpdate,
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db)
):
    inquiry = db.query(models.CaseInquiry).filter(models.CaseInquiry.id == inquiry_id).first()
    if not inquiry:
        raise HTTPException(status_code=404, detail="Inquiry not found")
    if body.status is not None:
        inquiry.status = body.status
    if body.admin_notes is not None:
        inquiry.admin_notes = body.admin_notes
    db.commit()
    db.refresh(inquiry)
    return {"success": True, "message": "Inquiry updated", "data": model_to_dict(inquiry)}


@router.delete("/{inquiry_id}")
def delete_inquiry(inquiry_id: UUID, current_user: models.User = Depends(require_staff), db: Session = Depends(get_db)):
    inquiry = db.query(models.CaseInquiry).filter(models.CaseInquiry.id == inquiry_id).first()
    if not inquiry:
        raise HTTPException(status_code=404, detail="Inquiry not found")
    db.delete(inquiry)
    db.commit()
    return {"success": True, "message": "Inquiry deleted"}
