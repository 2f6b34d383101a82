"""
Case document endpoints
"""
from datetime import datetime
import secrets
from typing import Optional
from uuid import UUID

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user, require_coordinator
from app.api.v1.endpoints.cases import ensure_case_visible, get_case_or_404
from app.core.config import settings
from app.core.constants import ALLOWED_FILE_TYPES
from app.core.logger import logger
from app.db.database import get_db
from app.db import models
from app.db.models import UserRole
from app.services.storage_service import storage_service
from app.utils.helpers import model_to_dict, sanitize_filename

router = APIRouter()


def storage_key(folder: str, original_name: Optional[str]) -> tuple:
    """(stored file name, storage key) with a timestamp/random prefix"""
    safe_name = sanitize_filename(original_name or "file") or "file"
    stamp = datetime.utcnow().strftime("%Y%m%d%H%M%S")
    file_name = f"{stamp}_{secrets.token_hex(4)}_{safe_name}"
    return file_name, f"{folder}/{file_name}"


@router.post("/upload", status_code=status.HTTP_201_CREATED)
def upload_document(
    file: UploadFile = File(...),
    case_id: UUID = Form(...),
    category: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    content_type = file.content_type or "application/octet-stream"
    if content_type not in ALLOWED_FILE_TYPES:
        raise HTTPException(status_code=400, detail=f"File type {content_type} is not allowed")

    body = file.file.read()
    if not body:
        raise HTTPException(status_code=400, detail="Empty file")
    if len(body) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(status_code=400, detail="File exceeds the maximum upload size")

    case = get_case_or_404(db, case_id)
    ensure_case_visible(case, current_user)

    file_name, key = storage_key(f"cases/{case.id}", file.filename)
    try:
        url = storage_service.save(key, body, content_type)
    except (OSError, ValueError, BotoCoreError, ClientError) as exc:
        logger.error(f"Document upload failed for case {case.case_number}: {exc}")
        raise HTTPException(status_code=500, detail="Upload failed")

    document = models.Document(
        case_id=case.id,
        uploaded_by=current_user.id,
        file_name=file_name,
        original_file_name=file.filename or file_name,
        file_type=content_type,
        file_size=len(body),
        file_path=key,
        file_url=url,
        category=category or "general",
        description=description,
    )
    db.add(document)
    db.commit()
    db.refresh(document)
    logger.info(f"Document {file_name} uploaded to case {case.case_number} by {current_user.email}")
    return {"success": True, "message": "Document uploaded", "data": model_to_dict(document)}


@router.get("/case/{case_id}")
def list_case_documents(
    case_id: UUID,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    case = get_case_or_404(db, case_id)
    if current_user.role == UserRole.client:
        ensure_case_visible(case, current_user)

    documents = (
        db.query(models.Document)
        .filter(models.Document.case_id == case_id)
        .order_by(models.Document.created_at.desc())
        .all()
    )
    results = []
    for doc in documents:
        data = model_to_dict(doc)
        data["uploader_name"] = doc.uploader.name if doc.uploader else None
        data["uploader_role"] = doc.uploader.role if doc.uploader else None
        results.append(data)
    return {"success": True, "data": results}


@router.delete("/{document_id}")
def delete_document(
    document_id: UUID,
    current_user: models.User = Depends(require_coordinator),
    db: Session = Depends(get_db),
):
    document = db.query(models.Document).filter(models.Document.id == document_id).first()
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")

    try:
        storage_service.delete(document.file_path)
    except (OSError, ValueError, BotoCoreError, ClientError) as exc:
        logger.warning(f"Could not delete stored file {document.file_path}: {exc}")

    db.delete(document)
    db.commit()
    return {"success": True, "message": "Document deleted"}
