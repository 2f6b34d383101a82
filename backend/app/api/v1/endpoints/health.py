"""
Readiness checks - database and file storage.
"""
from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.logger import logger
from app.db.database import engine

router = APIRouter()


def _check_database() -> tuple[str, str]:
    """Returns (status, detail). Status is 'ok' or 'error'."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return "ok", "Database reachable"
    except SQLAlchemyError as e:
        logger.error(f"Database check failed: {e}")
        return "error", f"Database: {e.__class__.__name__}"


def _check_storage() -> tuple[str, str]:
    if settings.STORAGE_BACKEND != "s3":
        return "ok", f"Local storage at '{settings.UPLOAD_DIR}'"

    import boto3
    from botocore.exceptions import BotoCoreError, ClientError

    try:
        client = boto3.client(
            "s3",
            region_name=settings.AWS_REGION,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
        )
        client.head_bucket(Bucket=settings.S3_BUCKET_NAME)
        return "ok", f"Bucket '{settings.S3_BUCKET_NAME}' accessible"
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code", "")
        return "error", f"S3: {code} - {str(e)}"
    except BotoCoreError as e:
        return "error", f"S3: {str(e)}"


@router.get("/ready")
def readiness():
    """
    Check the database connection and the configured storage backend.
    """
    db_status, db_detail = _check_database()
    storage_status, storage_detail = _check_storage()

    healthy = db_status == "ok" and storage_status == "ok"
    return {
        "status": "healthy" if healthy else "degraded",
        "database": {"status": db_status, "detail": db_detail},
        "storage": {"status": storage_status, "detail": storage_detail},
    }
