# app/services/storage_service.py

import os
from pathlib import Path

import boto3
from botocore.exceptions import ClientError

from app.core.config import settings
from app.core.logger import logger


class LocalStorage:
    """Files under UPLOAD_DIR, served from PUBLIC_FILES_BASE_URL."""

    def __init__(self, root: str, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Invalid storage key: {key}")
        return path

    def save(self, key: str, content: bytes, content_type: str) -> str:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        logger.info(f"Stored file locally: {key} ({len(content)} bytes)")
        return f"{self.base_url}/{key}"

    def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            os.remove(path)
            logger.info(f"Deleted local file: {key}")


class S3Storage:
    """
    Service layer for AWS S3 objects.
    """

    def __init__(self):
        self.s3_client = boto3.client(
            's3',
            region_name=settings.AWS_REGION,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None
        )
        self.bucket = settings.S3_BUCKET_NAME

    def save(self, key: str, content: bytes, content_type: str) -> str:
        try:
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type
            )
            logger.info(f"Uploaded to S3: {key}")
            return f"https://{self.bucket}.s3.{settings.AWS_REGION}.amazonaws.com/{key}"
        except ClientError as e:
            logger.error(f"Failed to upload {key} to S3: {str(e)}")
            raise

    def delete(self, key: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=self.bucket, Key=key)
            logger.info(f"Deleted S3 object: {key}")
        except ClientError as e:
            logger.error(f"Failed to delete S3 object {key}: {str(e)}")
            raise


class StorageService:
    """Picks the backend from STORAGE_BACKEND on first use."""

    def __init__(self):
        self._backend = None

    @property
    def backend(self):
        if self._backend is None:
            if settings.STORAGE_BACKEND == "s3":
                self._backend = S3Storage()
            else:
                self._backend = LocalStorage(settings.UPLOAD_DIR, settings.PUBLIC_FILES_BASE_URL)
        return self._backend

    def save(self, key: str, content: bytes, content_type: str = "application/octet-stream") -> str:
        return self.backend.save(key, content, content_type)

    def delete(self, key: str) -> None:
        self.backend.delete(key)


storage_service = StorageService()
