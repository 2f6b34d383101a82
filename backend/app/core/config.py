# app/core/config.py
"""
Application configuration using Pydantic Settings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
import json
from pydantic import field_validator


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """

    # Application
    APP_NAME: str = "EYLS Legal"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    FRONTEND_URL: str = "http://localhost:3000"

    # Database
    DATABASE_URL: str
    AUTO_CREATE_TABLES: bool = True

    # JWT Authentication
    JWT_SECRET_KEY: str
    JWT_REFRESH_SECRET_KEY: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    RESET_TOKEN_EXPIRE_MINUTES: int = 60
    TWO_FACTOR_PENDING_EXPIRE_MINUTES: int = 10
    BCRYPT_ROUNDS: int = 12

    # Storage
    STORAGE_BACKEND: str = "local"  # local | s3
    UPLOAD_DIR: str = "uploads"
    PUBLIC_FILES_BASE_URL: str = "/uploads"
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

    # AWS Configuration
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "me-central-1"
    S3_BUCKET_NAME: str = "eyls-uploads"

    # Outbound messaging
    SMS_PROVIDER: str = "dev"        # dev | twilio
    WHATSAPP_PROVIDER: str = "dev"   # dev | twilio
    EMAIL_PROVIDER: str = "dev"      # dev | resend
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_SMS_FROM: str = ""
    TWILIO_WHATSAPP_FROM: str = ""
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = ""
    FIRM_NAME: str = "Sara Advocates & Legal Consultants"

    # Maintenance loop (expired OTP sessions, stale reset requests)
    MAINTENANCE_LOOP_ENABLED: bool = True
    MAINTENANCE_INTERVAL_MINUTES: int = 30

    # Seed
    SEED_ADMIN_EMAIL: str = "admin@eyls.com"
    SEED_ADMIN_PASSWORD: str = "ChangeMe_Admin$321"
    SEED_ADMIN_PHONE: str = "+971500000000"

    # CORS
    CORS_ORIGINS: str = '["http://localhost:3000"]'

    @field_validator("STORAGE_BACKEND", "SMS_PROVIDER", "WHATSAPP_PROVIDER", "EMAIL_PROVIDER", mode="before")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from string to list"""
        try:
            if isinstance(self.CORS_ORIGINS, str):
                return json.loads(self.CORS_ORIGINS)
            return self.CORS_ORIGINS
        except json.JSONDecodeError:
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def refresh_secret_key(self) -> str:
        return self.JWT_REFRESH_SECRET_KEY or self.JWT_SECRET_KEY


# Create settings instance
settings = Settings()
