import os
import tempfile
import uuid

import pytest

_TMP_DIR = tempfile.mkdtemp(prefix="eyls-tests-")

# Settings are read at import time, so the environment goes first.
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["JWT_REFRESH_SECRET_KEY"] = "test-refresh-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["PUBLIC_FILES_BASE_URL"] = "/uploads"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["SMS_PROVIDER"] = "dev"
os.environ["WHATSAPP_PROVIDER"] = "dev"
os.environ["EMAIL_PROVIDER"] = "dev"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["MAINTENANCE_LOOP_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from fastapi.testclient import TestClient  # noqa: E402

from app.core.security import create_access_token, get_password_hash  # noqa: E402
from app.db import models  # noqa: E402,F401
from app.db.database import Base, SessionLocal, engine  # noqa: E402
from app.db.models import User, UserRole  # noqa: E402
from app.main import app  # noqa: E402

DEFAULT_PASSWORD = "Password123"


@pytest.fixture(autouse=True)
def _tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(_tables):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_user(db):
    def _make(role=UserRole.client, email=None, password=DEFAULT_PASSWORD, **fields):
        user = User(
            email=email or f"{role.value}-{uuid.uuid4().hex[:8]}@example.com",
            password_hash=get_password_hash(password),
            name=fields.pop("name", f"Test {role.value.replace('_', ' ').title()}"),
            phone=fields.pop("phone", None),
            role=role,
            is_active=fields.pop("is_active", True),
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def auth():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}

    return _headers


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.super_admin, email="admin@example.com", name="Super Admin")


@pytest.fixture
def coordinator(make_user):
    return make_user(UserRole.coordinator, email="coord@example.com", name="Dubai Coordinator",
                     assigned_emirates=["Dubai"])


@pytest.fixture
def counsellor(make_user):
    return make_user(UserRole.counsellor, email="counsel@example.com", name="Case Counsellor",
                     assigned_emirates=["Dubai"])


@pytest.fixture
def lawyer(make_user):
    return make_user(UserRole.lawyer, email="lawyer@example.com", name="Firm Lawyer")


@pytest.fixture
def register_case(client, auth):
    """Register a case through the API as the given coordinator."""
    def _register(coordinator_user, **overrides):
        payload = {
            "client_name": "Ahmed Ali",
            "client_email": "ahmed@example.com",
            "client_phone": "0501234567",
            "emirate": "Dubai",
            "case_type": "Labour",
            "description": "Unpaid end of service gratuity",
            "estimated_cost": 5000,
        }
        payload.update(overrides)
        response = client.post("/api/v1/cases/", json=payload, headers=auth(coordinator_user))
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _register

