from datetime import datetime, timedelta

from app.core.config import settings
from app.core.security import verify_password
from app.db.models import (
    Document,
    Notification,
    NotificationStatus,
    OtpSession,
    PasswordResetRequest,
    PasswordResetStatus,
    Setting,
    User,
    UserRole,
)
from app.db.seed import DEFAULT_SETTINGS, seed_settings, seed_super_admin
from app.services.maintenance import run_maintenance
from app.services.notification_service import notification_service


# ============================================================================
# Subscriptions
# ============================================================================

def test_subscribe_is_idempotent_and_resubscribes(client, auth, admin):
    first = client.post("/api/v1/subscriptions/subscribe", json={"email": "News@Example.com", "source": "footer"})
    assert first.status_code == 201
    assert first.json()["data"]["email"] == "news@example.com"

    again = client.post("/api/v1/subscriptions/subscribe", json={"email": "news@example.com"})
    assert again.status_code == 200
    assert again.json()["message"] == "Already subscribed"

    gone = client.post("/api/v1/subscriptions/unsubscribe", json={"email": "news@example.com"})
    assert gone.json()["data"]["status"] == "unsubscribed"

    back = client.post("/api/v1/subscriptions/subscribe", json={"email": "news@example.com"})
    assert back.status_code == 200
    assert back.json()["message"] == "Resubscribed"
    assert back.json()["data"]["source"] == "footer"

    listing = client.get("/api/v1/subscriptions/", headers=auth(admin)).json()["data"]
    assert [s["status"] for s in listing] == ["subscribed"]


def test_subscription_errors(client):
    missing = client.post("/api/v1/subscriptions/subscribe", json={})
    assert missing.status_code == 400
    assert missing.json() == {"success": False, "message": "Email is required"}
    assert client.post("/api/v1/subscriptions/unsubscribe", json={}).status_code == 400
    assert client.post("/api/v1/subscriptions/unsubscribe", json={"email": "ghost@example.com"}).status_code == 404


# ============================================================================
# Settings
# ============================================================================

def test_settings_upsert_and_read(client, auth, admin, coordinator):
    assert client.get("/api/v1/settings/", headers=auth(coordinator)).status_code == 403
    assert client.get("/api/v1/settings/currency", headers=auth(admin)).status_code == 404

    saved = client.put("/api/v1/settings/currency", json={"value": "AED", "category": "general"}, headers=auth(admin))
    assert saved.status_code == 200
    assert saved.json()["data"]["updated_by"] == str(admin.id)

    client.put("/api/v1/settings/working_days", json={"value": ["Mon", "Tue"]}, headers=auth(admin))
    fetched = client.get("/api/v1/settings/working_days", headers=auth(admin)).json()["data"]
    assert fetched["value"] == ["Mon", "Tue"]
    assert len(client.get("/api/v1/settings/", headers=auth(admin)).json()["data"]) == 2


# ============================================================================
# Notifications
# ============================================================================

def test_sms_notification_recorded(client, auth, db, coordinator):
    response = client.post("/api/v1/notifications/sms", json={"phone": "0501234567", "message": "Hearing tomorrow"},
                           headers=auth(coordinator))
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["status"] == "sent"

    stored = db.query(Notification).one()
    assert stored.status == NotificationStatus.sent
    assert stored.meta["provider"] == "dev"
    assert stored.sent_at is not None


def test_notification_provider_failure_is_stored(client, auth, db, coordinator, monkeypatch):
    monkeypatch.setattr(notification_service, "whatsapp_provider", "pager")
    response = client.post("/api/v1/notifications/whatsapp", json={"phone": "0501234567", "message": "Hi"},
                           headers=auth(coordinator))
    assert response.status_code == 200
    assert response.json()["success"] is False

    stored = db.query(Notification).one()
    assert stored.status == NotificationStatus.failed
    assert "pager" in stored.error_message


def test_notifications_are_staff_only(client, auth, make_user):
    response = client.post("/api/v1/notifications/email", json={
        "email": "someone@example.com", "subject": "Hello", "html": "<p>Hi</p>",
    }, headers=auth(make_user()))
    assert response.status_code == 403


# ============================================================================
# Consultations
# ============================================================================

def test_anonymous_booking_needs_contact_details(client):
    assert client.post("/api/v1/consultations/", json={"type": "video"}).status_code == 400

    response = client.post("/api/v1/consultations/", json={
        "type": "video",
        "client_name": "Walk In",
        "client_email": "walkin@example.com",
        "client_phone": "0501112222",
        "scheduled_date": "2026-04-01T10:00:00",
    })
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["price"] == 400
    assert data["payment_method"] == "later"
    assert data["client_id"] is None
    assert data["status"] == "pending"


def test_client_booking_uses_profile(client, auth, make_user):
    user = make_user(name="Signed In", phone="+971501234567")
    response = client.post("/api/v1/consultations/", json={"price": "250.00", "payment_method": "card"},
                           headers=auth(user))
    data = response.json()["data"]
    assert data["client_id"] == str(user.id)
    assert data["client_email"] == user.email
    assert data["client_phone"] == "+971501234567"
    assert data["price"] == 250

    listing = client.get("/api/v1/consultations/", headers=auth(user)).json()["data"]
    assert [c["id"] for c in listing] == [data["id"]]


def test_staff_update_consultation(client, auth, lawyer, make_user):
    booking = client.post("/api/v1/consultations/", json={}, headers=auth(make_user())).json()["data"]
    assert client.put(f"/api/v1/consultations/{booking['id']}", json={"status": "confirmed"},
                      headers=auth(make_user())).status_code == 403

    updated = client.put(f"/api/v1/consultations/{booking['id']}",
                         json={"status": "confirmed", "lawyer_id": str(lawyer.id)}, headers=auth(lawyer))
    assert updated.json()["data"]["status"] == "confirmed"
    assert len(client.get("/api/v1/consultations/", headers=auth(lawyer)).json()["data"]) == 1


# ============================================================================
# Payments / dashboards
# ============================================================================

def test_client_payment_and_dashboard(client, auth, db, coordinator, register_case):
    case = register_case(coordinator)["case"]
    client.post(f"/api/v1/cases/{case['id']}/payments", json={
        "date": "2026-01-10T00:00:00", "payment_type": "cash", "amount": 1500,
    }, headers=auth(coordinator))
    case_client = db.query(User).filter(User.email == "ahmed@example.com").one()

    online = client.post("/api/v1/payments/", json={"amount": "250.00", "case_id": case["id"], "payment_method": "card"},
                         headers=auth(case_client))
    assert online.status_code == 201
    assert online.json()["data"]["status"] == "pending"
    assert online.json()["data"]["client_id"] == str(case_client.id)

    own = client.get("/api/v1/payments/", headers=auth(case_client)).json()["data"]
    assert len(own) == 2
    by_case = client.get(f"/api/v1/payments/case/{case['id']}", headers=auth(coordinator)).json()["data"]
    assert len(by_case) == 2

    dashboard = client.get("/api/v1/dashboard/client", headers=auth(case_client)).json()["data"]
    assert dashboard["case"]["case_number"] == case["case_number"]
    assert dashboard["case"]["lawyer"] is None
    assert dashboard["total_paid"] == 1750.0


def test_payment_rejects_unknown_references(client, auth, make_user):
    user = make_user()
    missing_case = client.post("/api/v1/payments/", json={
        "amount": 10, "case_id": "00000000-0000-0000-0000-000000000000",
    }, headers=auth(user))
    assert missing_case.status_code == 404
    assert client.post("/api/v1/payments/", json={"amount": 0}, headers=auth(user)).status_code == 400


def test_staff_dashboards(client, auth, admin, coordinator, lawyer, register_case):
    case = register_case(coordinator)["case"]

    overview = client.get("/api/v1/dashboard/super-admin", headers=auth(admin)).json()["data"]
    assert overview == {"total_cases": 1, "total_users": 4, "total_revenue": 0.0, "pending_cases": 1}

    client.put(f"/api/v1/cases/{case['id']}/assign-lawyer", json={"lawyer_id": str(lawyer.id)},
               headers=auth(coordinator))
    client.put(f"/api/v1/cases/{case['id']}/status", json={"status": "in_progress"}, headers=auth(coordinator))

    mine = client.get("/api/v1/dashboard/coordinator", headers=auth(coordinator)).json()["data"]
    assert mine == {"my_cases": 1, "pending_assignment": 0, "active_cases": 1}
    assigned = client.get("/api/v1/dashboard/lawyer", headers=auth(lawyer)).json()["data"]
    assert assigned == {"assigned_cases": 1, "active_cases": 1}

    assert client.get("/api/v1/dashboard/super-admin", headers=auth(lawyer)).status_code == 403


# ============================================================================
# Documents
# ============================================================================

def test_document_upload_list_and_delete(client, auth, db, coordinator, register_case, make_user):
    case = register_case(coordinator)["case"]

    rejected = client.post("/api/v1/documents/upload", data={"case_id": case["id"]},
                           files={"file": ("run.sh", b"echo hi", "text/x-shellscript")}, headers=auth(coordinator))
    assert rejected.status_code == 400

    uploaded = client.post("/api/v1/documents/upload", data={"case_id": case["id"], "category": "contract"},
                           files={"file": ("Labour Contract.pdf", b"%PDF-1.4", "application/pdf")},
                           headers=auth(coordinator))
    assert uploaded.status_code == 201
    document = uploaded.json()["data"]
    assert document["original_file_name"] == "Labour Contract.pdf"
    assert document["file_name"].endswith("_Labour_Contract.pdf")
    assert document["file_url"].startswith(f"/uploads/cases/{case['id']}/")
    assert document["category"] == "contract"

    listing = client.get(f"/api/v1/documents/case/{case['id']}", headers=auth(coordinator)).json()["data"]
    assert listing[0]["uploader_name"] == "Dubai Coordinator"
    assert listing[0]["uploader_role"] == "coordinator"

    stranger = make_user()
    assert client.get(f"/api/v1/documents/case/{case['id']}", headers=auth(stranger)).status_code == 403

    assert client.delete(f"/api/v1/documents/{document['id']}", headers=auth(coordinator)).status_code == 200
    assert db.query(Document).count() == 0


# ============================================================================
# Maintenance / seed / health
# ============================================================================

def test_run_maintenance_purges_expired_rows(db, make_user):
    user = make_user()
    past = datetime.utcnow() - timedelta(minutes=5)
    future = datetime.utcnow() + timedelta(minutes=5)
    db.add_all([
        OtpSession(id="expired", user_id=user.id, phone="+971500000001", otp_hash="x", expires_at=past),
        OtpSession(id="live", user_id=user.id, phone="+971500000001", otp_hash="x", expires_at=future),
        PasswordResetRequest(user_id=user.id, expires_at=past),
        PasswordResetRequest(user_id=user.id, expires_at=future),
    ])
    db.commit()

    assert run_maintenance(db) == {"otp_sessions_removed": 1, "reset_requests_expired": 1}
    assert [s.id for s in db.query(OtpSession).all()] == ["live"]
    expired = db.query(PasswordResetRequest).filter(PasswordResetRequest.status == PasswordResetStatus.rejected).one()
    assert expired.rejection_reason == "Expired"


def test_seed_creates_then_resets_super_admin(db):
    admin = seed_super_admin(db)
    assert admin.role == UserRole.super_admin
    assert verify_password(settings.SEED_ADMIN_PASSWORD, admin.password_hash)

    admin.two_factor_enabled = True
    admin.two_factor_secret = "JBSWY3DPEHPK3PXP"
    db.commit()

    again = seed_super_admin(db)
    assert again.id == admin.id
    assert again.two_factor_enabled is False
    assert again.two_factor_secret is None
    assert db.query(User).count() == 1


def test_seed_settings_keeps_existing_values(db):
    db.add(Setting(key="currency", value="USD"))
    db.commit()

    assert seed_settings(db) == len(DEFAULT_SETTINGS) - 1
    assert db.query(Setting).filter(Setting.key == "currency").one().value == "USD"


def test_health_endpoints(client):
    assert client.get("/health").json() == {"status": "healthy"}
    ready = client.get("/api/v1/health/ready").json()
    assert ready["status"] == "healthy"
    assert ready["database"]["status"] == "ok"
    assert ready["storage"]["status"] == "ok"


def test_correlation_id_is_echoed(client):
    response = client.get("/health", headers={"X-Correlation-ID": "abc-123"})
    assert response.headers["X-Correlation-ID"] == "abc-123"
