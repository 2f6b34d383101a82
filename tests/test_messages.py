from app.core.config import settings
from app.db.models import CaseInquiry, Message, User


def _send(client, auth, user, subject="Hearing date", message="When is my next hearing?", **extra):
    response = client.post("/api/v1/messages/", json={"subject": subject, "message": message, **extra},
                           headers=auth(user))
    assert response.status_code == 201
    return response.json()["data"]


def test_client_message_lifecycle(client, auth, db, admin, make_user):
    sender = make_user(name="Worried Client")
    message = _send(client, auth, sender, priority="high")
    assert message["status"] == "pending"
    assert message["priority"] == "high"
    assert message["client"]["name"] == "Worried Client"
    assert message["client_cases"] == []

    assert client.get("/api/v1/messages/unread-count", headers=auth(admin)).json()["data"]["count"] == 1

    opened = client.get(f"/api/v1/messages/{message['id']}", headers=auth(admin))
    assert opened.json()["data"]["is_read"] is True
    assert client.get("/api/v1/messages/unread-count", headers=auth(admin)).json()["data"]["count"] == 0

    assert client.post(f"/api/v1/messages/{message['id']}/reply", json={"admin_reply": " "},
                       headers=auth(admin)).status_code == 400
    replied = client.post(f"/api/v1/messages/{message['id']}/reply",
                          json={"admin_reply": "Your hearing is on 12 March."}, headers=auth(admin))
    assert replied.json()["data"]["status"] == "replied"
    assert replied.json()["data"]["replier"]["id"] == str(admin.id)

    assert client.get("/api/v1/messages/unread-count", headers=auth(sender)).json()["data"]["count"] == 1
    client.get(f"/api/v1/messages/{message['id']}", headers=auth(sender))
    assert client.get("/api/v1/messages/unread-count", headers=auth(sender)).json()["data"]["count"] == 0

    stored = db.query(Message).one()
    assert stored.client_read is True


def test_message_requires_subject_and_body(client, auth, make_user):
    response = client.post("/api/v1/messages/", json={"subject": "Only subject"}, headers=auth(make_user()))
    assert response.status_code == 400


def test_clients_only_see_their_own_messages(client, auth, admin, make_user):
    alice, bob = make_user(), make_user()
    mine = _send(client, auth, alice)
    theirs = _send(client, auth, bob, subject="Invoice question", message="Can I pay by cheque?")

    listing = client.get("/api/v1/messages/", headers=auth(alice)).json()
    assert [m["id"] for m in listing["data"]] == [mine["id"]]
    assert client.get(f"/api/v1/messages/{theirs['id']}", headers=auth(alice)).status_code == 403

    everything = client.get("/api/v1/messages/", headers=auth(admin)).json()
    assert everything["count"] == 2
    searched = client.get("/api/v1/messages/?search=cheque", headers=auth(admin)).json()
    assert [m["id"] for m in searched["data"]] == [theirs["id"]]


def test_message_lists_recent_cases_for_client(client, auth, db, coordinator, register_case):
    register_case(coordinator)
    case_client = db.query(User).filter(User.email == "ahmed@example.com").one()
    message = _send(client, auth, case_client)
    assert len(message["client_cases"]) == 1
    assert message["client_cases"][0]["emirate"] == "Dubai"


def test_message_status_and_delete_are_admin_only(client, auth, db, admin, make_user):
    sender = make_user()
    message = _send(client, auth, sender)
    url = f"/api/v1/messages/{message['id']}"

    assert client.put(f"{url}/status", json={"status": "closed"}, headers=auth(sender)).status_code == 403
    assert client.put(f"{url}/status", json={"status": "archived"}, headers=auth(admin)).status_code == 400
    closed = client.put(f"{url}/status", json={"status": "closed"}, headers=auth(admin))
    assert closed.json()["data"]["status"] == "closed"

    assert client.delete(url, headers=auth(sender)).status_code == 403
    assert client.delete(url, headers=auth(admin)).status_code == 200
    assert db.query(Message).count() == 0


# ============================================================================
# Case inquiries
# ============================================================================

INQUIRY_FORM = {
    "first_name": "Maria",
    "last_name": "Santos",
    "email": "Maria.Santos@example.com",
    "phone": "0559876543",
    "case_type": "Labour",
    "title": "Passport held by employer",
    "description": "Employer refuses to return my passport.",
    "urgency": "high",
    "consultation_preference": "phone",
}


def test_public_inquiry_with_documents(client, db):
    response = client.post(
        "/api/v1/case-inquiries/",
        data=INQUIRY_FORM,
        files=[
            ("documents", ("contract.pdf", b"%PDF-1.4 contract", "application/pdf")),
            ("documents", ("passport copy.png", b"\x89PNG fake", "image/png")),
        ],
    )
    assert response.status_code == 201
    inquiry = response.json()["data"]
    assert inquiry["email"] == "maria.santos@example.com"
    assert inquiry["urgency"] == "high"
    assert inquiry["status"] == "pending"
    assert [d["name"] for d in inquiry["documents"]] == ["contract.pdf", "passport copy.png"]
    assert inquiry["documents"][0]["path"].startswith("/uploads/inquiries/")
    assert inquiry["documents"][1]["filename"].endswith("_passport_copy.png")
    assert inquiry["documents"][0]["size"] == len(b"%PDF-1.4 contract")


def test_inquiry_without_documents_defaults_urgency(client):
    form = {key: INQUIRY_FORM[key] for key in ("first_name", "last_name", "email", "phone")}
    response = client.post("/api/v1/case-inquiries/", data=form)
    assert response.status_code == 201
    assert response.json()["data"]["urgency"] == "medium"
    assert response.json()["data"]["documents"] == []


def test_inquiry_validation(client):
    assert client.post("/api/v1/case-inquiries/", data={"first_name": "Only"}).status_code == 400
    bad = client.post("/api/v1/case-inquiries/", data={**INQUIRY_FORM, "urgency": "whenever"})
    assert bad.status_code == 400


def test_staff_manage_inquiries(client, auth, db, counsellor, make_user):
    inquiry = client.post("/api/v1/case-inquiries/", data=INQUIRY_FORM).json()["data"]

    assert client.get("/api/v1/case-inquiries/", headers=auth(make_user())).status_code == 403
    listing = client.get("/api/v1/case-inquiries/", headers=auth(counsellor)).json()
    assert listing["count"] == 1

    updated = client.put(f"/api/v1/case-inquiries/{inquiry['id']}/status",
                         json={"status": "reviewed", "admin_notes": "  Called back  "}, headers=auth(counsellor))
    assert updated.json()["data"]["status"] == "reviewed"
    assert updated.json()["data"]["admin_notes"] == "Called back"

    assert client.delete(f"/api/v1/case-inquiries/{inquiry['id']}", headers=auth(counsellor)).status_code == 200
    assert db.query(CaseInquiry).count() == 0


def test_inquiry_skips_disallowed_and_oversized_documents(client, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 32)
    response = client.post(
        "/api/v1/case-inquiries/",
        data=INQUIRY_FORM,
        files=[
            ("documents", ("page.html", b"<script>alert(1)</script>", "text/html")),
            ("documents", ("scan.pdf", b"%PDF" + b"0" * 64, "application/pdf")),
            ("documents", ("id.png", b"\x89PNG small", "image/png")),
        ],
    )
    assert response.status_code == 201
    documents = response.json()["data"]["documents"]
    assert [d["name"] for d in documents] == ["id.png"]
    assert documents[0]["mimetype"] == "image/png"
