from app.core.security import verify_password
from app.db.models import User, UserRole


def test_admin_creates_client_with_temporary_password(client, auth, admin):
    response = client.post("/api/v1/users/", json={
        "email": "walkin@example.com",
        "name": "Walk In",
        "phone": "0507654321",
        "role": "client",
        "nationality": "Indian",
    }, headers=auth(admin))
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["temporary_password"]
    assert data["user"]["client_number"].startswith("CL-")
    assert data["user"]["nationality"] == "Indian"
    assert "two_factor_secret" not in data["user"]


def test_staff_account_requires_password_and_valid_emirates(client, auth, admin):
    base = {"email": "coord2@example.com", "name": "Coord", "phone": "0501", "role": "coordinator"}
    assert client.post("/api/v1/users/", json=base, headers=auth(admin)).status_code == 400

    bad = client.post("/api/v1/users/", json={**base, "password": "secret12", "assigned_emirates": ["Mars"]},
                      headers=auth(admin))
    assert bad.status_code == 400

    ok = client.post("/api/v1/users/", json={**base, "password": "secret12", "assigned_emirates": ["sharjah"]},
                     headers=auth(admin))
    assert ok.status_code == 201
    assert ok.json()["data"]["user"]["assigned_emirates"] == ["Sharjah"]


def test_only_super_admin_creates_users(client, auth, coordinator):
    response = client.post("/api/v1/users/", json={
        "email": "x@example.com", "name": "X", "phone": "0501", "role": "client",
    }, headers=auth(coordinator))
    assert response.status_code == 403


def test_duplicate_email_conflict(client, auth, admin, make_user):
    make_user(email="dupe@example.com")
    response = client.post("/api/v1/users/", json={
        "email": "DUPE@example.com", "name": "Dupe", "phone": "0501", "role": "client",
    }, headers=auth(admin))
    assert response.status_code == 409


def test_list_users_filters_and_unlimited_limit(client, auth, admin, make_user):
    for index in range(3):
        make_user(UserRole.lawyer, name=f"Lawyer {index}")
    make_user(UserRole.client)

    lawyers = client.get("/api/v1/users/?role=lawyer&limit=2", headers=auth(admin)).json()["data"]
    assert len(lawyers["users"]) == 2
    assert lawyers["pagination"]["total"] == 3
    assert lawyers["pagination"]["pages"] == 2

    everyone = client.get("/api/v1/users/?limit=all", headers=auth(admin)).json()["data"]
    assert everyone["pagination"]["unlimited"] is True
    assert len(everyone["users"]) == 5


def test_user_can_read_and_update_self_but_not_privileged_fields(client, auth, make_user):
    user = make_user(name="Before")
    other = make_user()

    assert client.get(f"/api/v1/users/{user.id}", headers=auth(user)).status_code == 200
    assert client.get(f"/api/v1/users/{other.id}", headers=auth(user)).status_code == 403

    response = client.put(f"/api/v1/users/{user.id}", json={"name": "After", "phone": "0509998888"},
                          headers=auth(user))
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "After"
    assert response.json()["data"]["phone"] == "+971509998888"

    blocked = client.put(f"/api/v1/users/{user.id}", json={"is_active": False}, headers=auth(user))
    assert blocked.status_code == 403


def test_assign_emirates_only_for_scoped_roles(client, auth, admin, counsellor, lawyer):
    ok = client.put(f"/api/v1/users/{counsellor.id}/emirates", json={"emirates": ["Dubai", "Ajman"]},
                    headers=auth(admin))
    assert ok.status_code == 200
    assert ok.json()["data"]["assigned_emirates"] == ["Dubai", "Ajman"]

    assert client.put(f"/api/v1/users/{lawyer.id}/emirates", json={"emirates": ["Dubai"]},
                      headers=auth(admin)).status_code == 400
    assert client.put(f"/api/v1/users/{counsellor.id}/emirates", json={"emirates": "Dubai"},
                      headers=auth(admin)).status_code == 400


def test_change_password_and_admin_reset(client, auth, db, admin, make_user):
    user = make_user()
    wrong = client.post("/api/v1/users/change-password",
                        json={"current_password": "nope", "new_password": "another1"}, headers=auth(user))
    assert wrong.status_code == 400

    ok = client.post("/api/v1/users/change-password",
                     json={"current_password": "Password123", "new_password": "another1"}, headers=auth(user))
    assert ok.status_code == 200

    reset = client.post(f"/api/v1/users/{user.id}/reset-password", json={"new_password": "adminset1"},
                        headers=auth(admin))
    assert reset.status_code == 200
    db.refresh(user)
    assert verify_password("adminset1", user.password_hash)


def test_admin_cannot_delete_self(client, auth, db, admin, make_user):
    assert client.delete(f"/api/v1/users/{admin.id}", headers=auth(admin)).status_code == 400
    victim = make_user()
    assert client.delete(f"/api/v1/users/{victim.id}", headers=auth(admin)).status_code == 200
    assert db.query(User).filter(User.id == victim.id).first() is None


def test_import_clients_creates_updates_and_reports_rows(client, auth, db, admin, make_user):
    make_user(email="existing@example.com", name="Old Name")
    response = client.post("/api/v1/users/import", json=[
        {"name": "Fresh Client", "email": "fresh@example.com", "phone": "0501112233"},
        {"name": "New Name", "email": "existing@example.com", "phone": "0504445566", "is_active": "No"},
        {"name": "Missing Phone", "email": "partial@example.com"},
    ], headers=auth(admin))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["created"] == 1
    assert data["updated"] == 1
    assert data["failed"] == 1
    assert data["errors"][0]["row"] == 4

    db.expire_all()
    existing = db.query(User).filter(User.email == "existing@example.com").one()
    assert existing.name == "New Name"
    assert existing.is_active is False


def test_lawyers_listing_for_coordinators(client, auth, coordinator, lawyer, make_user):
    make_user(UserRole.lawyer, is_active=False)
    response = client.get("/api/v1/users/lawyers", headers=auth(coordinator))
    assert response.status_code == 200
    assert [row["id"] for row in response.json()["data"]] == [str(lawyer.id)]
