import uuid

from app.db.models import Case, CaseTracking, User, UserRole


def _tracking_types(db, case_id):
    rows = (
        db.query(CaseTracking)
        .filter(CaseTracking.case_id == uuid.UUID(case_id))
        .order_by(CaseTracking.change_number)
        .all()
    )
    return [row.change_type for row in rows]


def test_register_case_creates_client_and_first_tracking_row(db, coordinator, register_case):
    data = register_case(coordinator)
    case = data["case"]

    assert case["case_number"].startswith("CASE-")
    assert case["coordinator_id"] == str(coordinator.id)
    assert case["status"] == "pending"
    assert case["remaining_amount"] == 5000
    assert data["client"]["role"] == "client"
    assert data["client"]["phone"] == "+971501234567"
    assert data["temporary_password"]

    assert _tracking_types(db, case["id"]) == ["case_registered"]


def test_register_reuses_existing_client(db, coordinator, register_case, make_user):
    existing = make_user(email="ahmed@example.com", name="Ahmed Ali")
    data = register_case(coordinator, client_email="AHMED@example.com", nationality="Egyptian")

    assert data["client"]["id"] == str(existing.id)
    assert "temporary_password" not in data
    db.refresh(existing)
    assert existing.nationality == "Egyptian"


def test_register_requires_client_details_and_assigned_emirate(client, auth, coordinator):
    missing = client.post("/api/v1/cases/", json={"client_name": "X", "emirate": "Dubai"}, headers=auth(coordinator))
    assert missing.status_code == 400

    outside = client.post("/api/v1/cases/", json={
        "client_name": "X", "client_email": "x@example.com", "client_phone": "0501", "emirate": "Sharjah",
    }, headers=auth(coordinator))
    assert outside.status_code == 403


def test_register_forbidden_for_lawyers(client, auth, lawyer):
    response = client.post("/api/v1/cases/", json={
        "client_name": "X", "client_email": "x@example.com", "client_phone": "0501", "emirate": "Dubai",
    }, headers=auth(lawyer))
    assert response.status_code == 403


def test_list_cases_scoped_by_role(client, auth, db, admin, coordinator, make_user, register_case):
    other_coordinator = make_user(UserRole.coordinator, assigned_emirates=["Dubai", "Sharjah"])
    mine = register_case(coordinator)["case"]
    register_case(other_coordinator, client_email="other@example.com", emirate="Sharjah")

    own = client.get("/api/v1/cases/", headers=auth(coordinator)).json()["data"]
    assert [c["id"] for c in own["cases"]] == [mine["id"]]

    everything = client.get("/api/v1/cases/", headers=auth(admin)).json()["data"]
    assert everything["pagination"]["total"] == 2

    sharjah = client.get("/api/v1/cases/?emirate=Sharjah", headers=auth(admin)).json()["data"]
    assert len(sharjah["cases"]) == 1

    case_client = db.query(User).filter(User.email == "ahmed@example.com").one()
    as_client = client.get("/api/v1/cases/", headers=auth(case_client)).json()["data"]
    assert [c["id"] for c in as_client["cases"]] == [mine["id"]]


def test_counsellor_case_list_follows_emirate_assignment(client, auth, db, coordinator, make_user, register_case):
    unassigned = make_user(UserRole.counsellor, assigned_emirates=[])
    lowercase = make_user(UserRole.counsellor, assigned_emirates=[" dubai "])
    first = register_case(coordinator)["case"]
    second = register_case(coordinator, client_email="second@example.com")["case"]

    db.get(Case, uuid.UUID(first["id"])).counsellor_id = unassigned.id
    db.get(Case, uuid.UUID(second["id"])).counsellor_id = lowercase.id
    db.commit()

    none_visible = client.get("/api/v1/cases/", headers=auth(unassigned)).json()["data"]
    assert none_visible["cases"] == []
    assert none_visible["pagination"]["total"] == 0

    visible = client.get("/api/v1/cases/", headers=auth(lowercase)).json()["data"]
    assert [c["id"] for c in visible["cases"]] == [second["id"]]


def test_case_detail_visibility(client, auth, coordinator, make_user, register_case, lawyer):
    case = register_case(coordinator)["case"]
    stranger = make_user()

    assert client.get(f"/api/v1/cases/{case['id']}", headers=auth(stranger)).status_code == 403
    detail = client.get(f"/api/v1/cases/{case['id']}", headers=auth(lawyer))
    assert detail.status_code == 200
    assert detail.json()["data"]["coordinator"]["name"] == "Dubai Coordinator"
    assert detail.json()["data"]["lawyer"] is None


def test_update_tracks_only_changed_fields(client, auth, db, coordinator, register_case):
    case = register_case(coordinator)["case"]
    response = client.put(f"/api/v1/cases/{case['id']}", json={
        "description": "Unpaid end of service gratuity",
        "court_area": "Deira",
        "estimated_cost": "6000.00",
        "payments": [{"amount": 1}],
    }, headers=auth(coordinator))

    assert response.status_code == 200
    data = response.json()["data"]
    assert sorted(data["changed_fields"]) == ["court_area", "estimated_cost"]
    assert data["case"]["remaining_amount"] == 6000
    assert _tracking_types(db, case["id"]) == [
        "case_registered", "field_update_court_area", "field_update_estimated_cost",
    ]


def test_other_coordinator_cannot_update(client, auth, coordinator, make_user, register_case):
    case = register_case(coordinator)["case"]
    intruder = make_user(UserRole.coordinator, assigned_emirates=["Dubai"])
    response = client.put(f"/api/v1/cases/{case['id']}", json={"court_area": "Deira"}, headers=auth(intruder))
    assert response.status_code == 403


def test_status_change_records_tracking_and_closed_date(client, auth, db, coordinator, register_case):
    case = register_case(coordinator)["case"]
    assert client.put(f"/api/v1/cases/{case['id']}/status", json={"status": "archived"},
                      headers=auth(coordinator)).status_code == 400

    response = client.put(f"/api/v1/cases/{case['id']}/status", json={"status": "closed"}, headers=auth(coordinator))
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "closed"
    assert response.json()["data"]["closed_date"] is not None

    entry = db.query(CaseTracking).filter(CaseTracking.change_type == "status_change").one()
    assert entry.old_value == "pending"
    assert entry.new_value == "closed"
    assert entry.change_number == 2


def test_assign_lawyer_requires_lawyer_role(client, auth, coordinator, counsellor, lawyer, register_case):
    case = register_case(coordinator)["case"]
    bad = client.put(f"/api/v1/cases/{case['id']}/assign-lawyer", json={"lawyer_id": str(counsellor.id)},
                     headers=auth(coordinator))
    assert bad.status_code == 400

    ok = client.put(f"/api/v1/cases/{case['id']}/assign-lawyer", json={"lawyer_id": str(lawyer.id)},
                    headers=auth(coordinator))
    assert ok.status_code == 200
    assert ok.json()["data"]["lawyer_id"] == str(lawyer.id)


def test_notes_append_with_author(client, auth, coordinator, register_case):
    case = register_case(coordinator)["case"]
    client.post(f"/api/v1/cases/{case['id']}/notes", json={"note": "Called client"}, headers=auth(coordinator))
    response = client.post(f"/api/v1/cases/{case['id']}/notes", json={"note": "Filed claim"},
                           headers=auth(coordinator))
    notes = response.json()["data"]["notes"].splitlines()
    assert len(notes) == 2
    assert notes[1].endswith("Dubai Coordinator: Filed claim")


def test_search_client_finds_cases(client, auth, coordinator, register_case):
    register_case(coordinator)
    assert client.get("/api/v1/cases/search-client?query=ah", headers=auth(coordinator)).status_code == 400

    found = client.get("/api/v1/cases/search-client?query=ahmed", headers=auth(coordinator)).json()["data"]
    assert found["found"] is True
    assert found["client"]["email"] == "ahmed@example.com"
    assert found["cases"][0]["lawyer_name"] == "Unassigned"

    missing = client.get("/api/v1/cases/search-client?query=nobody", headers=auth(coordinator)).json()["data"]
    assert missing == {"found": False, "client": None, "cases": []}


def test_delete_case_removes_tracking(client, auth, db, coordinator, register_case):
    case = register_case(coordinator)["case"]
    assert client.delete(f"/api/v1/cases/{case['id']}", headers=auth(coordinator)).status_code == 200
    assert db.query(Case).count() == 0
    assert db.query(CaseTracking).count() == 0


# ============================================================================
# Case payments
# ============================================================================

def test_case_payments_recalculate_totals(client, auth, coordinator, register_case):
    case = register_case(coordinator)["case"]
    url = f"/api/v1/cases/{case['id']}/payments"

    assert client.post(url, json={"amount": 100}, headers=auth(coordinator)).status_code == 400

    first = client.post(url, json={
        "date": "2026-01-10T00:00:00", "payment_type": "cheque", "amount": "1500.00",
        "cheque_number": "000123", "bank": "ENBD", "being": "First instalment",
    }, headers=auth(coordinator))
    assert first.status_code == 201
    payment = first.json()["data"]["payment"]
    assert payment["invoice_number"].startswith("INV-")
    assert payment["notes"] == "Being: First instalment | Bank: ENBD | Cheque Date: "
    assert first.json()["data"]["case"] == {"paid_amount": 1500, "remaining_amount": 3500}

    client.post(url, json={"date": "2026-02-10T00:00:00", "payment_type": "cash", "amount": 4000},
                headers=auth(coordinator))
    listing = client.get(url, headers=auth(coordinator)).json()["data"]
    assert len(listing) == 2

    updated = client.put(f"{url}/{payment['id']}", json={"amount": 500}, headers=auth(coordinator))
    assert updated.json()["data"]["case"] == {"paid_amount": 4500, "remaining_amount": 500}

    rebanked = client.put(f"{url}/{payment['id']}", json={"bank": "ADCB", "cheque_date": "2026-01-15"},
                          headers=auth(coordinator))
    assert rebanked.json()["data"]["payment"]["notes"] == (
        "Being: First instalment | Bank: ADCB | Cheque Date: 2026-01-15"
    )

    deleted = client.delete(f"{url}/{payment['id']}", headers=auth(coordinator))
    assert deleted.json()["data"]["case"] == {"paid_amount": 4000, "remaining_amount": 1000}


def test_overpayment_never_goes_negative(client, auth, coordinator, register_case):
    case = register_case(coordinator, estimated_cost=1000)["case"]
    response = client.post(f"/api/v1/cases/{case['id']}/payments", json={
        "date": "2026-01-10T00:00:00", "payment_type": "cash", "amount": 1200,
    }, headers=auth(coordinator))
    assert response.json()["data"]["case"]["remaining_amount"] == 0


# ============================================================================
# Tracking entries
# ============================================================================

def test_manual_tracking_entries(client, auth, admin, coordinator, register_case):
    case = register_case(coordinator)["case"]
    url = f"/api/v1/cases/{case['id']}/tracking"

    created = client.post(url, json={"reason": "Hearing adjourned", "next_hearing": "2026-03-01"},
                          headers=auth(coordinator))
    assert created.status_code == 201
    entry = created.json()["data"]
    assert entry["change_type"] == "manual_entry"
    assert entry["change_number"] == 2
    assert entry["staff_name"] == "Dubai Coordinator"

    edited = client.put(f"{url}/{entry['id']}", json={"work_undertaken": "Filed memo"}, headers=auth(coordinator))
    assert edited.json()["data"]["work_undertaken"] == "Filed memo"
    assert edited.json()["data"]["reason"] == "Hearing adjourned"

    listing = client.get(url, headers=auth(coordinator)).json()["data"]
    assert [row["change_number"] for row in listing] == [2, 1]
    system_entry = listing[1]
    assert system_entry["user_name"] == "Dubai Coordinator"

    locked = client.put(f"{url}/{system_entry['id']}", json={"reason": "x"}, headers=auth(coordinator))
    assert locked.status_code == 400

    assert client.delete(f"{url}/{entry['id']}", headers=auth(coordinator)).status_code == 403
    assert client.delete(f"{url}/{entry['id']}", headers=auth(admin)).status_code == 200


# ============================================================================
# Expenses
# ============================================================================

def test_expenses_crud(client, auth, coordinator, register_case, make_user):
    case = register_case(coordinator)["case"]
    url = f"/api/v1/cases/{case['id']}/expenses"

    assert client.post(url, json={"expense": "Court fee"}, headers=auth(coordinator)).status_code == 400

    created = client.post(url, json={"date": "2026-01-05", "expense": "Court fee", "amount": "250.50"},
                          headers=auth(coordinator))
    assert created.status_code == 201
    expense_id = created.json()["data"]["id"]

    updated = client.put(f"{url}/{expense_id}", json={"amount": 300}, headers=auth(coordinator))
    assert updated.json()["data"]["amount"] == 300
    assert updated.json()["data"]["expense"] == "Court fee"

    assert client.get(url, headers=auth(make_user())).status_code == 403
    assert client.delete(f"{url}/{expense_id}", headers=auth(coordinator)).status_code == 200
    assert client.get(url, headers=auth(coordinator)).json()["data"] == []
