from app.db.models import CaseCategory, CaseSubCategory, CaseType


def _create_tree(client, auth, admin):
    case_type = client.post("/api/v1/case-types/", json={"name": "Labour", "code": "LAB"}, headers=auth(admin))
    assert case_type.status_code == 201
    type_id = case_type.json()["data"]["id"]
    category = client.post("/api/v1/case-categories/", json={"name": "Wages", "case_type_id": type_id},
                           headers=auth(admin)).json()["data"]
    sub = client.post("/api/v1/case-sub-categories/", json={"name": "Unpaid salary", "category_id": category["id"]},
                      headers=auth(admin)).json()["data"]
    return type_id, category["id"], sub["id"]


def test_case_type_tree_hides_inactive_children(client, auth, admin, make_user):
    type_id, category_id, _ = _create_tree(client, auth, admin)
    inactive = client.post("/api/v1/case-categories/", json={"name": "Archive", "case_type_id": type_id},
                           headers=auth(admin)).json()["data"]
    client.put(f"/api/v1/case-categories/{inactive['id']}", json={"is_active": False}, headers=auth(admin))

    reader = make_user()
    tree = client.get("/api/v1/case-types/", headers=auth(reader)).json()["data"]
    assert len(tree) == 1
    assert [c["name"] for c in tree[0]["categories"]] == ["Wages"]
    assert tree[0]["categories"][0]["sub_categories"][0]["name"] == "Unpaid salary"

    full = client.get("/api/v1/case-types/?include_inactive=true", headers=auth(reader)).json()["data"]
    assert [c["name"] for c in full[0]["categories"]] == ["Archive", "Wages"]


def test_case_type_validation_and_duplicates(client, auth, admin, coordinator):
    assert client.post("/api/v1/case-types/", json={"name": "Labour"}, headers=auth(admin)).status_code == 400
    assert client.post("/api/v1/case-types/", json={"name": "Labour", "code": "LAB"},
                       headers=auth(coordinator)).status_code == 403

    client.post("/api/v1/case-types/", json={"name": "Labour", "code": "LAB"}, headers=auth(admin))
    dupe_name = client.post("/api/v1/case-types/", json={"name": "labour", "code": "LAB2"}, headers=auth(admin))
    assert dupe_name.status_code == 400
    dupe_code = client.post("/api/v1/case-types/", json={"name": "Civil", "code": "lab"}, headers=auth(admin))
    assert dupe_code.status_code == 400


def test_category_requires_existing_type(client, auth, admin):
    response = client.post("/api/v1/case-categories/", json={
        "name": "Orphan", "case_type_id": "00000000-0000-0000-0000-000000000000",
    }, headers=auth(admin))
    assert response.status_code == 404


def test_delete_case_type_cascades(client, auth, db, admin):
    type_id, _, _ = _create_tree(client, auth, admin)
    response = client.delete(f"/api/v1/case-types/{type_id}", headers=auth(admin))
    assert response.status_code == 200
    assert response.json()["data"]["deleted_categories"] == 1
    assert db.query(CaseType).count() == 0
    assert db.query(CaseCategory).count() == 0
    assert db.query(CaseSubCategory).count() == 0


def test_children_listed_by_parent(client, auth, admin):
    type_id, category_id, _ = _create_tree(client, auth, admin)
    categories = client.get(f"/api/v1/case-categories/by-type/{type_id}", headers=auth(admin)).json()["data"]
    assert [c["id"] for c in categories] == [category_id]
    subs = client.get(f"/api/v1/case-sub-categories/by-category/{category_id}", headers=auth(admin)).json()["data"]
    assert [s["name"] for s in subs] == ["Unpaid salary"]


def test_export_json_and_csv(client, auth, admin):
    _create_tree(client, auth, admin)

    rows = client.get("/api/v1/export/case-sub-categories", headers=auth(admin)).json()
    assert rows["count"] == 1
    assert rows["data"][0] == {
        "name": "Unpaid salary",
        "category_name": "Wages",
        "case_type_name": "Labour",
        "case_type_code": "LAB",
        "is_active": "Yes",
    }

    csv_response = client.get("/api/v1/export/case-types?format=csv", headers=auth(admin))
    assert csv_response.headers["content-type"].startswith("text/csv")
    assert "case_types.csv" in csv_response.headers["content-disposition"]
    assert csv_response.text.splitlines() == ["name,code,is_active", "Labour,LAB,Yes"]


def test_import_case_types_upserts_by_code(client, auth, db, admin):
    client.post("/api/v1/case-types/", json={"name": "Labour", "code": "LAB"}, headers=auth(admin))
    response = client.post("/api/v1/import/case-types", json=[
        {"name": "Labour Disputes", "code": "LAB", "is_active": "No"},
        {"name": "Criminal", "code": "CRM"},
        {"name": "No Code"},
    ], headers=auth(admin))

    assert response.status_code == 200
    summary = response.json()["data"]
    assert summary["success"] == 2
    assert summary["failed"] == 1
    assert summary["errors"][0]["item"] == {"name": "No Code"}

    labour = db.query(CaseType).filter(CaseType.code == "LAB").one()
    assert labour.name == "Labour Disputes"
    assert labour.is_active is False


def test_import_categories_and_sub_categories(client, auth, db, admin):
    client.post("/api/v1/case-types/", json={"name": "Labour", "code": "LAB"}, headers=auth(admin))

    categories = client.post("/api/v1/import/case-categories", json=[
        {"name": "Wages", "case_type_code": "LAB"},
        {"name": "Wages", "case_type_name": "labour"},
        {"name": "Lost", "case_type_code": "NOPE"},
    ], headers=auth(admin)).json()["data"]
    assert categories["success"] == 2
    assert categories["errors"][0]["error"] == "Case type not found"
    assert db.query(CaseCategory).count() == 1

    subs = client.post("/api/v1/import/case-sub-categories", json=[
        {"name": "Unpaid salary", "category_name": "wages", "case_type_code": "LAB"},
        {"name": "Bonus", "category_name": "Missing"},
    ], headers=auth(admin)).json()["data"]
    assert subs["success"] == 1
    assert subs["failed"] == 1


def test_import_rejects_non_array(client, auth, admin):
    assert client.post("/api/v1/import/case-types", json={"name": "x"}, headers=auth(admin)).status_code == 400
    assert client.post("/api/v1/import/case-types", json=[], headers=auth(admin)).status_code == 400


# ============================================================================
# Work occupations
# ============================================================================

def test_work_occupation_types_and_sub_types(client, auth, admin, make_user):
    created = client.post("/api/v1/work-occupations/types", json={"name": "Construction"}, headers=auth(admin))
    assert created.status_code == 201
    type_id = created.json()["data"]["id"]
    assert client.post("/api/v1/work-occupations/types", json={"name": "construction"},
                       headers=auth(admin)).status_code == 400

    mason = client.post("/api/v1/work-occupations/sub-types",
                        json={"name": "Mason", "occupation_type_id": type_id}, headers=auth(admin)).json()["data"]
    welder = client.post("/api/v1/work-occupations/sub-types",
                         json={"name": "Welder", "occupation_type_id": type_id}, headers=auth(admin)).json()["data"]
    client.put(f"/api/v1/work-occupations/sub-types/{welder['id']}", json={"is_active": False}, headers=auth(admin))

    reader = make_user()
    types = client.get("/api/v1/work-occupations/types", headers=auth(reader)).json()["data"]
    assert [s["name"] for s in types[0]["sub_types"]] == ["Mason"]

    active = client.get(f"/api/v1/work-occupations/sub-types/by-type/{type_id}", headers=auth(reader)).json()["data"]
    assert [s["id"] for s in active] == [mason["id"]]

    everything = client.get("/api/v1/work-occupations/sub-types", headers=auth(reader)).json()["data"]
    assert {s["occupation_type"]["name"] for s in everything} == {"Construction"}
    assert len(everything) == 2

    deleted = client.delete(f"/api/v1/work-occupations/types/{type_id}", headers=auth(admin))
    assert deleted.json()["data"]["deleted_sub_types"] == 2


def test_work_occupation_writes_require_super_admin(client, auth, coordinator):
    response = client.post("/api/v1/work-occupations/types", json={"name": "Retail"}, headers=auth(coordinator))
    assert response.status_code == 403
