import pytest
from fastapi import HTTPException

from app.api.v1.deps import get_emirate_filter
from app.core.constants import NO_EMIRATE_SENTINEL
from app.db.models import CaseStatus, User, UserRole
from app.services.export_service import csv_to_rows, import_summary, is_no, parse_import_data, rows_to_csv
from app.utils.helpers import (
    format_phone_number,
    get_pagination_params,
    has_emirate_access,
    pagination_block,
    parse_emirates,
    parse_limit,
    sanitize_filename,
)
from app.utils.validators import (
    require_fields,
    validate_choice,
    validate_emirate,
    validate_facility_emirate,
    validate_password,
)


@pytest.mark.parametrize("raw, expected", [
    ("0501234567", "+971501234567"),
    ("971501234567", "+971501234567"),
    ("+971 50 123 4567", "+971501234567"),
    ("501234567", "+971501234567"),
    ("", None),
    (None, None),
])
def test_format_phone_number(raw, expected):
    assert format_phone_number(raw) == expected


def test_parse_emirates_accepts_list_and_json_string():
    assert parse_emirates(["Dubai", None]) == ["Dubai"]
    assert parse_emirates('["Sharjah", "Ajman"]') == ["Sharjah", "Ajman"]
    assert parse_emirates("not json") == []
    assert parse_emirates(None) == []


def test_pagination_defaults_and_bad_input():
    assert get_pagination_params(None, None) == (1, 10, 0)
    assert get_pagination_params("3", "20") == (3, 20, 40)
    assert get_pagination_params("-1", "abc") == (1, 10, 0)


def test_parse_limit_unlimited_values():
    assert parse_limit(None, 20) == 20
    assert parse_limit("all", 20) is None
    assert parse_limit("0", 20) is None
    assert parse_limit("5", 20) == 5


def test_pagination_block():
    assert pagination_block(45, 2, 20)["pages"] == 3
    assert pagination_block(0, 1, 20)["pages"] == 0
    unlimited = pagination_block(7, 1, None)
    assert unlimited["unlimited"] is True
    assert unlimited["limit"] == 7


def test_sanitize_filename_strips_unsafe_characters():
    assert sanitize_filename("my file (1).pdf") == "my_file_1.pdf"
    assert sanitize_filename("../../etc/passwd") == "....etcpasswd"


def test_has_emirate_access_by_role():
    for role in (UserRole.super_admin, UserRole.lawyer, UserRole.client):
        assert has_emirate_access(User(role=role, assigned_emirates=[]), "Fujairah") is True

    coordinator = User(role=UserRole.coordinator, assigned_emirates=[" dubai ", "Sharjah"])
    assert has_emirate_access(coordinator, "Dubai") is True
    assert has_emirate_access(coordinator, "SHARJAH") is True
    assert has_emirate_access(coordinator, "Ajman") is False
    assert has_emirate_access(coordinator, None) is False

    counsellor = User(role=UserRole.counsellor, assigned_emirates='["Ajman"]')
    assert has_emirate_access(counsellor, "ajman") is True
    assert has_emirate_access(User(role=UserRole.counsellor, assigned_emirates="not json"), "Ajman") is False


def test_emirate_filter_for_scoped_and_unscoped_roles():
    assert get_emirate_filter(User(role=UserRole.super_admin, assigned_emirates=["Dubai"])) is None
    assert get_emirate_filter(User(role=UserRole.lawyer)) is None
    assert get_emirate_filter(User(role=UserRole.client)) is None

    scoped = User(role=UserRole.coordinator, assigned_emirates=[" dubai", "Ras al khaimah", "al ain"])
    assert get_emirate_filter(scoped) == ["Dubai", "Ras Al Khaimah", "Al Ain"]

    assert get_emirate_filter(User(role=UserRole.counsellor, assigned_emirates=[])) == [NO_EMIRATE_SENTINEL]
    assert get_emirate_filter(User(role=UserRole.counsellor, assigned_emirates=None)) == [NO_EMIRATE_SENTINEL]


def test_validate_emirate_returns_canonical_name():
    assert validate_emirate("dubai") == "Dubai"
    assert validate_emirate(" Ras Al Khaimah ") == "Ras Al Khaimah"
    with pytest.raises(HTTPException) as exc:
        validate_emirate("Al Ain")
    assert exc.value.status_code == 400
    assert validate_facility_emirate("al ain") == "Al Ain"


def test_validate_choice_respects_allowed_subset():
    assert validate_choice("closed", CaseStatus) == CaseStatus.closed
    with pytest.raises(HTTPException):
        validate_choice("closed", CaseStatus, allowed=(CaseStatus.active,))
    with pytest.raises(HTTPException):
        validate_choice("archived", CaseStatus)


def test_require_fields_and_password_length():
    require_fields({"name": "x", "code": "y"}, ("name", "code"))
    with pytest.raises(HTTPException) as exc:
        require_fields({"name": "  "}, ("name",), "Name is required")
    assert exc.value.detail == "Name is required"
    with pytest.raises(HTTPException):
        validate_password("123")


def test_csv_round_trip_keeps_columns():
    text = rows_to_csv([{"name": "Labour", "code": "LAB", "extra": "ignored"}], ("name", "code"))
    assert text.splitlines()[0] == "name,code"
    assert csv_to_rows(text) == [{"name": "Labour", "code": "LAB"}]


def test_parse_import_data_formats():
    assert parse_import_data('[{"name": "A"}]', "json") == [{"name": "A"}]
    assert parse_import_data([{"name": "B"}], "json") == [{"name": "B"}]
    assert parse_import_data("name,emirate\nX,Dubai\n", "csv") == [{"name": "X", "emirate": "Dubai"}]
    with pytest.raises(HTTPException):
        parse_import_data("{not json", "json")
    with pytest.raises(HTTPException):
        parse_import_data([], "json")


def test_is_no_and_import_summary():
    assert is_no("No") and is_no(False) and is_no("0")
    assert not is_no("Yes") and not is_no(True)
    assert import_summary(2, [{"item": {}, "error": "x"}]) == {
        "success": 2, "failed": 1, "errors": [{"item": {}, "error": "x"}],
    }
