"""
Flat CSV / JSON export and import helpers
"""
import csv
import io
import json
from typing import Any, Dict, Iterable, List, Sequence

from fastapi import HTTPException
from fastapi.responses import JSONResponse, StreamingResponse


def yes_no(flag: Any) -> str:
    return "Yes" if flag else "No"


def is_no(value: Any) -> bool:
    """Import rows deactivate on is_active: No / false / 0"""
    if isinstance(value, bool):
        return value is False
    return str(value).strip().lower() in ("no", "false", "0")


def rows_to_csv(rows: Sequence[Dict[str, Any]], columns: Sequence[str]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(columns), extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow({key: "" if row.get(key) is None else row.get(key) for key in columns})
    return buffer.getvalue()


def csv_to_rows(text: str) -> List[Dict[str, Any]]:
    reader = csv.DictReader(io.StringIO(text.strip()))
    return [
        {(key or "").strip(): (value.strip() if isinstance(value, str) else value) for key, value in row.items()}
        for row in reader
    ]


def export_response(rows: List[Dict[str, Any]], columns: Sequence[str], fmt: str, filename: str, attachment: bool = False):
    """CSV stream for format=csv, otherwise JSON rows."""
    if (fmt or "json").lower() == "csv":
        return StreamingResponse(
            iter([rows_to_csv(rows, columns)]),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}.csv"'},
        )
    if attachment:
        return JSONResponse(
            content=json.loads(json.dumps(rows, default=str)),
            headers={"Content-Disposition": f'attachment; filename="{filename}.json"'},
        )
    return {"success": True, "data": rows, "count": len(rows)}


def require_import_rows(payload: Any) -> List[Dict[str, Any]]:
    if not isinstance(payload, list):
        raise HTTPException(status_code=400, detail="Import data must be an array")
    if not payload:
        raise HTTPException(status_code=400, detail="Import data is empty")
    return payload


def parse_import_data(data: Any, fmt: str) -> List[Dict[str, Any]]:
    """data may be a CSV string, a JSON string or an already-decoded array."""
    if (fmt or "json").lower() == "csv":
        if not isinstance(data, str):
            raise HTTPException(status_code=400, detail="CSV import data must be a string")
        return require_import_rows(csv_to_rows(data))
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid JSON import data")
    return require_import_rows(data)


def import_summary(success: int, errors: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    errors = list(errors)
    return {"success": success, "failed": len(errors), "errors": errors}
