"""
Global exception handlers
"""
import re

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError

from app.core.logger import logger

_UNIQUE_MARKERS = ("unique", "duplicate")


def _validation_errors(exc: RequestValidationError) -> list:
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc) or None, "message": err.get("msg")})
    return errors


def _duplicate_fields(message: str) -> list:
    # SQLite: "UNIQUE constraint failed: users.email"
    match = re.search(r"UNIQUE constraint failed: ([\w., ]+)", message)
    if match:
        return [part.strip().split(".")[-1] for part in match.group(1).split(",")]
    # PostgreSQL: "Key (email)=(x) already exists"
    match = re.search(r"Key \(([^)]+)\)=", message)
    if match:
        return [part.strip() for part in match.group(1).split(",")]
    return []


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Validation error", "errors": _validation_errors(exc)},
    )


async def integrity_error_handler(request: Request, exc: IntegrityError):
    message = str(exc.orig) if exc.orig is not None else str(exc)
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {message}")
    if any(marker in message.lower() for marker in _UNIQUE_MARKERS):
        return JSONResponse(
            status_code=409,
            content={"success": False, "message": "Duplicate entry", "fields": _duplicate_fields(message)},
        )
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Invalid reference: related record does not exist"},
    )


async def operational_error_handler(request: Request, exc: OperationalError):
    logger.error(f"Database unavailable on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"success": False, "message": "Database temporarily unavailable"},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(OperationalError, operational_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
