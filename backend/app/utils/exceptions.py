"""
Custom exception classes
"""
from fastapi import HTTPException


class AccountLockedError(HTTPException):
    """Raised while two-factor verification is locked"""
    def __init__(self, detail: str = "Too many failed attempts. Try again later."):
        super().__init__(
            status_code=423,
            detail=detail
        )


class ServiceUnavailableError(HTTPException):
    """Raised when the database or a provider is unreachable"""
    def __init__(self, reason: str = "Service temporarily unavailable"):
        super().__init__(
            status_code=503,
            detail=reason
        )
