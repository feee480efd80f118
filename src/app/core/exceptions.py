"""
Service Error Base

Every module's service layer raises subclasses of ServiceError. Routers turn
them into HTTPException responses shaped as {"error": CODE, "message": text}.
"""

from fastapi import HTTPException


class ServiceError(Exception):
    """Base exception for service-layer errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class ValidationError(ServiceError):
    """Raised when user-supplied input is malformed."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
        )


def to_http_exception(e: ServiceError) -> HTTPException:
    """Convert a service error to an HTTPException."""
    detail = {
        "error": e.error_code,
        "message": e.message,
    }
    field = getattr(e, "field", None)
    if field:
        detail["field"] = field
    return HTTPException(status_code=e.status_code, detail=detail)


def internal_error() -> HTTPException:
    """Generic 500 response that leaks nothing about the failure."""
    return HTTPException(
        status_code=500,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
