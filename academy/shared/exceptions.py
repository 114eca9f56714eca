"""Custom exception hierarchy and handlers."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from academy.core.enums import AuthFailureEnum

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    status_code = 400
    code = "app_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def details(self) -> dict | None:
        """Extra structured payload rendered next to the message."""
        return None


class NotFoundException(AppException):
    """Raised when entity is not found."""

    status_code = 404
    code = "not_found"


class ConflictException(AppException):
    """Raised when entity conflicts with current state."""

    status_code = 409
    code = "conflict"


class UnauthorizedException(AppException):
    """Raised when user has no rights for operation."""

    status_code = 403
    code = "forbidden"


class BusinessRuleException(AppException):
    """Raised when business rule validation fails."""

    status_code = 422
    code = "business_rule_violation"


class ValidationException(AppException):
    """Raised when required input is missing, before anything is persisted."""

    status_code = 422
    code = "validation_error"

    def __init__(self, message: str, fields: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.fields = list(fields)

    def details(self) -> dict | None:
        return {"fields": self.fields}


class PersistenceException(AppException):
    """Raised when the record store rejects or fails an operation."""

    status_code = 503
    code = "persistence_error"

    def __init__(self, message: str, operation: str, collection: str) -> None:
        super().__init__(message)
        self.operation = operation
        self.collection = collection

    def details(self) -> dict | None:
        return {"operation": self.operation, "collection": self.collection}


class PartialFailureException(AppException):
    """Raised when a multi-step operation fails after some steps succeeded."""

    status_code = 500
    code = "partial_failure"

    def __init__(
        self,
        message: str,
        *,
        completed_steps: Sequence[str],
        failed_step: str,
        compensated: bool,
    ) -> None:
        super().__init__(message)
        self.completed_steps = list(completed_steps)
        self.failed_step = failed_step
        self.compensated = compensated

    def details(self) -> dict | None:
        return {
            "completed_steps": self.completed_steps,
            "failed_step": self.failed_step,
            "compensated": self.compensated,
        }


_AUTH_MESSAGES: dict[AuthFailureEnum, str] = {
    AuthFailureEnum.ALREADY_REGISTERED: "This email is already registered",
    AuthFailureEnum.INVALID_CREDENTIALS: "Invalid email or password",
    AuthFailureEnum.INACTIVE: "Account is disabled",
    AuthFailureEnum.INVALID_TOKEN: "Session is invalid or expired",
    AuthFailureEnum.GENERIC: "Authentication failed",
}


class AuthException(AppException):
    """Raised when the identity provider rejects credentials or signup."""

    code = "auth_error"

    def __init__(self, reason: AuthFailureEnum, message: str | None = None) -> None:
        super().__init__(message or _AUTH_MESSAGES[reason])
        self.reason = reason
        self.status_code = 409 if reason == AuthFailureEnum.ALREADY_REGISTERED else 401

    def details(self) -> dict | None:
        return {"reason": self.reason.value}


async def app_exception_handler(_: Request, exc: AppException) -> JSONResponse:
    """Handle custom domain exceptions."""
    error: dict = {"code": exc.code, "message": exc.message}
    details = exc.details()
    if details is not None:
        error["details"] = details
    return JSONResponse(status_code=exc.status_code, content={"error": error})


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions in unified shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": "http_error", "message": str(exc.detail)}},
    )


async def unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "internal_error", "message": "Internal server error"}},
    )


def register_exception_handlers(app) -> None:
    """Register global exception handlers."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
