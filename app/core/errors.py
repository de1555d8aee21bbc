"""
Central error handling for the Leave Engine backend

Domain exceptions raised by the services and the FastAPI handlers that
render them (and framework errors) in one consistent JSON shape.
"""
import logging
import traceback
from typing import Any, Dict, List, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class LeaveEngineError(Exception):
    """Base class for leave engine failures that map onto an HTTP status."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_content(self) -> Dict[str, Any]:
        return {"detail": self.detail}


class InvalidRange(LeaveEngineError):
    """Malformed or inverted date/time interval."""


class EndBeforeStart(InvalidRange):
    """End timestamp is not strictly after the start timestamp."""


class InvalidSchedule(LeaveEngineError):
    """Work schedule entry that cannot be correlated to a date or parsed."""


class UnknownLeaveType(LeaveEngineError):
    """Leave-type code missing or not in the registry."""


class MissingRequiredField(LeaveEngineError):
    """A mandatory field (e.g. rejection comment) was not supplied."""

    def __init__(self, field: str, detail: Optional[str] = None):
        super().__init__(detail or f"{field} is required")
        self.field = field

    def to_content(self) -> Dict[str, Any]:
        return {"detail": self.detail, "field": self.field}


class ValidationFailed(LeaveEngineError):
    """One or more blocking rule violations; carries the full lists."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, errors: List[str], warnings: Optional[List[str]] = None):
        super().__init__("Leave request failed validation")
        self.errors = list(errors)
        self.warnings = list(warnings or [])

    def to_content(self) -> Dict[str, Any]:
        return {"detail": self.detail, "errors": self.errors, "warnings": self.warnings}


class InvalidStateTransition(LeaveEngineError):
    """Action attempted against a request not pending at the expected level."""

    status_code = status.HTTP_409_CONFLICT


class NotCurrentApprover(LeaveEngineError):
    """Actor is not allowed to act on the request in its current state."""

    status_code = status.HTTP_403_FORBIDDEN


class LeaveRequestNotFound(LeaveEngineError):
    status_code = status.HTTP_404_NOT_FOUND


class EmployeeNotFound(LeaveEngineError):
    status_code = status.HTTP_404_NOT_FOUND


async def leave_engine_exception_handler(request: Request, exc: LeaveEngineError) -> JSONResponse:
    """
    Handle domain errors with the same envelope as HTTPException

    Args:
        request: FastAPI request object
        exc: LeaveEngineError instance

    Returns:
        JSONResponse with error details
    """
    content = {
        "error": True,
        "status_code": exc.status_code,
        "path": str(request.url.path),
    }
    content.update(exc.to_content())
    return JSONResponse(status_code=exc.status_code, content=content)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """
    Handle HTTPException with consistent JSON response format

    Args:
        request: FastAPI request object
        exc: HTTPException instance

    Returns:
        JSONResponse with error details
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "status_code": exc.status_code,
            "detail": exc.detail,
            "path": str(request.url.path)
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle RequestValidationError with consistent JSON response format

    Does not leak internal validation details in production.
    """
    from app.core.config import settings

    if settings.APP_ENV == "prod":
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "status_code": 422,
                "detail": "Validation error: Invalid request data",
                "path": str(request.url.path)
            }
        )

    # ctx.error may hold a ValueError instance, which is not JSON serializable
    errors = []
    for e in exc.errors():
        err = dict(e)
        if "ctx" in err and isinstance(err["ctx"], dict):
            err["ctx"] = {
                k: (str(v) if not isinstance(v, (str, int, float, bool, type(None))) else v)
                for k, v in err["ctx"].items()
            }
        errors.append(err)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": True,
            "status_code": 422,
            "detail": "Validation error",
            "errors": errors,
            "path": str(request.url.path)
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions with consistent JSON response format

    Does not leak internal error details in production.
    """
    from app.core.config import settings

    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    if settings.APP_ENV == "prod":
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "status_code": 500,
                "detail": "Internal server error",
                "path": str(request.url.path)
            }
        )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": True,
            "status_code": 500,
            "detail": str(exc),
            "path": str(request.url.path),
            "traceback": traceback.format_exc() if settings.APP_ENV == "local" else None
        }
    )
