"""
Domain error taxonomy and the FastAPI handlers that render it.

Services raise these exceptions; the handlers turn them into JSON bodies of the
form {"message": ..., "code": ...}. Internal details never reach the client.
"""
import logging
from typing import Optional, Sequence

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"message": self.message, "code": self.code}


class AuthenticationError(AppError):
    """No valid principal on the request."""
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class AuthorizationError(AppError):
    """Principal is known but not allowed to act on the resource."""
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class ValidationError(AppError):
    """Malformed or missing input. Always names the offending fields."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"

    def __init__(self, message: str, fields: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.fields = list(fields or [])

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["fields"] = self.fields
        return body


class StateConflictError(AppError):
    """Operation is illegal in the resource's current lifecycle state."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "state_conflict"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class DuplicateError(AppError):
    """Uniqueness conflict, e.g. an email that is already registered."""
    status_code = status.HTTP_409_CONFLICT
    code = "duplicate"


class UpstreamError(AppError):
    """Analysis Oracle or Room Provisioning Service failed or timed out."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "upstream_error"


def _field_name(loc: Sequence) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or "request"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": _field_name(err.get("loc", ())), "message": str(err.get("msg", "Invalid value"))}
        for err in exc.errors()
    ]
    fields = sorted({err["field"] for err in errors})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "message": f"Invalid input data: {', '.join(fields)}",
            "code": ValidationError.code,
            "fields": fields,
            "errors": errors,
        },
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": message},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error", "code": AppError.code},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
