"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Maps domain and framework
exceptions to HTTP responses (SRP, OCP for adding new handlers).

Every error body carries the request id set by RequestIDMiddleware; server
errors also carry the trace id so a report can be matched to its span.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.domain.exceptions import (
    EmailDeliveryError,
    LeaseLostError,
    TaskPulseException,
    TransientEmailError,
    WorkflowException,
)
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import get_trace_id

logger = get_logger(__name__)

# Map domain error_code to HTTP status when applicable
_ERROR_CODE_STATUS: dict[str, int] = {
    "RESOURCE_NOT_FOUND": 404,
    "AUTHENTICATION_ERROR": 401,
    "PERMISSION_DENIED": 403,
    "VALIDATION_ERROR": 400,
    "INVALID_TRIGGER_PAYLOAD": 400,
    "SERVICE_UNAVAILABLE": 503,
}

# Workflow errors reaching a request, most specific class first.
# Anything else from the workflow taxonomy is a server fault (500).
_WORKFLOW_STATUS: tuple[tuple[type[WorkflowException], int], ...] = (
    (TransientEmailError, 503),
    (EmailDeliveryError, 502),
    (LeaseLostError, 409),
)


def status_for(exc: TaskPulseException) -> int:
    """HTTP status for a domain exception."""
    if exc.error_code in _ERROR_CODE_STATUS:
        return _ERROR_CODE_STATUS[exc.error_code]
    if isinstance(exc, WorkflowException):
        for cls, status in _WORKFLOW_STATUS:
            if isinstance(exc, cls):
                return status
        return 500
    return 400


def _with_ids(request: Request, content: dict[str, Any], status: int) -> dict[str, Any]:
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        content["request_id"] = request_id
    if status >= 500:
        trace_id = get_trace_id()
        if trace_id:
            content["trace_id"] = trace_id
    return content


async def _taskpulse_exception_handler(
    request: Request, exc: TaskPulseException
) -> JSONResponse:
    """Return JSON from TaskPulseException.to_dict() with appropriate status code."""
    status = status_for(exc)
    headers: dict[str, str] | None = None
    if status >= 500:
        logger.error(
            "%s %s: %s [%s] trace_id=%s",
            request.method,
            request.url.path,
            exc.message,
            exc.error_code,
            get_trace_id(),
        )
    if isinstance(exc, TransientEmailError):
        retry_after = int(get_settings().workflow_retry_base_seconds)
        headers = {"Retry-After": str(max(retry_after, 1))}
    return JSONResponse(
        status_code=status,
        content=_with_ids(request, exc.to_dict(), status),
        headers=headers,
    )


async def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 422 with validation error details."""
    return JSONResponse(
        status_code=422,
        content=_with_ids(
            request,
            {
                "error": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": jsonable_encoder(exc.errors()),
            },
            422,
        ),
    )


async def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Return JSON for Starlette HTTP exceptions (status + detail)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_with_ids(
            request, {"error": "HTTP_ERROR", "message": exc.detail}, exc.status_code
        ),
        headers=getattr(exc, "headers", None),
    )


async def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s trace_id=%s", exc, get_trace_id())
    settings = get_settings()
    detail: Any = str(exc) if settings.debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content=_with_ids(request, {"error": "INTERNAL_ERROR", "message": detail}, 500),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app.

    Call once after creating the app. Handlers: TaskPulseException (and
    subclasses), RequestValidationError, StarletteHTTPException, generic Exception.
    """
    app.add_exception_handler(TaskPulseException, _taskpulse_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
