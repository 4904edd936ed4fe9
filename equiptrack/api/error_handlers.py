"""Error Handlers — map EquipTrack failures onto the REST error envelope.

Invariants:
    - Every error body has the shape {"error": {"code", "message", "category", "severity", ...}}
    - Storage and photo store outages answer 503 with a Retry-After hint
    - Read-only interceptions answer 403 and carry the access-request offer
    - Unexpected exceptions answer 500 without internal details

Design Decisions:
    - Log level follows ErrorSeverity, so a blocked edit on a shared copy is an
      info line while a failed slot write is an error
    - ErrorContext fields go into the log record extras for the JSON formatter
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from equiptrack.core.errors import EquipTrackError, ErrorCategory, ErrorSeverity

logger = logging.getLogger(__name__)

STORAGE_RETRY_AFTER_SECONDS = 5

_LOG_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EquipTrackError, handle_equiptrack_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


async def handle_equiptrack_error(request: Request, exc: EquipTrackError) -> JSONResponse:
    ctx = exc.context
    logger.log(
        _LOG_LEVELS[exc.severity],
        f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "day": ctx.day,
            "item_id": ctx.item_id,
            "photo_key": ctx.photo_key,
        },
    )
    headers = None
    if exc.category is ErrorCategory.STORAGE:
        headers = {"Retry-After": str(STORAGE_RETRY_AFTER_SECONDS)}
    return JSONResponse(exc.to_response(), status_code=exc.http_status, headers=headers)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part != "body"),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    logger.info(
        f"Rejected request to {request.url.path}: "
        + ", ".join(f["field"] or "body" for f in fields),
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    body = _envelope(
        "VALIDATION_ERROR", "Invalid request data",
        ErrorCategory.VALIDATION, ErrorSeverity.WARNING,
    )
    body["error"]["details"] = fields
    return JSONResponse(body, status_code=status.HTTP_400_BAD_REQUEST)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
        extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        _envelope(
            "INTERNAL_ERROR", "An unexpected error occurred",
            ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL,
        ),
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _envelope(
    code: str, message: str, category: ErrorCategory, severity: ErrorSeverity,
) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "category": category.value,
            "severity": severity.value,
        },
    }
