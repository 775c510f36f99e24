from __future__ import annotations

import logging
import uuid

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class PlantError(Exception):
    """Base class for fiber plant domain failures."""

    code = "plant_error"
    status_code = 500

    def __init__(self, message: str, details: object | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(PlantError):
    """Malformed input; rejected before anything is written."""

    code = "validation_error"
    status_code = 400


class InvalidOperationError(PlantError):
    """Structurally unsafe edit; the entity is left unchanged."""

    code = "invalid_operation"
    status_code = 409


class InvalidSplitIndexError(ValidationError, InvalidOperationError):
    """Split index does not name an interior vertex."""

    code = "invalid_split_index"
    status_code = 400


class InvalidTransitionError(InvalidOperationError):
    """Editing action not allowed from the current session state."""

    code = "invalid_transition"


class NotFoundError(PlantError):
    code = "not_found"
    status_code = 404


class PersistenceError(PlantError):
    """Storage gateway failure, surfaced verbatim."""

    code = "persistence_error"
    status_code = 503


class PartialFailureError(PersistenceError):
    """A multi-step write stopped half way and could not be undone."""

    code = "partial_failure"
    status_code = 500


def _error_payload(code: str, message: str, details: object, request_id: str | None):
    return {"code": code, "message": message, "details": details, "request_id": request_id}


def _request_id(request: Request) -> str:
    rid = getattr(request.state, "request_id", None)
    return str(rid) if rid else "unknown"


def register_error_handlers(app) -> None:
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request.state.request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        response = await call_next(request)
        response.headers["x-request-id"] = request.state.request_id
        return response

    @app.exception_handler(PlantError)
    async def plant_error_handler(request: Request, exc: PlantError):
        if isinstance(exc, PartialFailureError):
            logger.error(
                "Partial write on %s %s: %s",
                request.method,
                request.url.path,
                exc.message,
                extra={"request_id": _request_id(request)},
            )
        elif isinstance(exc, PersistenceError):
            logger.warning(
                "Storage failure on %s %s: %s",
                request.method,
                request.url.path,
                exc.message,
                extra={"request_id": _request_id(request)},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_payload(exc.code, exc.message, exc.details, _request_id(request)),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_payload(
                f"http_{exc.status_code}", message, None, _request_id(request)
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            error_copy = dict(error)
            # ctx may carry exception instances that JSON cannot encode
            error_copy.pop("ctx", None)
            if "input" in error_copy and not isinstance(
                error_copy["input"], (str, int, float, bool, list, dict, type(None))
            ):
                error_copy["input"] = str(error_copy["input"])
            errors.append(error_copy)
        return JSONResponse(
            status_code=422,
            content=_error_payload(
                "validation_error", "Validation error", errors, _request_id(request)
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "Unhandled exception on %s %s",
            request.method,
            request.url.path,
            extra={"request_id": _request_id(request)},
        )
        return JSONResponse(
            status_code=500,
            content=_error_payload(
                "internal_error", "Internal server error", None, _request_id(request)
            ),
        )
