"""
Centralised error handling — exception hierarchy + FastAPI handlers.

Provides:
    • Domain-specific exception classes
    • Consistent JSON error response format ({"success": false, "message": ...})
    • Automatic logging of unhandled errors
    • Request context in error responses (non-production)

Usage:
    from backend.app.core.errors import (
        CrisisAPIError,
        MissingFieldsError,
        AlertDispatchError,
        register_error_handlers,
    )

    raise MissingFieldsError(["username"])
"""

from __future__ import annotations

import logging
import traceback
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Exception Hierarchy
# ═══════════════════════════════════════════════════════════════════════════

class CrisisAPIError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        *,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        error: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.error = error
        self.details = details or {}


class ConfigurationError(CrisisAPIError):
    """Required configuration is absent — fatal at startup."""

    def __init__(self, message: str, *, missing: Optional[List[str]] = None):
        missing = list(missing or [])
        if missing:
            message = f"{message}: {', '.join(missing)}"
        super().__init__(
            message=message,
            status_code=500,
            error_code="CONFIGURATION_ERROR",
            details={"missing": missing} if missing else None,
        )
        self.missing = missing


class MissingFieldsError(CrisisAPIError):
    """Required request fields absent (400)."""

    def __init__(self, fields: List[str]):
        super().__init__(
            message="Missing required fields",
            status_code=400,
            error_code="MISSING_FIELDS",
            details={"fields": list(fields)},
        )
        self.fields = list(fields)


class OriginNotAllowedError(CrisisAPIError):
    """Cross-origin caller not on the allow-list (403)."""

    def __init__(self, origin: str):
        super().__init__(
            message="Not allowed by CORS",
            status_code=403,
            error_code="ORIGIN_NOT_ALLOWED",
            details={"origin": origin},
        )
        self.origin = origin


class ExternalServiceError(CrisisAPIError):
    """External API call failed (502)."""

    def __init__(self, service: str, message: str = "", **details: Any):
        super().__init__(
            message=f"External service '{service}' failed: {message}",
            status_code=502,
            error_code="EXTERNAL_SERVICE_ERROR",
            details={"service": service, **details},
        )
        self.service = service


class MessagingProviderError(ExternalServiceError):
    """The messaging provider rejected a send or could not be reached."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        provider_code: Optional[Any] = None,
    ):
        super().__init__(
            "twilio", message,
            http_status=status_code, provider_code=provider_code,
        )
        self.provider_message = message
        self.http_status = status_code
        self.provider_code = provider_code


class AlertDispatchError(CrisisAPIError):
    """
    Fan-out finished with at least one failed send (500).

    ``error`` is shown to the caller, so it must never carry a recipient
    number; the full ``result`` is kept for logging only.
    """

    def __init__(
        self,
        error: Optional[str],
        *,
        message: str = "Failed to send crisis alerts",
        result: Optional[Any] = None,
    ):
        super().__init__(
            message=message,
            status_code=500,
            error_code="ALERT_DISPATCH_ERROR",
            error=error,
        )
        self.result = result


# ═══════════════════════════════════════════════════════════════════════════
# Error Response Builder
# ═══════════════════════════════════════════════════════════════════════════

def _is_production(request: Optional[Request]) -> bool:
    cfg = getattr(request.app.state, "settings", None) if request else None
    return bool(cfg and cfg.is_production)


def _is_debug(request: Optional[Request]) -> bool:
    cfg = getattr(request.app.state, "settings", None) if request else None
    return bool(cfg and cfg.DEBUG)


def _build_error_response(
    status_code: int,
    error_code: str,
    message: str,
    *,
    error: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: Dict[str, Any] = {
        "success": False,
        "message": message,
        "code": error_code,
    }

    if error is not None:
        body["error"] = error
    if details:
        body["details"] = details

    # Include request path in non-production
    if request is not None and not _is_production(request):
        body["path"] = str(request.url.path)
        body["method"] = request.method

    return JSONResponse(status_code=status_code, content=body)


# ═══════════════════════════════════════════════════════════════════════════
# FastAPI Exception Handlers
# ═══════════════════════════════════════════════════════════════════════════

def register_error_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app."""

    @app.exception_handler(CrisisAPIError)
    async def handle_crisis_error(request: Request, exc: CrisisAPIError):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "API Error [%s]: %s | error=%s details=%s",
            exc.error_code, exc.message, exc.error, exc.details,
        )
        return _build_error_response(
            exc.status_code, exc.error_code, exc.message,
            error=exc.error, details=exc.details, request=request,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        logger.warning("Malformed request body: %s", exc.errors())
        return _build_error_response(
            400, "MISSING_FIELDS", "Missing required fields",
            details={"errors": jsonable_errors(exc)}, request=request,
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            logger.info("404 Not Found: %s %s", request.method, request.url.path)
            return JSONResponse(
                status_code=404,
                content={
                    "success": False,
                    "message": "Endpoint not found",
                    "path": str(request.url.path),
                    "method": request.method,
                },
            )
        if exc.status_code == 405:
            return _build_error_response(
                405, "METHOD_NOT_ALLOWED", "Method not allowed", request=request,
            )
        return _build_error_response(
            exc.status_code, "HTTP_ERROR", str(exc.detail), request=request,
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.critical(
            "Unhandled exception: %s\n%s",
            exc, traceback.format_exc(),
        )
        debug = _is_debug(request)
        return _build_error_response(
            500, "INTERNAL_ERROR", "Internal server error",
            error=str(exc) if debug else None,
            request=request,
        )


def jsonable_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    """Reduce pydantic error entries to JSON-safe location/message pairs."""
    return [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": str(err.get("msg", ""))}
        for err in exc.errors()
    ]
