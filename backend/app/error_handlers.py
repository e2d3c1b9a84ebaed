"""
Custom exception handlers for FastAPI.

Unhandled errors become a 500 with a generic error string plus the
underlying message for diagnostics. They never crash the process.
"""

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from core.logging import get_logger

logger = get_logger("backend.errors")

INTERNAL_ERROR = "Internal server error"


def _get_request_id() -> str:
    """Get the current request ID from the logging context."""
    return structlog.contextvars.get_contextvars().get("request_id", "-")


def error_payload(error: str, message: str) -> dict:
    return {"error": error, "message": message}


def internal_error_response(exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content=error_payload(INTERNAL_ERROR, str(exc) or type(exc).__name__),
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger.warning(
            "http_exception",
            detail=exc.detail,
            status_code=exc.status_code,
            request_id=_get_request_id(),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_payload(str(exc.detail), str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            request_id=_get_request_id(),
        )
        return internal_error_response(exc)
