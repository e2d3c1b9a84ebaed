"""
Structured logging for the leaderboard service.

Events go through structlog into stdlib logging on stdout. Debug mode
renders them for the console; otherwise each event is one JSON line.
"""

import logging
import os
import sys
import time
import uuid
from collections.abc import Awaitable, Callable
from functools import lru_cache, wraps
from typing import Any, Optional, TypeVar

import structlog
from structlog.types import EventDict, Processor

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

APP_NAME = "social_leaderboard"


def _debug_from_env() -> bool:
    return os.getenv("DEBUG", "false").lower() in ("1", "true", "yes")


def _add_app_name(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["app"] = APP_NAME
    return event_dict


def get_processors(debug: Optional[bool] = None) -> list[Processor]:
    """Processor chain ending in a console renderer (debug) or JSON renderer."""
    if debug is None:
        debug = _debug_from_env()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _add_app_name,
    ]

    if debug:
        return shared_processors + [
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        ]
    return shared_processors + [
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


@lru_cache(maxsize=4)
def configure_logging(level: str = "INFO", debug: Optional[bool] = None) -> None:
    """
    Configure structlog and the root logger.

    Safe to call more than once: a later call with a different level or
    debug flag reconfigures, repeated calls with the same arguments are no-ops.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    # basicConfig does nothing once the root logger has handlers
    logging.getLogger().setLevel(log_level)

    structlog.configure(
        processors=get_processors(debug),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(name)  # type: ignore[no-any-return]


def bind_context(**kwargs: Any) -> None:
    """Bind values included in every later event of the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


def log_timing(
    operation: str, logger: Optional[structlog.stdlib.BoundLogger] = None
) -> Callable[[F], F]:
    """
    Decorator to log coroutine timing.

    Usage:
        @log_timing("leaderboard_refresh")
        async def refresh():
            ...
    """

    def decorator(func: F) -> F:
        _logger = logger or get_logger(func.__module__)

        @wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
                elapsed = time.perf_counter() - start
                _logger.info(
                    "operation_complete", operation=operation, duration_seconds=round(elapsed, 3)
                )
                return result
            except Exception as e:
                elapsed = time.perf_counter() - start
                _logger.error(
                    "operation_failed",
                    operation=operation,
                    duration_seconds=round(elapsed, 3),
                    error=str(e),
                )
                raise

        return wrapper  # type: ignore

    return decorator


class RequestLoggingMiddleware:
    """
    Logs ``request_started`` and ``request_complete`` for each HTTP request.

    Must sit inside RequestIDMiddleware so both events carry the
    ``X-Request-ID`` value; requests without one get a short random id.
    """

    def __init__(self, app):
        self.app = app
        self._logger: Optional[structlog.stdlib.BoundLogger] = None

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        if self._logger is None:
            self._logger = get_logger("http")
        return self._logger

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        request_id = scope.get("state", {}).get("request_id") or uuid.uuid4().hex[:8]
        bind_context(request_id=request_id)

        method = scope.get("method", "")
        path = scope.get("path", "")
        self.logger.info("request_started", method=method, path=path)

        status_code = 500

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 500)
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            if status_code >= 500:
                log_method = self.logger.error
            elif status_code >= 400:
                log_method = self.logger.warning
            else:
                log_method = self.logger.info
            log_method(
                "request_complete",
                method=method,
                path=path,
                status_code=status_code,
                duration_seconds=round(time.perf_counter() - start_time, 3),
            )
            clear_context()


__all__ = [
    "configure_logging",
    "get_logger",
    "get_processors",
    "bind_context",
    "clear_context",
    "log_timing",
    "RequestLoggingMiddleware",
]
