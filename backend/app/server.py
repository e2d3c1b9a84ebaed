"""
Process entry point.

Loads configuration (missing required variables exit 1 with a message),
then serves the app with uvicorn. Uvicorn turns SIGINT/SIGTERM into a
graceful shutdown; the lifespan handler closes the cache store, and the
exit code reports whether that cleanup succeeded.
"""

import sys

import uvicorn

from core.config import load_settings
from core.exceptions import ConfigurationError
from core.logging import configure_logging, get_logger

from .main import create_app

HOST = "0.0.0.0"


def main() -> int:
    try:
        settings = load_settings()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        if e.missing:
            print(f"Check environment variables: {', '.join(e.missing)}", file=sys.stderr)
        return 1

    log_level = "DEBUG" if settings.debug else "INFO"
    configure_logging(level=log_level, debug=settings.debug)
    logger = get_logger("server")

    app = create_app(settings)
    logger.info("server_starting", host=HOST, port=settings.server_port)
    uvicorn.run(
        app,
        host=HOST,
        port=settings.server_port,
        log_level=log_level.lower(),
    )

    if app.state.cleanup_failed:
        logger.error("server_exit", code=1)
        return 1
    logger.info("server_exit", code=0)
    return 0


if __name__ == "__main__":
    sys.exit(main())
