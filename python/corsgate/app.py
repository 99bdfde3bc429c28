"""FastAPI application creation and configuration.

This module creates a FastAPI application wired with the CORS middleware,
the error handlers and a /health route. Hosts with their own application
only need corsgate.middleware.CORSMiddleware.

Middleware Ordering:
- CORSMiddleware is added LAST so it runs FIRST (outermost after the
  built-in ServerErrorMiddleware)
- Resolution errors therefore reach unhandled_exception_handler
"""

from fastapi import FastAPI

from corsgate.config import get_settings
from corsgate.errors import CorsError
from corsgate.logging import configure_logging, get_logger
from corsgate.middleware.cors import CORSMiddleware
from corsgate.resolver import OptionsSource
from corsgate.responses import cors_error_handler, unhandled_exception_handler

logger = get_logger(__name__)


def create_app(options: OptionsSource = None, configure_logs: bool = True) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        options: CORS options or options callback. Defaults to the options
            described by the environment settings.
        configure_logs: If True, configure structlog from settings.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()
    if configure_logs:
        configure_logging(json_format=settings.log_json)

    app = FastAPI(title="corsgate", version="0.1.0")

    app.add_exception_handler(CorsError, cors_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    if options is None:
        options = settings.to_cors_options()

    app.add_middleware(CORSMiddleware, options=options)
    logger.info("cors_middleware_enabled", env=settings.corsgate_env.value)

    return app
