"""Error envelope helpers and exception handlers.

Error responses use a consistent envelope:
- Error: { "error": { "code": "E_...", "message": "..." } }

CORS resolution errors surface from the middleware layer, outside the
router's ExceptionMiddleware, so they reach the host through the catch-all
Exception handler. unhandled_exception_handler() keeps their code.
"""

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from corsgate.errors import CorsError, CorsErrorCode
from corsgate.logging import get_logger

logger = get_logger(__name__)


def error_response(code: CorsErrorCode, message: str) -> dict[str, Any]:
    """Create an error response envelope.

    Args:
        code: The error code enum value.
        message: Human-readable error message.

    Returns:
        Dict with "error" key containing code and message.
    """
    return {"error": {"code": code.value, "message": message}}


async def cors_error_handler(request: Request, exc: CorsError) -> JSONResponse:
    """Handle CorsError exceptions and return proper JSON response."""
    logger.error("cors_error", code=exc.code.value, message=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.code, exc.message),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions and return 500 with E_INTERNAL.

    Logs the exception server-side but never leaks details to client.
    """
    if isinstance(exc, CorsError):
        return await cors_error_handler(request, exc)

    logger.exception("unhandled_exception", error_type=type(exc).__name__)

    return JSONResponse(
        status_code=500,
        content=error_response(CorsErrorCode.E_INTERNAL, "Internal server error"),
    )
