"""CORS error definitions.

Both resolution failures are fatal for the current request only. They are
raised out of the middleware unchanged so the host's error handling sees them.
A disallowed origin is not an error.
"""

from enum import Enum


class CorsErrorCode(str, Enum):
    """Standardized error codes for CORS resolution.

    Format: E_CATEGORY_NAME
    """

    E_CONFIG_RESOLUTION = "E_CONFIG_RESOLUTION"
    E_ORIGIN_RESOLUTION = "E_ORIGIN_RESOLUTION"

    # Used by the host error envelope for anything else
    E_INTERNAL = "E_INTERNAL"


# Error code to HTTP status mapping
ERROR_CODE_TO_STATUS: dict[CorsErrorCode, int] = {
    CorsErrorCode.E_CONFIG_RESOLUTION: 500,
    CorsErrorCode.E_ORIGIN_RESOLUTION: 500,
    CorsErrorCode.E_INTERNAL: 500,
}


class CorsError(Exception):
    """Base exception for CORS errors.

    Attributes:
        code: The error code enum value
        message: Human-readable error message
        status_code: HTTP status code (derived from code)
    """

    def __init__(self, code: CorsErrorCode, message: str):
        self.code = code
        self.message = message
        self.status_code = ERROR_CODE_TO_STATUS.get(code, 500)
        super().__init__(message)


class ConfigResolutionError(CorsError):
    """The options callback did not produce usable options."""

    def __init__(
        self,
        message: str = "CORS options could not be resolved",
        code: CorsErrorCode = CorsErrorCode.E_CONFIG_RESOLUTION,
    ):
        super().__init__(code, message)


class OriginResolutionError(CorsError):
    """The origin callback did not produce a usable origin rule."""

    def __init__(
        self,
        message: str = "CORS origin could not be resolved",
        code: CorsErrorCode = CorsErrorCode.E_ORIGIN_RESOLUTION,
    ):
        super().__init__(code, message)
