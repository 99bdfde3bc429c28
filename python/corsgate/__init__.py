"""CORS response-header negotiation as pure ASGI middleware."""

from corsgate.errors import ConfigResolutionError, CorsError, OriginResolutionError
from corsgate.middleware.cors import CORSMiddleware
from corsgate.policy import CorsOptions, Policy, RequestView

__all__ = [
    "CORSMiddleware",
    "ConfigResolutionError",
    "CorsError",
    "CorsOptions",
    "OriginResolutionError",
    "Policy",
    "RequestView",
]
