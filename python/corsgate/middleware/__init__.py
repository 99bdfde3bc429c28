"""Middleware modules for corsgate."""

from corsgate.middleware.cors import CORSMiddleware

__all__ = ["CORSMiddleware"]
