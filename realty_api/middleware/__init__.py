"""
Middleware package for the Realty API.
"""

from .request_logging import RequestLoggingMiddleware
from .cache import CacheMiddleware

__all__ = [
    "RequestLoggingMiddleware",
    "CacheMiddleware",
]
