from .logging import RequestLoggingMiddleware
from .session import WebSessionMiddleware

__all__ = ["RequestLoggingMiddleware", "WebSessionMiddleware"]
