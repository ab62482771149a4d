"""
Observability infrastructure.

Components:
- logging.py: Structured JSON logging with request context
- logging_middleware.py: Request start/finish logging
"""

from customer_crud.observability.logging import configure_logging, get_logger
from customer_crud.observability.logging_middleware import StructuredLoggingMiddleware

__all__ = [
    "configure_logging",
    "get_logger",
    "StructuredLoggingMiddleware",
]
