"""
Structured logging with JSON output.

Features:
- JSON output for log aggregation, console output for development
- Request context propagation (request_id, trace_id, authenticated user)
- Credential redaction

Architecture:
- structlog for structured logging, rendered through the standard library
- Context variables for request-scoped data
"""

import logging
import sys
import time
import uuid
from contextvars import ContextVar

import structlog
from structlog.types import EventDict, Processor

# Context variables for request-scoped data
# These propagate across async boundaries automatically
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
user_var: ContextVar[str | None] = ContextVar("user", default=None)
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)

SENSITIVE_FIELDS = frozenset(
    {
        "authorization",
        "password",
        "password_hash",
        "secret",
        "token",
    }
)


# ============================================================================
# CUSTOM PROCESSORS
# ============================================================================


def add_request_context(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Add request context to log events.

    Injects:
    - request_id: Unique ID for each HTTP request
    - user: Basic auth login (if authenticated)
    - trace_id: Distributed tracing ID
    """
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id

    user = user_var.get()
    if user:
        event_dict["user"] = user

    trace_id = trace_id_var.get()
    if trace_id:
        event_dict["trace_id"] = trace_id

    return event_dict


def add_timestamp(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add ISO 8601 timestamp with microsecond precision.

    Format: 2025-01-15T10:30:45.123456Z
    """
    event_dict["timestamp"] = (
        time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime())
        + f".{int((time.time() % 1) * 1000000):06d}Z"
    )
    return event_dict


def add_service_metadata(
    service_name: str, service_version: str, environment: str
) -> Processor:
    """
    Build a processor adding service name, version and environment.

    Values come from LoggingConfig (LOGGING_SERVICE_NAME,
    LOGGING_SERVICE_VERSION, LOGGING_ENVIRONMENT) of the running app.
    """

    def processor(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict["service"] = service_name
        event_dict["version"] = service_version
        event_dict["environment"] = environment
        return event_dict

    return processor


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Redact credential-like fields so they never reach log output.

    Long values keep a short prefix for debugging; short ones are replaced
    entirely.
    """
    for key in list(event_dict.keys()):
        if key.lower() in SENSITIVE_FIELDS:
            value = event_dict[key]
            if isinstance(value, str) and len(value) > 12:
                event_dict[key] = f"{value[:6]}***REDACTED***"
            else:
                event_dict[key] = "***REDACTED***"

    return event_dict


# ============================================================================
# LOGGER CONFIGURATION
# ============================================================================


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = True,
    colorized: bool = False,
    service_name: str = "customer-crud",
    service_version: str = "0.1.0",
    environment: str = "development",
) -> None:
    """
    Configure structured logging.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Use JSON output (True for production, False for development)
        colorized: Colorize console output (only for development)
        service_name, service_version, environment: Metadata added to every event

    JSON output:
        {
          "timestamp": "2025-01-15T10:30:45.123456Z",
          "level": "info",
          "event": "HTTP request completed",
          "service": "customer-crud",
          "request_id": "req_abc123",
          "method": "GET",
          "path": "/customers/5",
          "status_code": 200
        }
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_request_context,
        add_service_metadata(service_name, service_version, environment),
        redact_sensitive_fields,
        add_timestamp,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=colorized)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("Customer saved", customer_id=5)
    """
    return structlog.get_logger(name)


# ============================================================================
# CONTEXT MANAGERS
# ============================================================================


class RequestContext:
    """
    Context manager for request-scoped logging.

    Generates request_id and trace_id when not supplied and resets every
    context variable on exit so nothing leaks into the next request.
    """

    def __init__(
        self,
        request_id: str | None = None,
        trace_id: str | None = None,
        user: str | None = None,
    ):
        self.request_id = request_id or f"req_{uuid.uuid4().hex[:16]}"
        self.trace_id = trace_id or f"trace_{uuid.uuid4().hex[:16]}"
        self.user = user

        self._request_id_token = None
        self._user_token = None
        self._trace_id_token = None

    def __enter__(self):
        self._request_id_token = request_id_var.set(self.request_id)
        # Always set user (even if None) so it can be reliably reset.
        self._user_token = user_var.set(self.user)
        self._trace_id_token = trace_id_var.set(self.trace_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._request_id_token is not None:
            request_id_var.reset(self._request_id_token)
        if self._user_token is not None:
            user_var.reset(self._user_token)
        if self._trace_id_token is not None:
            trace_id_var.reset(self._trace_id_token)


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


def set_user(user: str) -> None:
    """Set authenticated user for current context."""
    user_var.set(user)


def get_request_id() -> str | None:
    return request_id_var.get()


def get_user() -> str | None:
    return user_var.get()


def get_trace_id() -> str | None:
    return trace_id_var.get()
