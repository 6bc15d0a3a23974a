"""Structured logging for vidmeta.

Every log line can carry two pieces of context without callers passing
them explicitly:

* the HTTP request ID, bound by the request middleware;
* the source and adapter operation, bound by the source manager around
  each adapter call, so warnings raised deep inside an adapter (retries,
  malformed payloads) are attributable to the source that produced them.

The external platform authenticates with a ``key`` query parameter, so
rendered events are scrubbed of ``key=...`` fragments and the raw key is
only ever logged as a hash.
"""

import contextvars
import hashlib
import logging
import re
import sys
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional
from uuid import uuid4

import structlog

request_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "request_id", default=None
)
source_context_var: contextvars.ContextVar[Optional[Dict[str, str]]] = contextvars.ContextVar(
    "source_context", default=None
)

REDACTED = "***"

_KEY_PARAM_PATTERN = re.compile(r"([?&]key=)[^&\s'\"]+")

# Libraries whose INFO logs print full request URLs, query string included
NOISY_LOGGERS = ("httpx", "httpcore")


def hash_api_key(api_key: str) -> str:
    """
    Hash an API key for safe logging.

    Args:
        api_key: The API key to hash

    Returns:
        Hashed API key in format "sha256:first16chars"
    """
    return f"sha256:{hashlib.sha256(api_key.encode()).hexdigest()[:16]}"


def redact_key_param(text: str) -> str:
    """Mask the value of every ``key`` query parameter in ``text``."""
    return _KEY_PARAM_PATTERN.sub(rf"\g<1>{REDACTED}", text)


# ============================================================================
# Processors
# ============================================================================


def add_request_id(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add the current request ID, if any."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def add_source_context(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Add the source and operation of the adapter call in progress.

    Values passed explicitly to the log call take precedence.
    """
    context = source_context_var.get()
    if context:
        for field, value in context.items():
            event_dict.setdefault(field, value)
    return event_dict


def redact_api_keys(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Scrub ``key=`` query parameters from string values."""
    for field, value in event_dict.items():
        if isinstance(value, str) and "key=" in value:
            event_dict[field] = redact_key_param(value)
    return event_dict


# ============================================================================
# Configuration
# ============================================================================


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """
    Configure structured logging with structlog.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format ("json" or "console")
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_request_id,
        add_source_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        redact_api_keys,
    ]

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ============================================================================
# Context management
# ============================================================================


def set_request_id(request_id: Optional[str] = None) -> str:
    """
    Set the request ID for the current context.

    Args:
        request_id: Optional request ID, a new one is generated if not provided

    Returns:
        The request ID that was set
    """
    if request_id is None:
        request_id = f"req_{uuid4().hex[:12]}"
    request_id_var.set(request_id)
    return request_id


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def clear_request_id() -> None:
    request_id_var.set(None)


@contextmanager
def source_context(source: str, operation: str) -> Iterator[None]:
    """
    Attribute log lines emitted inside the block to one adapter call.

    Args:
        source: Source name ("local" or "external")
        operation: Adapter operation name
    """
    token = source_context_var.set({"source": source, "operation": operation})
    try:
        yield
    finally:
        source_context_var.reset(token)


def get_source_context() -> Optional[Dict[str, str]]:
    return source_context_var.get()
