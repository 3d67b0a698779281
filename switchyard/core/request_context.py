"""
Per-invocation context.
Use ContextVar so concurrent socket messages each see their own ids.
"""

import secrets
import time
from contextvars import ContextVar
from typing import Optional

# Context variable for Trace ID (X-Amzn-Trace-Id header format).
_trace_id_var: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)
# Context variable for Request ID (UUID).
_request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_trace_id() -> Optional[str]:
    """Get the current Trace ID."""
    return _trace_id_var.get()


def get_request_id() -> Optional[str]:
    """Get the current Request ID."""
    return _request_id_var.get()


def set_request_id(request_id: str) -> str:
    _request_id_var.set(request_id)
    return request_id


def generate_trace_id() -> str:
    """Generate a new Trace ID (Root=1-timehex-uniqueid)."""
    epoch_hex = f"{int(time.time()):08x}"
    return f"Root=1-{epoch_hex}-{secrets.token_hex(12)};Sampled=1"


def set_trace_id(header: str) -> str:
    """
    Set the Trace ID from an incoming header value.

    A bare id without the Root= prefix is accepted and wrapped.

    Raises:
        ValueError: if the header is empty or carries no root id
    """
    value = (header or "").strip()
    if not value:
        raise ValueError("empty trace header")

    parts = {}
    for part in value.split(";"):
        if "=" in part:
            k, v = part.split("=", 1)
            parts[k.strip()] = v.strip()

    if not parts:
        value = f"Root={value}"
    elif not parts.get("Root"):
        raise ValueError(f"trace header has no Root: {header}")

    _trace_id_var.set(value)
    return value


def clear_context() -> None:
    """Clear the Trace ID and Request ID context."""
    _trace_id_var.set(None)
    _request_id_var.set(None)
