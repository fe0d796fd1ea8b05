"""Correlation ID management for tracing one query across log lines."""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator

# Context variable for correlation ID - each thread and async task sees its own value
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())


def get_correlation_id() -> str:
    """Get current correlation ID from context."""
    return correlation_id_var.get()


def set_correlation_id(cid: str) -> Token[str]:
    """Set correlation ID in context."""
    return correlation_id_var.set(cid)


def reset_correlation_id(token: Token[str]) -> None:
    """Reset correlation ID to previous value."""
    correlation_id_var.reset(token)


@contextmanager
def correlation_scope(cid: str | None = None) -> Iterator[str]:
    """Bind a correlation ID for the duration of a block.

    An ID already bound by the caller (e.g. the HTTP layer) is kept as-is;
    otherwise `cid` or a freshly generated one is bound and reset on exit.

    Yields:
        The correlation ID in effect inside the block.
    """
    current = get_correlation_id()
    if current and cid is None:
        yield current
        return

    token = set_correlation_id(cid or generate_correlation_id())
    try:
        yield get_correlation_id()
    finally:
        reset_correlation_id(token)
