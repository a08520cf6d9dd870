"""
Correlation ID tracking for datagram handling.

Every inbound datagram is handled inside its own correlation scope so the
decode, dispatch and any reply it triggers share one ID in the logs.
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Generator
from contextlib import contextmanager

__all__ = [
    "correlation_context",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
]

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id",
    default=None,
)


def generate_correlation_id() -> str:
    """Return a new UUID4 hex correlation ID."""
    return uuid.uuid4().hex


def get_correlation_id() -> str | None:
    """Get current correlation ID from context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Set correlation ID in current context (None clears it)."""
    _correlation_id.set(correlation_id)


@contextmanager
def correlation_context(
    correlation_id: str | None = None,
    auto_generate: bool = True,
) -> Generator[str | None]:
    """
    Context manager for correlation ID scope.

    Generates an ID when none is given and auto_generate is set, and restores
    the previous ID on exit.

    Example:
        with correlation_context() as corr_id:
            logger.info("Handling datagram")  # tagged with corr_id
    """
    previous_id = get_correlation_id()

    if correlation_id is None and auto_generate:
        correlation_id = generate_correlation_id()

    set_correlation_id(correlation_id)
    try:
        yield correlation_id
    finally:
        set_correlation_id(previous_id)
