"""Correlation ID management for log correlation.

Provides context-aware correlation ID generation and propagation so every log
line emitted while resolving one merchant string can be grouped together.
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

# Context variable for correlation_id (thread- and async-safe)
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def generate_correlation_id() -> str:
    """Generate a new unique correlation ID.

    Returns:
        str: UUID v4 correlation ID
    """
    return str(uuid.uuid4())


def get_correlation_id() -> str:
    """Get current correlation ID from context.

    Returns:
        str: Current correlation ID or "no-correlation-id" if not set
    """
    return correlation_id_var.get() or "no-correlation-id"


def set_correlation_id(correlation_id: str) -> None:
    """Set correlation ID in current context.

    Args:
        correlation_id: Correlation ID to set
    """
    correlation_id_var.set(correlation_id)


@contextmanager
def correlation_scope(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation ID for the duration of a block.

    Reuses the caller's ID when one is already bound, so nested operations
    (create_or_get_merchant -> find_best_match) log under a single ID.

    Yields:
        str: The active correlation ID
    """
    existing = correlation_id_var.get()
    if correlation_id is None and existing is not None:
        yield existing
        return

    token = correlation_id_var.set(correlation_id or generate_correlation_id())
    try:
        yield correlation_id_var.get()
    finally:
        correlation_id_var.reset(token)
