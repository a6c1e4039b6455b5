"""Log context enrichment utilities."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import structlog


def bind_context(**kwargs: object) -> None:
    """Bind key-value pairs to the current logging context (task-local)."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


@contextmanager
def bound_context(**kwargs: object) -> Iterator[None]:
    """Bind keys for the duration of a block, e.g. one refresh cycle."""
    tokens = structlog.contextvars.bind_contextvars(**kwargs)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)
