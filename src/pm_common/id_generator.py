"""Market id generation.

Ids have the form ``<prefix><counter>`` (``market_1``, ``market_2``, ...).
Production uses a PostgreSQL sequence (see
``src.pm_market.infrastructure.persistence.SequenceIdGenerator``); the
in-process counter below serves single-process deployments and tests.
"""

import threading
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession


def format_market_id(prefix: str, counter: int) -> str:
    return f"{prefix}{counter}"


class IdGeneratorProtocol(Protocol):
    async def next_id(self, db: AsyncSession) -> str: ...


class CounterIdGenerator:
    """Monotonic in-process counter. Thread-safe; ignores the db session."""

    def __init__(self, prefix: str = "market_", start: int = 1) -> None:
        if start < 0:
            raise ValueError(f"start must be >= 0, got {start}")
        self._prefix = prefix
        self._next = start
        self._lock = threading.Lock()

    async def next_id(self, db: AsyncSession | None = None) -> str:
        with self._lock:
            counter = self._next
            self._next += 1
        return format_market_id(self._prefix, counter)
