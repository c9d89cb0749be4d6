# src/pm_market/domain/repository.py
"""Repository Protocol: dependency inversion for testability.

Unit tests inject an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_market.domain.models import Bet, Market


class MarketRepositoryProtocol(Protocol):
    async def get_market(
        self,
        db: AsyncSession,
        market_id: str,
        for_update: bool = False,
    ) -> Market | None: ...

    async def list_markets(self, db: AsyncSession) -> list[Market]: ...

    async def insert_market(self, db: AsyncSession, market: Market) -> None: ...

    async def save_market(self, db: AsyncSession, market: Market) -> None: ...

    async def add_bet(
        self,
        db: AsyncSession,
        market_id: str,
        user_id: str,
        bet: Bet,
    ) -> None: ...
