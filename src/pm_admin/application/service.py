# src/pm_admin/application/service.py
"""Admin application service."""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.repository import UserRepositoryProtocol
from src.pm_account.infrastructure.persistence import UserRepository
from src.pm_market.domain.invariants import collect_violations
from src.pm_market.domain.repository import MarketRepositoryProtocol
from src.pm_market.infrastructure.persistence import MarketRepository

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(
        self,
        markets: MarketRepositoryProtocol | None = None,
        users: UserRepositoryProtocol | None = None,
    ) -> None:
        self._markets = markets or MarketRepository()
        self._users = users or UserRepository()

    async def verify_all_invariants(self, db: AsyncSession) -> dict[str, object]:
        """Sweep every market and user and report rule violations."""
        markets = await self._markets.list_markets(db)
        users = await self._users.list_users(db)
        violations = collect_violations(markets, users)
        if violations:
            logger.error("Invariant sweep found %d violation(s)", len(violations))
        return {
            "ok": len(violations) == 0,
            "markets_checked": len(markets),
            "users_checked": len(users),
            "violations": violations,
        }
