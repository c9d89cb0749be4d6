"""MarketEngine: stateful orchestrator for every public market operation.

Each mutating operation loads the records it needs, validates preconditions,
mutates in memory and writes back inside one transaction. The engine owns an
asyncio.Lock per market and per user; repositories additionally take
SELECT ... FOR UPDATE row locks, always market first, then users in sorted
id order.
"""
import logging
import math
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_account.domain.models import LedgerEntry, User
from src.pm_account.domain.repository import UserRepositoryProtocol
from src.pm_account.infrastructure.persistence import UserRepository
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import LedgerEntryType, LedgerReferenceType, Outcome
from src.pm_common.errors import (
    AlreadyVotedError,
    InsufficientBalanceError,
    InvalidLiquidityError,
    InvalidQuantityError,
    MarketAlreadyResolvedError,
    NoSuchMarketError,
    UserAlreadyRegisteredError,
    UserNotRegisteredError,
)
from src.pm_common.id_generator import IdGeneratorProtocol
from src.pm_common.locks import KeyedLocks
from src.pm_engine.engine.payout import Resolution, settle_winners
from src.pm_market.domain.invariants import verify_market_invariants
from src.pm_market.domain.models import Bet, Market
from src.pm_market.domain.repository import MarketRepositoryProtocol
from src.pm_market.infrastructure.persistence import MarketRepository, SequenceIdGenerator
from src.pm_pricing.lmsr import lmsr_price, quote

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BetReceipt:
    market_id: str
    user_id: str
    side: Outcome
    quantity: int
    unit_price: float
    cost: float
    balance_after: float


def _is_positive_finite(value: float) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


class MarketEngine:
    def __init__(
        self,
        markets: MarketRepositoryProtocol | None = None,
        users: UserRepositoryProtocol | None = None,
        id_generator: IdGeneratorProtocol | None = None,
        starting_balance: float | None = None,
    ) -> None:
        self._markets: MarketRepositoryProtocol = markets or MarketRepository()
        self._users: UserRepositoryProtocol = users or UserRepository()
        self._ids: IdGeneratorProtocol = id_generator or SequenceIdGenerator()
        self._starting_balance = (
            settings.STARTING_BALANCE if starting_balance is None else starting_balance
        )
        self._market_locks = KeyedLocks()
        self._user_locks = KeyedLocks()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def register(self, db: AsyncSession, caller_id: str, bio: str) -> User:
        async with self._user_locks.hold(caller_id):
            try:
                user = User(
                    id=caller_id,
                    bio=bio,
                    balance=self._starting_balance,
                    created_at=utc_now(),
                )
                if not await self._users.insert_user(db, user):
                    raise UserAlreadyRegisteredError(caller_id)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        logger.info("User registered: user=%s balance=%.4f", caller_id, user.balance)
        return user

    async def add_market(
        self, db: AsyncSession, caller_id: str, question: str, liquidity: float
    ) -> Market:
        if not _is_positive_finite(liquidity):
            raise InvalidLiquidityError(liquidity)
        try:
            market = Market(
                id=await self._ids.next_id(db),
                creator_id=caller_id,
                question=question,
                liquidity=float(liquidity),
                created_at=utc_now(),
            )
            await self._markets.insert_market(db, market)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Market created: market=%s creator=%s b=%s", market.id, caller_id, market.liquidity
        )
        return market

    async def bet(
        self,
        db: AsyncSession,
        caller_id: str,
        market_id: str,
        side: Outcome | str,
        quantity: int,
    ) -> BetReceipt:
        """Buy ``quantity`` shares of ``side`` at the price quoted before this bet."""
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidQuantityError(quantity)
        side = Outcome(side)

        async with self._market_locks.hold(market_id):
            try:
                market = await self._markets.get_market(db, market_id, for_update=True)
                if market is None:
                    raise NoSuchMarketError(market_id)
                if market.resolved:
                    raise MarketAlreadyResolvedError(market_id)

                async with self._user_locks.hold(caller_id):
                    user = await self._users.get_user(db, caller_id, for_update=True)
                    if user is None:
                        raise UserNotRegisteredError(caller_id)
                    if market.has_already_voted(caller_id):
                        raise AlreadyVotedError(market_id)

                    unit_price = quote(side, market.num_yes, market.num_no, market.liquidity)
                    cost = unit_price * quantity
                    if cost > user.balance:
                        raise InsufficientBalanceError(cost, user.balance)

                    bet = Bet(side=side, quantity=quantity)
                    user.withdraw(cost)
                    user.add_market(market_id)
                    market.record_bet(bet, caller_id)
                    verify_market_invariants(market)

                    await self._markets.save_market(db, market)
                    await self._markets.add_bet(db, market_id, caller_id, bet)
                    await self._users.save_user(db, user)
                    await self._users.write_ledger(
                        db,
                        LedgerEntry(
                            user_id=caller_id,
                            entry_type=LedgerEntryType.BET_COST.value,
                            amount=-cost,
                            balance_after=user.balance,
                            reference_type=LedgerReferenceType.MARKET.value,
                            reference_id=market_id,
                        ),
                    )
                    await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Bet accepted: market=%s user=%s side=%s qty=%d price=%.6f cost=%.4f",
            market_id, caller_id, side.value, quantity, unit_price, cost,
        )
        return BetReceipt(
            market_id=market_id,
            user_id=caller_id,
            side=side,
            quantity=quantity,
            unit_price=unit_price,
            cost=cost,
            balance_after=user.balance,
        )

    async def resolve(self, db: AsyncSession, caller_id: str, market_id: str) -> Resolution:
        """Move the market to its terminal state and credit every winner, atomically."""
        async with self._market_locks.hold(market_id):
            try:
                market = await self._markets.get_market(db, market_id, for_update=True)
                if market is None:
                    raise NoSuchMarketError(market_id)
                market.resolve(caller_id)
                verify_market_invariants(market)

                async with self._user_locks.hold_all(market.winners()):
                    resolution = await settle_winners(market, self._users, db)
                    await self._markets.save_market(db, market)
                    await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Market resolved: market=%s outcome=%s winners=%d total_paid=%.4f",
            market_id, resolution.outcome.value, len(resolution.payouts), resolution.total_paid,
        )
        return resolution

    async def deposit(self, db: AsyncSession, caller_id: str, amount: float) -> User | None:
        """Credit the caller. Returns None, changing nothing, for an unregistered
        caller or an amount that is not a positive finite number.
        """
        if not _is_positive_finite(amount):
            logger.info(
                "Deposit ignored: amount %r from %s is not creditable", amount, caller_id
            )
            return None
        async with self._user_locks.hold(caller_id):
            try:
                user = await self._users.get_user(db, caller_id, for_update=True)
                if user is None:
                    await db.rollback()
                    logger.info("Deposit ignored: caller %s is not registered", caller_id)
                    return None
                user.deposit(float(amount))
                await self._users.save_user(db, user)
                await self._users.write_ledger(
                    db,
                    LedgerEntry(
                        user_id=caller_id,
                        entry_type=LedgerEntryType.DEPOSIT.value,
                        amount=float(amount),
                        balance_after=user.balance,
                        reference_type=LedgerReferenceType.DEPOSIT.value,
                        reference_id=None,
                    ),
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        logger.info("Deposit: user=%s amount=%.4f balance=%.4f", caller_id, amount, user.balance)
        return user

    # ------------------------------------------------------------------
    # Queries (read-only, no commit)
    # ------------------------------------------------------------------

    async def get_cost(self, db: AsyncSession, market_id: str) -> tuple[float, float]:
        """Current (price_yes, price_no); (0.0, 0.0) for an unknown market."""
        market = await self._markets.get_market(db, market_id)
        if market is None:
            return 0.0, 0.0
        return lmsr_price(market.num_yes, market.num_no, market.liquidity)

    async def get_user(self, db: AsyncSession, user_id: str) -> User | None:
        return await self._users.get_user(db, user_id)

    async def get_users(self, db: AsyncSession) -> list[User]:
        return await self._users.list_users(db)

    async def get_market(self, db: AsyncSession, market_id: str) -> Market | None:
        return await self._markets.get_market(db, market_id)

    async def get_markets(self, db: AsyncSession) -> list[Market]:
        return await self._markets.list_markets(db)

    async def list_ledger(self, db: AsyncSession, user_id: str) -> list[LedgerEntry]:
        return await self._users.list_ledger_entries(db, user_id)
