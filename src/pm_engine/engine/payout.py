"""Market settlement: pay out winners of a freshly resolved market.

Runs inside the resolving transaction; the caller commits or rolls back.
1 winning share = 1 currency unit, independent of the entry price.
"""

from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.models import LedgerEntry
from src.pm_account.domain.repository import UserRepositoryProtocol
from src.pm_common.enums import LedgerEntryType, LedgerReferenceType, Outcome
from src.pm_common.errors import InvariantViolationError
from src.pm_market.domain.models import Market


@dataclass
class Resolution:
    market_id: str
    outcome: Outcome
    payouts: dict[str, float] = field(default_factory=dict)   # user_id -> credited

    @property
    def total_paid(self) -> float:
        return sum(self.payouts.values())


async def settle_winners(
    market: Market,
    users: UserRepositoryProtocol,
    db: AsyncSession,
) -> Resolution:
    if market.outcome is None:
        raise InvariantViolationError(f"settling unresolved market {market.id}")

    resolution = Resolution(market_id=market.id, outcome=market.outcome)
    for voter_id in sorted(market.winners()):
        bet = market.voters[voter_id]
        user = await users.get_user(db, voter_id, for_update=True)
        if user is None:
            raise InvariantViolationError(
                f"voter {voter_id} on market {market.id} has no user record"
            )
        amount = float(bet.quantity)
        user.deposit(amount)
        await users.save_user(db, user)
        await users.write_ledger(
            db,
            LedgerEntry(
                user_id=voter_id,
                entry_type=LedgerEntryType.SETTLEMENT_PAYOUT.value,
                amount=amount,
                balance_after=user.balance,
                reference_type=LedgerReferenceType.MARKET.value,
                reference_id=market.id,
            ),
        )
        resolution.payouts[voter_id] = amount
    return resolution
