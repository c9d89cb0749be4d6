"""Domain models for pm_account: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime

STARTING_BALANCE: float = 100.0


@dataclass
class User:
    id: str
    bio: str
    balance: float = STARTING_BALANCE
    history: list[str] = field(default_factory=list)   # market ids, bet order
    created_at: datetime | None = None

    def deposit(self, amount: float) -> None:
        self.balance += amount

    def withdraw(self, amount: float) -> None:
        """No floor here; callers check affordability first."""
        self.balance -= amount

    def add_market(self, market_id: str) -> None:
        self.history.append(market_id)


@dataclass
class LedgerEntry:
    user_id: str
    entry_type: str                  # LedgerEntryType value
    amount: float                    # positive=income negative=expense
    balance_after: float             # balance snapshot after op
    reference_type: str | None = None
    reference_id: str | None = None
    id: int | None = None            # BIGSERIAL, assigned on insert
    created_at: datetime | None = None
