"""Pydantic request/response schemas for pm_account.

All responses are wrapped in ApiResponse at the router layer.
"""

from pydantic import BaseModel, Field

from src.pm_account.domain.models import LedgerEntry, User
from src.pm_common.datetime_utils import isoformat_or_none

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    bio: str = Field("", max_length=2000)


class DepositRequest(BaseModel):
    amount: float = Field(..., description="Amount to credit; uncreditable amounts are ignored")


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class UserOut(BaseModel):
    id: str
    bio: str
    balance: float
    history: list[str]
    created_at: str | None

    @classmethod
    def from_domain(cls, u: User) -> "UserOut":
        return cls(
            id=u.id,
            bio=u.bio,
            balance=u.balance,
            history=list(u.history),
            created_at=isoformat_or_none(u.created_at),
        )


class UserListResponse(BaseModel):
    items: list[UserOut]


class DepositResponse(BaseModel):
    """``credited`` is False when the caller is not registered (no-op)."""

    credited: bool
    amount: float
    balance: float | None


class LedgerEntryItem(BaseModel):
    id: int | None
    entry_type: str
    amount: float
    balance_after: float
    reference_type: str | None
    reference_id: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, e: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=e.id,
            entry_type=e.entry_type,
            amount=e.amount,
            balance_after=e.balance_after,
            reference_type=e.reference_type,
            reference_id=e.reference_id,
            created_at=isoformat_or_none(e.created_at),
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
