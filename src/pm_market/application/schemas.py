"""Pydantic request/response schemas for pm_market.

All responses are wrapped in ApiResponse at the router layer.
Prices are floats in (0, 1); 1 share pays 1 currency unit on a win.
"""

from pydantic import BaseModel, Field

from src.pm_common.datetime_utils import isoformat_or_none
from src.pm_common.enums import Outcome
from src.pm_engine.engine.engine import BetReceipt
from src.pm_engine.engine.payout import Resolution
from src.pm_market.domain.models import Market

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateMarketRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=500)
    liquidity: float = Field(..., gt=0, allow_inf_nan=False)


class PlaceBetRequest(BaseModel):
    side: Outcome
    quantity: int = Field(..., gt=0)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class BetOut(BaseModel):
    side: Outcome
    quantity: int


class MarketOut(BaseModel):
    id: str
    creator_id: str
    question: str
    num_yes: int
    num_no: int
    liquidity: float
    resolved: bool
    outcome: Outcome | None
    voters: dict[str, BetOut]
    created_at: str | None
    resolved_at: str | None

    @classmethod
    def from_domain(cls, m: Market) -> "MarketOut":
        return cls(
            id=m.id,
            creator_id=m.creator_id,
            question=m.question,
            num_yes=m.num_yes,
            num_no=m.num_no,
            liquidity=m.liquidity,
            resolved=m.resolved,
            outcome=m.outcome,
            voters={
                uid: BetOut(side=b.side, quantity=b.quantity) for uid, b in m.voters.items()
            },
            created_at=isoformat_or_none(m.created_at),
            resolved_at=isoformat_or_none(m.resolved_at),
        )


class MarketListResponse(BaseModel):
    items: list[MarketOut]


class CostOut(BaseModel):
    market_id: str
    price_yes: float
    price_no: float


class BetReceiptOut(BaseModel):
    market_id: str
    user_id: str
    side: Outcome
    quantity: int
    unit_price: float
    cost: float
    balance_after: float

    @classmethod
    def from_receipt(cls, r: BetReceipt) -> "BetReceiptOut":
        return cls(
            market_id=r.market_id,
            user_id=r.user_id,
            side=r.side,
            quantity=r.quantity,
            unit_price=r.unit_price,
            cost=r.cost,
            balance_after=r.balance_after,
        )


class ResolutionOut(BaseModel):
    market_id: str
    outcome: Outcome
    payouts: dict[str, float]
    total_paid: float

    @classmethod
    def from_resolution(cls, r: Resolution) -> "ResolutionOut":
        return cls(
            market_id=r.market_id,
            outcome=r.outcome,
            payouts=dict(r.payouts),
            total_paid=r.total_paid,
        )
