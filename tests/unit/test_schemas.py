"""Tests for request validation and domain → response mapping."""
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from src.pm_account.application.schemas import DepositRequest, LedgerEntryItem, UserOut
from src.pm_account.domain.models import LedgerEntry, User
from src.pm_common.enums import Outcome
from src.pm_engine.engine.engine import BetReceipt
from src.pm_engine.engine.payout import Resolution
from src.pm_market.application.schemas import (
    BetReceiptOut,
    CreateMarketRequest,
    MarketOut,
    PlaceBetRequest,
    ResolutionOut,
)
from src.pm_market.domain.models import Bet, Market


class TestRequests:
    def test_create_market_rejects_non_positive_liquidity(self) -> None:
        with pytest.raises(ValidationError):
            CreateMarketRequest(question="Q", liquidity=0)

    def test_create_market_rejects_infinite_liquidity(self) -> None:
        with pytest.raises(ValidationError):
            CreateMarketRequest(question="Q", liquidity=float("inf"))

    def test_create_market_rejects_empty_question(self) -> None:
        with pytest.raises(ValidationError):
            CreateMarketRequest(question="", liquidity=1)

    def test_place_bet_parses_side(self) -> None:
        req = PlaceBetRequest(side="YES", quantity=3)
        assert req.side is Outcome.YES

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_place_bet_rejects_quantity(self, quantity: int) -> None:
        with pytest.raises(ValidationError):
            PlaceBetRequest(side="NO", quantity=quantity)

    def test_place_bet_rejects_side(self) -> None:
        with pytest.raises(ValidationError):
            PlaceBetRequest(side="MAYBE", quantity=1)

    def test_deposit_accepts_any_number(self) -> None:
        assert DepositRequest(amount=0).amount == 0.0
        assert DepositRequest(amount=-3).amount == -3.0

    def test_deposit_requires_amount(self) -> None:
        with pytest.raises(ValidationError):
            DepositRequest()


class TestResponses:
    def test_market_out(self) -> None:
        m = Market(
            id="market_1",
            creator_id="alice",
            question="Q",
            liquidity=10.0,
            num_no=1,
            voters={"bob": Bet(Outcome.NO, 4)},
            created_at=datetime(2026, 1, 1, tzinfo=UTC),
        )
        out = MarketOut.from_domain(m).model_dump(mode="json")
        assert out["voters"] == {"bob": {"side": "NO", "quantity": 4}}
        assert out["created_at"] == "2026-01-01T00:00:00+00:00"
        assert out["resolved_at"] is None
        assert out["outcome"] is None

    def test_user_out_copies_history(self) -> None:
        u = User(id="bob", bio="", history=["market_1"])
        out = UserOut.from_domain(u)
        u.history.append("market_2")
        assert out.history == ["market_1"]

    def test_receipt_out(self) -> None:
        r = BetReceipt("market_1", "bob", Outcome.YES, 2, 0.5, 1.0, 99.0)
        assert BetReceiptOut.from_receipt(r).model_dump(mode="json")["side"] == "YES"

    def test_resolution_out_total(self) -> None:
        r = Resolution("market_1", Outcome.NO, {"bob": 2.0, "carol": 3.0})
        assert ResolutionOut.from_resolution(r).total_paid == 5.0

    def test_ledger_item(self) -> None:
        e = LedgerEntry(user_id="bob", entry_type="DEPOSIT", amount=1.0, balance_after=2.0, id=7)
        assert LedgerEntryItem.from_domain(e).id == 7
