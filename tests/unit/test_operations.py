"""Unit tests for the named-operation dispatch table."""
import pytest

from src.pm_common.errors import (
    InvalidCredentialsError,
    InvalidParamsError,
    NoSuchMarketError,
    UnknownOperationError,
)
from src.pm_engine.application.operations import OPERATIONS, dispatch
from src.pm_engine.engine.engine import MarketEngine
from tests.unit.fakes import FakeSession


class TestOperationTable:
    def test_all_operations_present(self) -> None:
        assert set(OPERATIONS) == {
            "register",
            "add_market",
            "bet",
            "resolve",
            "deposit",
            "get_cost",
            "get_user",
            "get_users",
            "get_market",
            "get_markets",
        }

    def test_mutating_flags(self) -> None:
        mutating = {name for name, op in OPERATIONS.items() if op.mutates}
        assert mutating == {"register", "add_market", "bet", "resolve", "deposit"}


class TestDispatch:
    @pytest.mark.asyncio
    async def test_unknown_operation(self, engine: MarketEngine, db: FakeSession) -> None:
        with pytest.raises(UnknownOperationError):
            await dispatch(engine, db, "withdraw", "bob", {})

    @pytest.mark.asyncio
    async def test_mutation_needs_caller(self, engine: MarketEngine, db: FakeSession) -> None:
        with pytest.raises(InvalidCredentialsError):
            await dispatch(engine, db, "register", None, {"bio": ""})

    @pytest.mark.asyncio
    async def test_query_allows_anonymous(self, engine: MarketEngine, db: FakeSession) -> None:
        assert await dispatch(engine, db, "get_users", None) == []

    @pytest.mark.asyncio
    async def test_invalid_params(self, engine: MarketEngine, db: FakeSession) -> None:
        with pytest.raises(InvalidParamsError):
            await dispatch(engine, db, "bet", "bob", {"market_id": "market_1", "side": "UP"})

    @pytest.mark.asyncio
    async def test_full_flow(self, engine: MarketEngine, db: FakeSession) -> None:
        user = await dispatch(engine, db, "register", "bob", {"bio": "hi"})
        assert user["id"] == "bob"
        assert user["balance"] == 100.0
        assert user["history"] == []

        market = await dispatch(
            engine, db, "add_market", "alice", {"question": "Rain?", "liquidity": 10}
        )
        assert market["id"] == "market_1"

        receipt = await dispatch(
            engine, db, "bet", "bob", {"market_id": "market_1", "side": "NO", "quantity": 4}
        )
        assert receipt["cost"] == pytest.approx(2.0)
        assert receipt["side"] == "NO"

        cost = await dispatch(engine, db, "get_cost", None, {"market_id": "market_1"})
        assert cost["price_no"] > cost["price_yes"]

        resolution = await dispatch(engine, db, "resolve", "alice", {"market_id": "market_1"})
        assert resolution["outcome"] == "NO"
        assert resolution["payouts"] == {"bob": 4.0}

        fetched = await dispatch(engine, db, "get_user", None, {"id": "bob"})
        assert fetched["balance"] == pytest.approx(102.0)
        assert fetched["history"] == ["market_1"]

    @pytest.mark.asyncio
    async def test_deposit_unregistered(self, engine: MarketEngine, db: FakeSession) -> None:
        result = await dispatch(engine, db, "deposit", "ghost", {"amount": 5})
        assert result == {"credited": False, "amount": 5.0, "balance": None}

    @pytest.mark.asyncio
    async def test_missing_lookups_return_none(
        self, engine: MarketEngine, db: FakeSession
    ) -> None:
        assert await dispatch(engine, db, "get_user", None, {"id": "nobody"}) is None
        assert await dispatch(engine, db, "get_market", None, {"id": "market_9"}) is None

    @pytest.mark.asyncio
    async def test_engine_errors_propagate(self, engine: MarketEngine, db: FakeSession) -> None:
        await dispatch(engine, db, "register", "bob", {})
        with pytest.raises(NoSuchMarketError):
            await dispatch(
                engine, db, "bet", "bob", {"market_id": "market_9", "side": "YES", "quantity": 1}
            )

    @pytest.mark.asyncio
    async def test_deposit_zero_is_noop(self, engine: MarketEngine, db: FakeSession) -> None:
        await dispatch(engine, db, "register", "bob", {})
        result = await dispatch(engine, db, "deposit", "bob", {"amount": 0})
        assert result == {"credited": False, "amount": 0.0, "balance": None}
