"""Concurrent engine calls: per-market and per-user serialization."""
import asyncio

import pytest

from src.pm_common.enums import Outcome
from src.pm_common.errors import (
    AlreadyVotedError,
    InsufficientBalanceError,
    MarketAlreadyResolvedError,
    NoSuchMarketError,
)
from src.pm_engine.engine.engine import MarketEngine
from src.pm_market.domain.invariants import collect_violations
from tests.unit.fakes import FakeSession, InMemoryStore


async def _gather(*coros):
    return await asyncio.gather(*coros, return_exceptions=True)


class TestConcurrentBets:
    @pytest.mark.asyncio
    async def test_many_users_one_market(
        self, engine: MarketEngine, store: InMemoryStore
    ) -> None:
        setup = FakeSession(store)
        market = await engine.add_market(setup, "alice", "Q", 10.0)
        users = [f"user_{i:02d}" for i in range(20)]
        for uid in users:
            await engine.register(setup, uid, "")

        sides = [Outcome.YES if i % 3 else Outcome.NO for i in range(20)]
        results = await _gather(
            *(engine.bet(FakeSession(store), uid, market.id, side, 5)
              for uid, side in zip(users, sides))
        )

        assert not [r for r in results if isinstance(r, Exception)]
        stored = await engine.get_market(setup, market.id)
        assert stored.num_yes + stored.num_no == 20
        assert stored.num_yes == sides.count(Outcome.YES)
        assert collect_violations(
            await engine.get_markets(setup), await engine.get_users(setup)
        ) == []

    @pytest.mark.asyncio
    async def test_same_user_same_market_only_one_wins(
        self, engine: MarketEngine, store: InMemoryStore
    ) -> None:
        setup = FakeSession(store)
        market = await engine.add_market(setup, "alice", "Q", 10.0)
        await engine.register(setup, "bob", "")

        results = await _gather(
            *(engine.bet(FakeSession(store), "bob", market.id, Outcome.YES, 2) for _ in range(5))
        )

        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 4
        assert all(isinstance(e, AlreadyVotedError) for e in errors)
        assert store.users["bob"].balance == pytest.approx(99.0)
        assert store.markets[market.id].num_yes == 1

    @pytest.mark.asyncio
    async def test_same_user_two_markets_no_overspend(
        self, engine: MarketEngine, store: InMemoryStore
    ) -> None:
        setup = FakeSession(store)
        m1 = await engine.add_market(setup, "alice", "Q1", 10.0)
        m2 = await engine.add_market(setup, "alice", "Q2", 10.0)
        await engine.register(setup, "bob", "")

        # Each bet costs 60; only one fits in a balance of 100.
        results = await _gather(
            engine.bet(FakeSession(store), "bob", m1.id, Outcome.YES, 120),
            engine.bet(FakeSession(store), "bob", m2.id, Outcome.NO, 120),
        )

        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], InsufficientBalanceError)
        assert store.users["bob"].balance == pytest.approx(40.0)


class TestConcurrentResolve:
    @pytest.mark.asyncio
    async def test_double_resolve_pays_once(
        self, engine: MarketEngine, store: InMemoryStore
    ) -> None:
        setup = FakeSession(store)
        market = await engine.add_market(setup, "alice", "Q", 10.0)
        await engine.register(setup, "bob", "")
        await engine.bet(setup, "bob", market.id, Outcome.NO, 10)

        results = await _gather(
            engine.resolve(FakeSession(store), "alice", market.id),
            engine.resolve(FakeSession(store), "alice", market.id),
        )

        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], MarketAlreadyResolvedError)
        assert store.users["bob"].balance == pytest.approx(105.0)

    @pytest.mark.asyncio
    async def test_bets_racing_resolve_are_all_accounted(
        self, engine: MarketEngine, store: InMemoryStore
    ) -> None:
        setup = FakeSession(store)
        market = await engine.add_market(setup, "alice", "Q", 10.0)
        users = [f"user_{i}" for i in range(6)]
        for uid in users:
            await engine.register(setup, uid, "")

        results = await _gather(
            *(engine.bet(FakeSession(store), uid, market.id, Outcome.NO, 1) for uid in users[:3]),
            engine.resolve(FakeSession(store), "alice", market.id),
            *(engine.bet(FakeSession(store), uid, market.id, Outcome.NO, 1) for uid in users[3:]),
        )

        resolution = results[3]
        bet_results = results[:3] + results[4:]
        assert not isinstance(resolution, Exception)
        assert all(
            isinstance(r, MarketAlreadyResolvedError)
            for r in bet_results
            if isinstance(r, Exception)
        )

        stored = await engine.get_market(setup, market.id)
        assert stored.resolved
        accepted = [r for r in bet_results if not isinstance(r, Exception)]
        assert len(accepted) == len(stored.voters)
        # All bets are NO, so every accepted bettor is a winner.
        assert set(resolution.payouts) == set(stored.voters)
        for uid in users:
            ledger = await engine.list_ledger(setup, uid)
            assert store.users[uid].balance == pytest.approx(
                100.0 + sum(e.amount for e in ledger)
            )
        assert collect_violations(
            await engine.get_markets(setup), await engine.get_users(setup)
        ) == []


class TestConcurrentDeposit:
    @pytest.mark.asyncio
    async def test_parallel_deposits_all_land(
        self, engine: MarketEngine, store: InMemoryStore
    ) -> None:
        await engine.register(FakeSession(store), "bob", "")
        await _gather(*(engine.deposit(FakeSession(store), "bob", 1.0) for _ in range(10)))
        assert store.users["bob"].balance == pytest.approx(110.0)
        assert len(store.ledger) == 10


class TestLockRegistry:
    @pytest.mark.asyncio
    async def test_unknown_ids_leave_no_locks_behind(
        self, engine: MarketEngine, store: InMemoryStore
    ) -> None:
        await engine.register(FakeSession(store), "bob", "")
        bets = await _gather(
            *(engine.bet(FakeSession(store), "bob", f"market_x{i}", Outcome.YES, 1)
              for i in range(200))
        )
        await _gather(
            *(engine.deposit(FakeSession(store), f"ghost_{i}", 1.0) for i in range(200))
        )

        assert all(isinstance(r, NoSuchMarketError) for r in bets)
        assert len(engine._market_locks) == 0
        assert len(engine._user_locks) == 0

    @pytest.mark.asyncio
    async def test_locks_released_after_resolve(
        self, engine: MarketEngine, store: InMemoryStore
    ) -> None:
        setup = FakeSession(store)
        market = await engine.add_market(setup, "alice", "Q", 10.0)
        for uid in ("bob", "carol"):
            await engine.register(setup, uid, "")
            await engine.bet(setup, uid, market.id, Outcome.NO, 1)
        await engine.resolve(setup, "alice", market.id)
        assert len(engine._market_locks) == 0
        assert len(engine._user_locks) == 0
