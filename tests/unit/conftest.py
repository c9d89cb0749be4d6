"""Fixtures wiring MarketEngine to the in-memory repositories."""
import pytest

from src.pm_common.id_generator import CounterIdGenerator
from src.pm_engine.engine.engine import MarketEngine
from tests.unit.fakes import (
    FakeMarketRepository,
    FakeSession,
    FakeUserRepository,
    InMemoryStore,
)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def db(store: InMemoryStore) -> FakeSession:
    return FakeSession(store)


@pytest.fixture
def engine() -> MarketEngine:
    return MarketEngine(
        markets=FakeMarketRepository(),
        users=FakeUserRepository(),
        id_generator=CounterIdGenerator(),
        starting_balance=100.0,
    )
