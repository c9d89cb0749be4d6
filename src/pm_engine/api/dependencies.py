"""FastAPI dependency: the process-wide MarketEngine.

One engine per process so that its per-market and per-user locks are shared
by every request. Tests override this with an engine wired to fakes.
"""

from src.pm_engine.engine.engine import MarketEngine

_engine: MarketEngine | None = None


def get_market_engine() -> MarketEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = MarketEngine()
    return _engine
