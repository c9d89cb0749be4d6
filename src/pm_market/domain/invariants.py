"""Market invariant verification after each mutation, plus a full-store sweep.

INV-1: num_yes + num_no == len(voters)
INV-2: resolved == (outcome is not None)
INV-3: counters agree with the per-side voter tally
INV-X (cross-entity, sweep only): every voter has a User record, every
       balance is non-negative, every user's history lists exactly the
       markets that hold a bet from that user.
"""

import logging
from collections import Counter
from collections.abc import Iterable

from src.pm_account.domain.models import User
from src.pm_common.enums import Outcome
from src.pm_common.errors import InvariantViolationError
from src.pm_market.domain.models import Market

logger = logging.getLogger(__name__)


def market_violations(market: Market) -> list[str]:
    violations: list[str] = []
    mid = market.id

    if market.num_yes + market.num_no != len(market.voters):
        violations.append(
            f"INV-1 violated on {mid}: num_yes({market.num_yes}) + num_no({market.num_no})"
            f" != voters({len(market.voters)})"
        )
    if market.resolved != (market.outcome is not None):
        violations.append(
            f"INV-2 violated on {mid}: resolved={market.resolved} outcome={market.outcome}"
        )

    tally = Counter(bet.side for bet in market.voters.values())
    if tally[Outcome.YES] != market.num_yes or tally[Outcome.NO] != market.num_no:
        violations.append(
            f"INV-3 violated on {mid}: counters=({market.num_yes}, {market.num_no})"
            f" tally=({tally[Outcome.YES]}, {tally[Outcome.NO]})"
        )
    return violations


def verify_market_invariants(market: Market) -> None:
    """Raise InvariantViolationError if the market is internally inconsistent."""
    violations = market_violations(market)
    if violations:
        for v in violations:
            logger.error(v)
        raise InvariantViolationError("; ".join(violations))
    logger.debug(
        "Invariants OK: market=%s, yes=%d, no=%d", market.id, market.num_yes, market.num_no
    )


def collect_violations(markets: Iterable[Market], users: Iterable[User]) -> list[str]:
    """Sweep every market and user. Returns list of violation strings."""
    users_by_id = {u.id: u for u in users}
    violations: list[str] = []
    bet_markets: dict[str, set[str]] = {uid: set() for uid in users_by_id}

    for market in markets:
        violations.extend(market_violations(market))
        for voter_id in market.voters:
            if voter_id not in users_by_id:
                violations.append(f"INV-X violated: voter {voter_id} on {market.id} has no user")
            else:
                bet_markets[voter_id].add(market.id)

    for user in users_by_id.values():
        if user.balance < 0:
            violations.append(f"INV-X violated: user {user.id} balance {user.balance} < 0")
        if set(user.history) != bet_markets[user.id]:
            violations.append(
                f"INV-X violated: user {user.id} history {sorted(user.history)}"
                f" != bet markets {sorted(bet_markets[user.id])}"
            )

    for v in violations:
        logger.error(v)
    return violations
