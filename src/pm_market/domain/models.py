"""Domain models for pm_market: dataclasses plus the Open to Resolved state machine.

No SQLAlchemy dependency; persistence maps rows onto these in the
infrastructure layer.
"""

from dataclasses import dataclass, field
from datetime import datetime

from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import Outcome
from src.pm_common.errors import (
    AlreadyVotedError,
    MarketAlreadyResolvedError,
    NotCreatorError,
)


@dataclass(frozen=True)
class Bet:
    side: Outcome
    quantity: int


@dataclass
class Market:
    id: str
    creator_id: str
    question: str
    liquidity: float
    num_yes: int = 0
    num_no: int = 0
    resolved: bool = False
    outcome: Outcome | None = None
    voters: dict[str, Bet] = field(default_factory=dict)   # user_id -> Bet
    created_at: datetime | None = None
    resolved_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return not self.resolved

    def has_already_voted(self, user_id: str) -> bool:
        return user_id in self.voters

    def record_bet(self, bet: Bet, bettor_id: str) -> None:
        """Open → Open. Counts one bet per bettor, not share quantity."""
        if self.resolved:
            raise MarketAlreadyResolvedError(self.id)
        if self.has_already_voted(bettor_id):
            raise AlreadyVotedError(self.id)

        if bet.side == Outcome.YES:
            self.num_yes += 1
        else:
            self.num_no += 1
        self.voters[bettor_id] = bet

    def resolve(self, caller_id: str) -> Outcome:
        """Open to Resolved. Terminal; a second call is rejected.

        Ties resolve to YES.
        """
        if self.resolved:
            raise MarketAlreadyResolvedError(self.id)
        if caller_id != self.creator_id:
            raise NotCreatorError(self.id)

        self.outcome = Outcome.NO if self.num_no > self.num_yes else Outcome.YES
        self.resolved = True
        self.resolved_at = utc_now()
        return self.outcome

    def winners(self) -> dict[str, Bet]:
        """Voters on the resolved outcome; empty while the market is open."""
        if self.outcome is None:
            return {}
        return {uid: bet for uid, bet in self.voters.items() if bet.side == self.outcome}
