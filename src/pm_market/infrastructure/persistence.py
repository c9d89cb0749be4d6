"""MarketRepository: concrete implementation of MarketRepositoryProtocol.

All queries use raw text() SQL (no ORM). The voter ledger lives in ``bets``
with UNIQUE (market_id, user_id) as the final guard against double voting.
"""

from collections import defaultdict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_common.enums import Outcome
from src.pm_common.errors import MarketAlreadyResolvedError
from src.pm_common.id_generator import format_market_id
from src.pm_market.domain.models import Bet, Market

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_MARKET_COLUMNS = """
    id, creator_id, question, num_yes, num_no, liquidity,
    resolved, outcome, created_at, resolved_at
"""

_GET_MARKET_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM markets
    WHERE id = :market_id
""")

_GET_MARKET_FOR_UPDATE_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM markets
    WHERE id = :market_id
    FOR UPDATE
""")

_LIST_MARKETS_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM markets
    ORDER BY created_at ASC, id ASC
""")

_GET_BETS_SQL = text("""
    SELECT user_id, side, quantity
    FROM bets
    WHERE market_id = :market_id
    ORDER BY id ASC
""")

_LIST_BETS_SQL = text("""
    SELECT market_id, user_id, side, quantity
    FROM bets
    ORDER BY id ASC
""")

_INSERT_MARKET_SQL = text("""
    INSERT INTO markets
        (id, creator_id, question, num_yes, num_no, liquidity,
         resolved, outcome, created_at)
    VALUES
        (:id, :creator_id, :question, :num_yes, :num_no, :liquidity,
         :resolved, :outcome, :created_at)
""")

# WHERE resolved = FALSE: a resolved row is never rewritten.
_UPDATE_MARKET_SQL = text("""
    UPDATE markets
    SET num_yes = :num_yes,
        num_no = :num_no,
        resolved = :resolved,
        outcome = :outcome,
        resolved_at = :resolved_at
    WHERE id = :id AND resolved = FALSE
    RETURNING id
""")

_INSERT_BET_SQL = text("""
    INSERT INTO bets (market_id, user_id, side, quantity)
    VALUES (:market_id, :user_id, :side, :quantity)
""")

_NEXT_MARKET_SEQ_SQL = text("SELECT nextval('market_id_seq')")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_bet(row: object) -> Bet:
    return Bet(
        side=Outcome(row.side),  # type: ignore[attr-defined]
        quantity=row.quantity,  # type: ignore[attr-defined]
    )


def _row_to_market(row: object, voters: dict[str, Bet]) -> Market:
    outcome = row.outcome  # type: ignore[attr-defined]
    return Market(
        id=row.id,  # type: ignore[attr-defined]
        creator_id=row.creator_id,  # type: ignore[attr-defined]
        question=row.question,  # type: ignore[attr-defined]
        liquidity=float(row.liquidity),  # type: ignore[attr-defined]
        num_yes=row.num_yes,  # type: ignore[attr-defined]
        num_no=row.num_no,  # type: ignore[attr-defined]
        resolved=row.resolved,  # type: ignore[attr-defined]
        outcome=Outcome(outcome) if outcome is not None else None,
        voters=voters,
        created_at=row.created_at,  # type: ignore[attr-defined]
        resolved_at=row.resolved_at,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class MarketRepository:
    async def get_market(
        self, db: AsyncSession, market_id: str, for_update: bool = False
    ) -> Market | None:
        sql = _GET_MARKET_FOR_UPDATE_SQL if for_update else _GET_MARKET_SQL
        row = (await db.execute(sql, {"market_id": market_id})).fetchone()
        if row is None:
            return None
        bet_rows = (await db.execute(_GET_BETS_SQL, {"market_id": market_id})).fetchall()
        voters = {b.user_id: _row_to_bet(b) for b in bet_rows}
        return _row_to_market(row, voters)

    async def list_markets(self, db: AsyncSession) -> list[Market]:
        rows = (await db.execute(_LIST_MARKETS_SQL)).fetchall()
        voters: dict[str, dict[str, Bet]] = defaultdict(dict)
        for b in (await db.execute(_LIST_BETS_SQL)).fetchall():
            voters[b.market_id][b.user_id] = _row_to_bet(b)
        return [_row_to_market(row, voters[row.id]) for row in rows]

    async def insert_market(self, db: AsyncSession, market: Market) -> None:
        await db.execute(
            _INSERT_MARKET_SQL,
            {
                "id": market.id,
                "creator_id": market.creator_id,
                "question": market.question,
                "num_yes": market.num_yes,
                "num_no": market.num_no,
                "liquidity": market.liquidity,
                "resolved": market.resolved,
                "outcome": market.outcome.value if market.outcome else None,
                "created_at": market.created_at,
            },
        )

    async def save_market(self, db: AsyncSession, market: Market) -> None:
        result = await db.execute(
            _UPDATE_MARKET_SQL,
            {
                "id": market.id,
                "num_yes": market.num_yes,
                "num_no": market.num_no,
                "resolved": market.resolved,
                "outcome": market.outcome.value if market.outcome else None,
                "resolved_at": market.resolved_at,
            },
        )
        if result.fetchone() is None:
            # Row missing or already terminal: the caller's view is stale.
            raise MarketAlreadyResolvedError(market.id)

    async def add_bet(
        self, db: AsyncSession, market_id: str, user_id: str, bet: Bet
    ) -> None:
        await db.execute(
            _INSERT_BET_SQL,
            {
                "market_id": market_id,
                "user_id": user_id,
                "side": bet.side.value,
                "quantity": bet.quantity,
            },
        )


class SequenceIdGenerator:
    """IdGeneratorProtocol backed by the ``market_id_seq`` PostgreSQL sequence."""

    def __init__(self, prefix: str | None = None) -> None:
        self._prefix = prefix if prefix is not None else settings.MARKET_ID_PREFIX

    async def next_id(self, db: AsyncSession) -> str:
        counter = (await db.execute(_NEXT_MARKET_SEQ_SQL)).scalar_one()
        return format_market_id(self._prefix, counter)
