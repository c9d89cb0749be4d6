"""UserRepository: concrete implementation of UserRepositoryProtocol.

All queries use raw text() SQL (no ORM). A user's history is not a column:
it is the ordered list of that user's rows in ``bets``, so it can never drift
from the market-side voter ledger.

Transaction ownership: The CALLER (MarketEngine) is responsible for
committing or rolling back.
"""

from collections import defaultdict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.models import LedgerEntry, User

# ---------------------------------------------------------------------------
# SQL: users
# ---------------------------------------------------------------------------

_GET_USER_SQL = text("""
    SELECT id, bio, balance, created_at
    FROM users
    WHERE id = :user_id
""")

_GET_USER_FOR_UPDATE_SQL = text("""
    SELECT id, bio, balance, created_at
    FROM users
    WHERE id = :user_id
    FOR UPDATE
""")

_LIST_USERS_SQL = text("""
    SELECT id, bio, balance, created_at
    FROM users
    ORDER BY created_at ASC, id ASC
""")

_INSERT_USER_SQL = text("""
    INSERT INTO users (id, bio, balance, created_at)
    VALUES (:id, :bio, :balance, :created_at)
    ON CONFLICT (id) DO NOTHING
    RETURNING id
""")

_UPDATE_USER_SQL = text("""
    UPDATE users
    SET bio = :bio,
        balance = :balance
    WHERE id = :id
""")

_GET_HISTORY_SQL = text("""
    SELECT market_id
    FROM bets
    WHERE user_id = :user_id
    ORDER BY id ASC
""")

_LIST_HISTORIES_SQL = text("""
    SELECT user_id, market_id
    FROM bets
    ORDER BY id ASC
""")

# ---------------------------------------------------------------------------
# SQL: ledger_entries (append-only)
# ---------------------------------------------------------------------------

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (user_id, entry_type, amount, balance_after, reference_type, reference_id)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after, :reference_type, :reference_id)
""")

_LIST_LEDGER_SQL = text("""
    SELECT id, user_id, entry_type, amount, balance_after,
           reference_type, reference_id, created_at
    FROM ledger_entries
    WHERE user_id = :user_id
    ORDER BY id ASC
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_user(row: object, history: list[str]) -> User:
    return User(
        id=row.id,  # type: ignore[attr-defined]
        bio=row.bio,  # type: ignore[attr-defined]
        balance=float(row.balance),  # type: ignore[attr-defined]
        history=history,
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_ledger_entry(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        amount=float(row.amount),  # type: ignore[attr-defined]
        balance_after=float(row.balance_after),  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserRepository:
    async def get_user(
        self, db: AsyncSession, user_id: str, for_update: bool = False
    ) -> User | None:
        sql = _GET_USER_FOR_UPDATE_SQL if for_update else _GET_USER_SQL
        row = (await db.execute(sql, {"user_id": user_id})).fetchone()
        if row is None:
            return None
        history_rows = (await db.execute(_GET_HISTORY_SQL, {"user_id": user_id})).fetchall()
        return _row_to_user(row, [r.market_id for r in history_rows])

    async def list_users(self, db: AsyncSession) -> list[User]:
        rows = (await db.execute(_LIST_USERS_SQL)).fetchall()
        histories: dict[str, list[str]] = defaultdict(list)
        for h in (await db.execute(_LIST_HISTORIES_SQL)).fetchall():
            histories[h.user_id].append(h.market_id)
        return [_row_to_user(row, histories[row.id]) for row in rows]

    async def insert_user(self, db: AsyncSession, user: User) -> bool:
        """Insert a new user row. False when the id is already taken."""
        result = await db.execute(
            _INSERT_USER_SQL,
            {
                "id": user.id,
                "bio": user.bio,
                "balance": user.balance,
                "created_at": user.created_at,
            },
        )
        return result.fetchone() is not None

    async def save_user(self, db: AsyncSession, user: User) -> None:
        await db.execute(
            _UPDATE_USER_SQL,
            {"id": user.id, "bio": user.bio, "balance": user.balance},
        )

    async def write_ledger(self, db: AsyncSession, entry: LedgerEntry) -> None:
        """Insert one row into ledger_entries within the caller's transaction."""
        await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "user_id": entry.user_id,
                "entry_type": entry.entry_type,
                "amount": entry.amount,
                "balance_after": entry.balance_after,
                "reference_type": entry.reference_type,
                "reference_id": entry.reference_id,
            },
        )

    async def list_ledger_entries(
        self, db: AsyncSession, user_id: str
    ) -> list[LedgerEntry]:
        rows = (await db.execute(_LIST_LEDGER_SQL, {"user_id": user_id})).fetchall()
        return [_row_to_ledger_entry(row) for row in rows]
