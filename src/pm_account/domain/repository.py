"""Repository Protocol: dependency inversion for testability.

Unit tests inject an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.models import LedgerEntry, User


class UserRepositoryProtocol(Protocol):
    async def get_user(
        self, db: AsyncSession, user_id: str, for_update: bool = False
    ) -> User | None: ...

    async def list_users(self, db: AsyncSession) -> list[User]: ...

    async def insert_user(self, db: AsyncSession, user: User) -> bool: ...

    async def save_user(self, db: AsyncSession, user: User) -> None: ...

    async def write_ledger(self, db: AsyncSession, entry: LedgerEntry) -> None: ...

    async def list_ledger_entries(
        self, db: AsyncSession, user_id: str
    ) -> list[LedgerEntry]: ...
