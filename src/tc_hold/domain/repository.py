"""Repository Protocol: dependency inversion for testability."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_hold.domain.models import Hold


class HoldRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, hold: Hold) -> Hold: ...

    async def get(self, db: AsyncSession, hold_id: str, for_update: bool = False) -> Hold | None: ...

    async def list_holds(
        self,
        db: AsyncSession,
        company_ids: list[str] | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Hold]: ...

    async def transition(
        self,
        db: AsyncSession,
        hold_id: str,
        new_status: str,
        order_id: str | None = None,
    ) -> Hold | None: ...

    async def lock_lapsed(self, db: AsyncSession, now: datetime, limit: int) -> list[Hold]: ...
