"""Repository Protocol: dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_inventory.domain.models import CreditLot, LotInvariantRow


class InventoryRepositoryProtocol(Protocol):
    async def get(self, db: AsyncSession, lot_id: str, for_update: bool = False) -> CreditLot | None: ...

    async def check_availability(self, db: AsyncSession, lot_id: str, amount: Decimal) -> bool: ...

    async def decrement(self, db: AsyncSession, lot_id: str, amount: Decimal) -> CreditLot: ...

    async def increment(self, db: AsyncSession, lot_id: str, amount: Decimal) -> CreditLot: ...

    async def list_lots(
        self,
        db: AsyncSession,
        *,
        status: str | None,
        credit_type: str | None,
        tax_year: int | None,
        broker_id: str | None,
        only_available: bool,
        cursor_id: str | None,
        limit: int,
    ) -> list[CreditLot]: ...

    async def export_lots(self, db: AsyncSession) -> list[CreditLot]: ...

    async def insert(self, db: AsyncSession, lot: CreditLot) -> CreditLot: ...

    async def save(self, db: AsyncSession, lot: CreditLot) -> CreditLot: ...

    async def has_references(self, db: AsyncSession, lot_id: str) -> bool: ...

    async def delete(self, db: AsyncSession, lot_id: str) -> None: ...

    async def invariant_rows(self, db: AsyncSession, lot_id: str | None = None) -> list[LotInvariantRow]: ...

    async def committed_usd(self, db: AsyncSession, lot_id: str) -> Decimal: ...
