"""InventoryService: marketplace listing plus admin/broker lot management.

Balance mutations for holds and orders go through the repository's
decrement/increment directly from those services, on their own transaction.
This service handles catalogue reads and the admin/broker CRUD paths.
"""

import logging
from dataclasses import replace
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tc_audit.application.writer import AuditWriter, audit_writer
from src.tc_common.csv_io import read_csv, write_csv
from src.tc_common.database import atomic
from src.tc_common.enums import AuditAction, AuditEntity, LotStatus
from src.tc_common.errors import ForbiddenError, LotNotFoundError
from src.tc_common.id_generator import generate_id
from src.tc_common.money import ZERO, to_price, to_usd
from src.tc_common.pagination import split_page
from src.tc_company.application.service import CompanyService, company_service
from src.tc_gateway.user.db_models import UserModel
from src.tc_inventory.application.lot_import import parse_lot_rows
from src.tc_inventory.application.schemas import (
    BrokerLotUpdateRequest,
    InvariantReport,
    InvariantRowOut,
    LotCreateRequest,
    LotDeleteResponse,
    LotImportResponse,
    LotListResponse,
    LotResponse,
)
from src.tc_inventory.domain.models import CreditLot
from src.tc_inventory.domain.repository import InventoryRepositoryProtocol
from src.tc_inventory.domain.validation import (
    check_adjustment,
    check_balance,
    check_min_block,
    check_new_lot,
    check_price,
)
from src.tc_inventory.infrastructure.persistence import InventoryRepository

logger = logging.getLogger(__name__)

EXPORT_HEADER = (
    "ID",
    "Type",
    "Year",
    "Jurisdiction",
    "State Restriction",
    "Face Value",
    "Min Block",
    "Price Per Dollar",
    "Available",
    "Close By",
    "Broker",
    "Status",
)

# fields an update may copy straight across once validated
_PLAIN_FIELDS = (
    "credit_type",
    "tax_year",
    "status",
    "jurisdiction",
    "state_restriction",
    "close_by",
    "broker_name",
    "notes",
)


def _lot_diff(before: CreditLot, after: CreditLot) -> dict[str, dict[str, str]]:
    changes: dict[str, dict[str, str]] = {}
    for name in before.__dataclass_fields__:
        if name in ("created_at", "updated_at"):
            continue
        old, new = getattr(before, name), getattr(after, name)
        if old != new:
            changes[name] = {"from": str(old), "to": str(new)}
    return changes


def apply_update(
    lot: CreditLot, req: BrokerLotUpdateRequest, committed: Decimal = ZERO
) -> CreditLot:
    """Return the corrected lot.

    Face value never changes. `committed` is what active holds and live
    orders already took from the lot; a manual available figure must fit
    under face minus that.
    """
    fields = req.model_dump(exclude_unset=True)
    updated = replace(lot)
    for name in _PLAIN_FIELDS:
        if fields.get(name) is not None:
            value = fields[name]
            setattr(updated, name, value.value if hasattr(value, "value") else value)

    if req.price_per_dollar is not None:
        check_price(req.price_per_dollar)
        updated.price_per_dollar = to_price(req.price_per_dollar)
    if req.min_block_usd is not None:
        updated.min_block_usd = to_usd(req.min_block_usd)
        check_min_block(updated.face_value_usd, updated.min_block_usd)
    if fields.get("available_usd") is not None:
        updated.available_usd = to_usd(fields["available_usd"])
        check_adjustment(updated.face_value_usd, committed, updated.available_usd)

    check_balance(updated.face_value_usd, updated.available_usd)
    return updated


class InventoryService:
    def __init__(
        self,
        repo: InventoryRepositoryProtocol | None = None,
        companies: CompanyService | None = None,
        audit: AuditWriter | None = None,
    ) -> None:
        self._repo: InventoryRepositoryProtocol = repo or InventoryRepository()
        self._companies = companies or company_service
        self._audit = audit or audit_writer

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def marketplace(
        self,
        db: AsyncSession,
        credit_type: str | None,
        tax_year: int | None,
        cursor: str | None,
        limit: int,
    ) -> LotListResponse:
        """ACTIVE lots with something left to sell."""
        rows = await self._repo.list_lots(
            db,
            status=LotStatus.ACTIVE.value,
            credit_type=credit_type,
            tax_year=tax_year,
            only_available=True,
            cursor_id=cursor,
            limit=limit + 1,
        )
        return self._page(rows, limit)

    async def get_lot(self, db: AsyncSession, lot_id: str) -> LotResponse:
        lot = await self._repo.get(db, lot_id)
        if lot is None:
            raise LotNotFoundError(lot_id)
        return LotResponse.from_domain(lot)

    async def check_availability(self, db: AsyncSession, lot_id: str, amount: Decimal) -> bool:
        return await self._repo.check_availability(db, lot_id, amount)

    async def admin_list(
        self,
        db: AsyncSession,
        status: str | None,
        credit_type: str | None,
        cursor: str | None,
        limit: int,
    ) -> LotListResponse:
        rows = await self._repo.list_lots(
            db, status=status, credit_type=credit_type, cursor_id=cursor, limit=limit + 1
        )
        return self._page(rows, limit)

    async def broker_list(
        self, db: AsyncSession, user: UserModel, cursor: str | None, limit: int
    ) -> LotListResponse:
        broker = await self._companies.get_verified_broker(db, user)
        rows = await self._repo.list_lots(db, broker_id=broker.id, cursor_id=cursor, limit=limit + 1)
        return self._page(rows, limit)

    @staticmethod
    def _page(rows: list[CreditLot], limit: int) -> LotListResponse:
        page, has_more = split_page(rows, limit)
        return LotListResponse(
            items=[LotResponse.from_domain(lot) for lot in page],
            next_cursor=page[-1].id if has_more and page else None,
            has_more=has_more,
        )

    # ------------------------------------------------------------------
    # Create / update / delete
    # ------------------------------------------------------------------

    async def create_lot(
        self,
        db: AsyncSession,
        actor: UserModel,
        req: LotCreateRequest,
        broker_id: str | None = None,
        broker_name: str | None = None,
    ) -> LotResponse:
        check_new_lot(req.face_value_usd, req.min_block_usd, req.price_per_dollar)
        face = to_usd(req.face_value_usd)
        lot = CreditLot(
            id=generate_id("LOT"),
            credit_type=req.credit_type.value,
            tax_year=req.tax_year,
            face_value_usd=face,
            available_usd=face,
            min_block_usd=to_usd(req.min_block_usd),
            price_per_dollar=to_price(req.price_per_dollar),
            status=LotStatus.ACTIVE.value,
            jurisdiction=req.jurisdiction,
            state_restriction=req.state_restriction.upper() if req.state_restriction else None,
            close_by=req.close_by,
            broker_id=broker_id,
            broker_name=broker_name or req.broker_name,
            notes=req.notes,
        )
        async with atomic(db):
            created = await self._repo.insert(db, lot)

        await self._audit.write(
            str(actor.id),
            actor.email,
            AuditAction.CREATE.value,
            AuditEntity.CREDIT_INVENTORY.value,
            entity_id=created.id,
            amount_usd=created.face_value_usd,
            details={
                "credit_type": created.credit_type,
                "tax_year": created.tax_year,
                "price_per_dollar": str(created.price_per_dollar),
                "broker_id": created.broker_id,
            },
        )
        return LotResponse.from_domain(created)

    async def update_lot(
        self,
        db: AsyncSession,
        actor: UserModel,
        lot_id: str,
        req: BrokerLotUpdateRequest,
        owner_broker_id: str | None = None,
    ) -> LotResponse:
        async with atomic(db):
            current = await self._repo.get(db, lot_id, for_update=True)
            if current is None:
                raise LotNotFoundError(lot_id)
            if owner_broker_id is not None and current.broker_id != owner_broker_id:
                raise ForbiddenError("Lot belongs to another broker")
            committed = ZERO
            if getattr(req, "available_usd", None) is not None:
                # holds and orders on this lot wait on the row lock taken above
                committed = await self._repo.committed_usd(db, lot_id)
            saved = await self._repo.save(db, apply_update(current, req, committed))

        changes = _lot_diff(current, saved)
        if changes:
            await self._audit.write(
                str(actor.id),
                actor.email,
                AuditAction.UPDATE.value,
                AuditEntity.CREDIT_INVENTORY.value,
                entity_id=lot_id,
                details={"changes": changes},
            )
        return LotResponse.from_domain(saved)

    async def delete_lot(self, db: AsyncSession, actor: UserModel, lot_id: str) -> LotDeleteResponse:
        """Hard delete unreferenced lots; lots with holds or orders are deactivated."""
        async with atomic(db):
            current = await self._repo.get(db, lot_id, for_update=True)
            if current is None:
                raise LotNotFoundError(lot_id)
            soft = await self._repo.has_references(db, lot_id)
            if soft:
                await self._repo.save(db, replace(current, status=LotStatus.INACTIVE.value))
            else:
                await self._repo.delete(db, lot_id)

        await self._audit.write(
            str(actor.id),
            actor.email,
            (AuditAction.DEACTIVATE if soft else AuditAction.DELETE).value,
            AuditEntity.CREDIT_INVENTORY.value,
            entity_id=lot_id,
            amount_usd=current.available_usd,
            details={"soft_deleted": soft, "credit_type": current.credit_type},
        )
        return LotDeleteResponse(id=lot_id, deleted=not soft, soft_deleted=soft)

    # ------------------------------------------------------------------
    # Broker-scoped wrappers
    # ------------------------------------------------------------------

    async def broker_create(self, db: AsyncSession, user: UserModel, req: LotCreateRequest) -> LotResponse:
        broker = await self._companies.get_verified_broker(db, user)
        return await self.create_lot(db, user, req, broker_id=broker.id, broker_name=broker.name)

    async def broker_update(
        self, db: AsyncSession, user: UserModel, lot_id: str, req: BrokerLotUpdateRequest
    ) -> LotResponse:
        broker = await self._companies.get_verified_broker(db, user)
        return await self.update_lot(db, user, lot_id, req, owner_broker_id=broker.id)

    # ------------------------------------------------------------------
    # Bulk upload / export (admin)
    # ------------------------------------------------------------------

    async def import_lots(
        self, db: AsyncSession, actor: UserModel, content: bytes, source: str | None = None
    ) -> LotImportResponse:
        """Create one lot per CSV row in a single transaction, or none at all."""
        rows = parse_lot_rows(read_csv(content), settings.LOT_IMPORT_MAX_ROWS)
        lots = []
        for row in rows:
            face = to_usd(row.face_value_usd)
            lots.append(
                CreditLot(
                    id=generate_id("LOT"),
                    credit_type=row.credit_type.value,
                    tax_year=row.tax_year,
                    face_value_usd=face,
                    available_usd=to_usd(row.available_usd) if row.available_usd is not None else face,
                    min_block_usd=to_usd(row.min_block_usd),
                    price_per_dollar=to_price(row.price_per_dollar),
                    status=row.status.value,
                    jurisdiction=row.jurisdiction,
                    state_restriction=row.state_restriction.upper() if row.state_restriction else None,
                    close_by=row.close_by,
                    broker_name=row.broker_name,
                    notes=row.notes,
                )
            )
        async with atomic(db):
            created = [await self._repo.insert(db, lot) for lot in lots]

        lot_ids = [lot.id for lot in created]
        logger.info("Bulk upload by %s created %d lots", actor.email, len(lot_ids))
        await self._audit.write(
            str(actor.id),
            actor.email,
            AuditAction.IMPORT.value,
            AuditEntity.CREDIT_INVENTORY.value,
            amount_usd=sum((lot.face_value_usd for lot in created), ZERO),
            details={"source": source, "created": len(lot_ids), "lot_ids": lot_ids},
        )
        return LotImportResponse(created=len(lot_ids), lot_ids=lot_ids)

    async def export_csv(self, db: AsyncSession, actor: UserModel) -> str:
        lots = await self._repo.export_lots(db)
        content = write_csv(
            EXPORT_HEADER,
            (
                (
                    lot.id,
                    lot.credit_type,
                    lot.tax_year,
                    lot.jurisdiction,
                    lot.state_restriction,
                    lot.face_value_usd,
                    lot.min_block_usd,
                    lot.price_per_dollar,
                    lot.available_usd,
                    lot.close_by,
                    lot.broker_name,
                    lot.status,
                )
                for lot in lots
            ),
        )
        await self._audit.write(
            str(actor.id),
            actor.email,
            AuditAction.EXPORT.value,
            AuditEntity.CREDIT_INVENTORY.value,
            details={"rows": len(lots)},
        )
        return content

    # ------------------------------------------------------------------
    # Invariants
    # ------------------------------------------------------------------

    async def invariant_report(self, db: AsyncSession) -> InvariantReport:
        rows = await self._repo.invariant_rows(db)
        bad = [InvariantRowOut.from_domain(r) for r in rows if r.violations()]
        return InvariantReport(ok=not bad, lots_checked=len(rows), violations=bad)


inventory_service = InventoryService()
