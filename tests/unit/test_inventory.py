"""Lot validation, admin updates and the per-lot invariant check."""

import uuid
from decimal import Decimal
from unittest.mock import AsyncMock

import pydantic
import pytest

from src.tc_common.enums import CreditType, LotStatus, Role
from src.tc_common.errors import ForbiddenError, InventoryInvariantError, ValidationError
from src.tc_gateway.user.db_models import UserModel
from src.tc_inventory.application.schemas import (
    BrokerLotUpdateRequest,
    LotCreateRequest,
    LotUpdateRequest,
)
from src.tc_inventory.application.service import InventoryService, apply_update
from src.tc_inventory.domain.models import CreditLot, LotInvariantRow
from src.tc_inventory.domain.validation import check_new_lot


def _lot(**kw: object) -> CreditLot:
    fields: dict = {
        "id": "LOT-1",
        "credit_type": "ITC",
        "tax_year": 2025,
        "face_value_usd": Decimal("500000.00"),
        "available_usd": Decimal("470000.00"),
        "min_block_usd": Decimal("5000.00"),
        "price_per_dollar": Decimal("0.8500"),
        "status": LotStatus.ACTIVE.value,
    }
    fields.update(kw)
    return CreditLot(**fields)


def _admin() -> UserModel:
    user = UserModel()
    user.id = uuid.uuid4()
    user.email = "admin@example.com"
    user.role = Role.ADMIN.value
    user.company_id = None
    user.is_active = True
    return user


class TestValidation:
    def test_min_block_cannot_exceed_face(self) -> None:
        with pytest.raises(ValidationError):
            check_new_lot(Decimal("1000"), Decimal("2000"), Decimal("0.9"))

    def test_price_out_of_range(self) -> None:
        with pytest.raises(ValidationError):
            check_new_lot(Decimal("1000"), Decimal("100"), Decimal("1.5"))


class TestApplyUpdate:
    def test_price_change_leaves_balance(self) -> None:
        updated = apply_update(_lot(), LotUpdateRequest(price_per_dollar=Decimal("0.9")))
        assert updated.price_per_dollar == Decimal("0.9000")
        assert updated.available_usd == Decimal("470000.00")

    def test_available_above_face_rejected(self) -> None:
        with pytest.raises(InventoryInvariantError):
            apply_update(_lot(), LotUpdateRequest(available_usd=Decimal("500000.01")))

    def test_face_value_cannot_be_changed(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            LotUpdateRequest(face_value_usd=Decimal("470000"))

    def test_available_capped_by_committed(self) -> None:
        # 30,000 sits in holds and live orders, so 470,000 is the most that may be listed
        with pytest.raises(InventoryInvariantError):
            apply_update(
                _lot(), LotUpdateRequest(available_usd=Decimal("500000")), Decimal("30000.00")
            )

    def test_available_up_to_face_minus_committed(self) -> None:
        lot = _lot(available_usd=Decimal("400000.00"))
        updated = apply_update(
            lot, LotUpdateRequest(available_usd=Decimal("470000")), Decimal("30000.00")
        )
        assert updated.available_usd == Decimal("470000.00")
        assert updated.face_value_usd == Decimal("500000.00")

    def test_writing_available_down_is_allowed(self) -> None:
        updated = apply_update(
            _lot(), LotUpdateRequest(available_usd=Decimal("0")), Decimal("30000.00")
        )
        assert updated.available_usd == Decimal("0.00")

    def test_min_block_above_face_rejected(self) -> None:
        with pytest.raises(ValidationError):
            apply_update(_lot(), LotUpdateRequest(min_block_usd=Decimal("500000.01")))

    def test_broker_request_has_no_available_or_label(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            BrokerLotUpdateRequest(available_usd=Decimal("1000"))
        with pytest.raises(pydantic.ValidationError):
            BrokerLotUpdateRequest(broker_name="Someone Else LLC")

    def test_status_enum_stored_as_value(self) -> None:
        updated = apply_update(_lot(), LotUpdateRequest(status=LotStatus.INACTIVE))
        assert updated.status == "INACTIVE"

    def test_original_untouched(self) -> None:
        lot = _lot()
        apply_update(lot, LotUpdateRequest(notes="repriced"))
        assert lot.notes is None


class TestInvariantRow:
    def test_healthy(self) -> None:
        row = LotInvariantRow("LOT-1", Decimal("500000"), Decimal("470000"), Decimal("10000"), Decimal("20000"))
        assert row.violations() == []

    def test_overcommitted(self) -> None:
        row = LotInvariantRow("LOT-1", Decimal("100"), Decimal("0"), Decimal("60"), Decimal("60"))
        assert len(row.violations()) == 1

    def test_available_plus_committed_above_face(self) -> None:
        row = LotInvariantRow("LOT-1", Decimal("100"), Decimal("50"), Decimal("30"), Decimal("30"))
        assert row.violations() == ["available + committed 110 > face 100"]


class TestInventoryService:
    async def test_create_lot_starts_fully_available(self) -> None:
        repo = AsyncMock()
        repo.insert.side_effect = lambda db, lot: lot
        svc = InventoryService(repo, AsyncMock(), AsyncMock())
        req = LotCreateRequest(
            credit_type=CreditType.ITC,
            tax_year=2025,
            face_value_usd=Decimal("500000"),
            min_block_usd=Decimal("5000"),
            price_per_dollar=Decimal("0.85"),
        )
        resp = await svc.create_lot(AsyncMock(), _admin(), req)
        assert resp.available_usd == resp.face_value_usd == Decimal("500000.00")
        assert resp.status == LotStatus.ACTIVE

    async def test_delete_referenced_lot_deactivates(self) -> None:
        repo = AsyncMock()
        repo.get.return_value = _lot()
        repo.has_references.return_value = True
        audit = AsyncMock()
        svc = InventoryService(repo, AsyncMock(), audit)

        resp = await svc.delete_lot(AsyncMock(), _admin(), "LOT-1")

        assert resp.soft_deleted is True and resp.deleted is False
        saved: CreditLot = repo.save.await_args.args[1]
        assert saved.status == LotStatus.INACTIVE
        repo.delete.assert_not_awaited()
        assert audit.write.await_args.args[2] == "DEACTIVATE"

    async def test_delete_unreferenced_lot(self) -> None:
        repo = AsyncMock()
        repo.get.return_value = _lot()
        repo.has_references.return_value = False
        svc = InventoryService(repo, AsyncMock(), AsyncMock())
        resp = await svc.delete_lot(AsyncMock(), _admin(), "LOT-1")
        assert resp.deleted is True
        repo.delete.assert_awaited_once()

    async def test_broker_cannot_edit_other_brokers_lot(self) -> None:
        repo = AsyncMock()
        repo.get.return_value = _lot(broker_id="BRK-2")
        svc = InventoryService(repo, AsyncMock(), AsyncMock())
        with pytest.raises(ForbiddenError):
            await svc.update_lot(
                AsyncMock(), _admin(), "LOT-1", LotUpdateRequest(notes="x"), owner_broker_id="BRK-1"
            )
        repo.save.assert_not_awaited()

    async def test_invariant_report(self) -> None:
        repo = AsyncMock()
        repo.invariant_rows.return_value = [
            LotInvariantRow("LOT-1", Decimal("100"), Decimal("40"), Decimal("0"), Decimal("60")),
            LotInvariantRow("LOT-2", Decimal("100"), Decimal("0"), Decimal("60"), Decimal("60")),
        ]
        report = await InventoryService(repo, AsyncMock(), AsyncMock()).invariant_report(AsyncMock())
        assert report.ok is False
        assert report.lots_checked == 2
        assert [v.lot_id for v in report.violations] == ["LOT-2"]

    async def test_available_adjustment_reads_committed_under_lock(self) -> None:
        repo = AsyncMock()
        repo.get.return_value = _lot()
        repo.committed_usd.return_value = Decimal("30000.00")
        svc = InventoryService(repo, AsyncMock(), AsyncMock())

        with pytest.raises(InventoryInvariantError):
            await svc.update_lot(
                AsyncMock(), _admin(), "LOT-1", LotUpdateRequest(available_usd=Decimal("500000"))
            )

        assert repo.get.await_args.kwargs == {"for_update": True}
        repo.committed_usd.assert_awaited_once()
        repo.save.assert_not_awaited()

    async def test_plain_edit_skips_committed_lookup(self) -> None:
        repo = AsyncMock()
        repo.get.return_value = _lot()
        repo.save.side_effect = lambda db, lot: lot
        audit = AsyncMock()
        svc = InventoryService(repo, AsyncMock(), audit)

        resp = await svc.update_lot(
            AsyncMock(), _admin(), "LOT-1", LotUpdateRequest(price_per_dollar=Decimal("0.9"))
        )

        assert resp.price_per_dollar == Decimal("0.9000")
        repo.committed_usd.assert_not_awaited()
        assert audit.write.await_args.kwargs["details"]["changes"]["price_per_dollar"]["to"] == "0.9000"


_SHEET = (
    "Type,Year,Face Value,Min Block,Price Per Dollar,Available,State,Broker,Status\n"
    "itc,2025,250000,5000,0.88,,tx,North Desk,\n"
    "PTC,2024,100000.00,10000,0.9100,60000,,,inactive\n"
)


class TestBulkUpload:
    async def test_creates_every_row_and_audits_once(self) -> None:
        repo = AsyncMock()
        repo.insert.side_effect = lambda db, lot: lot
        audit = AsyncMock()
        svc = InventoryService(repo, AsyncMock(), audit)

        resp = await svc.import_lots(AsyncMock(), _admin(), _SHEET.encode(), source="north-desk-q3")

        assert resp.created == 2
        first, second = (c.args[1] for c in repo.insert.await_args_list)
        assert first.credit_type == "ITC" and first.available_usd == Decimal("250000.00")
        assert first.state_restriction == "TX" and first.broker_name == "North Desk"
        assert second.status == "INACTIVE" and second.available_usd == Decimal("60000.00")
        assert second.price_per_dollar == Decimal("0.9100")
        args, kwargs = audit.write.await_args
        assert args[2] == "IMPORT"
        assert kwargs["details"]["source"] == "north-desk-q3"
        assert kwargs["details"]["lot_ids"] == resp.lot_ids
        assert kwargs["amount_usd"] == Decimal("350000.00")

    async def test_any_bad_row_rejects_whole_sheet(self) -> None:
        sheet = _SHEET + "ITC,2025,1000,5000,0.9,,,,\nITC,2025,1000,100,0.9,2000,,,\n"
        repo = AsyncMock()
        svc = InventoryService(repo, AsyncMock(), AsyncMock())

        with pytest.raises(ValidationError) as exc:
            await svc.import_lots(AsyncMock(), _admin(), sheet.encode())

        assert "row 4: min_block_usd cannot exceed face_value_usd" in exc.value.message
        assert "row 5:" in exc.value.message
        repo.insert.assert_not_awaited()

    async def test_missing_required_column(self) -> None:
        svc = InventoryService(AsyncMock(), AsyncMock(), AsyncMock())
        with pytest.raises(ValidationError) as exc:
            await svc.import_lots(AsyncMock(), _admin(), b"Type,Year\nITC,2025\n")
        assert "row 2: face_value_usd" in exc.value.message

    async def test_header_only_sheet(self) -> None:
        svc = InventoryService(AsyncMock(), AsyncMock(), AsyncMock())
        with pytest.raises(ValidationError):
            await svc.import_lots(AsyncMock(), _admin(), b"Type,Year,Face\n")


class TestInventoryExport:
    async def test_csv_rows_and_audit(self) -> None:
        repo = AsyncMock()
        repo.export_lots.return_value = [_lot(broker_name="North Desk", state_restriction="TX")]
        audit = AsyncMock()
        svc = InventoryService(repo, AsyncMock(), audit)

        content = await svc.export_csv(AsyncMock(), _admin())

        header, row = content.splitlines()
        assert header.startswith("ID,Type,Year,Jurisdiction,State Restriction,Face Value")
        assert row == "LOT-1,ITC,2025,,TX,500000.00,5000.00,0.8500,470000.00,,North Desk,ACTIVE"
        assert audit.write.await_args.args[2:4] == ("EXPORT", "CREDIT_INVENTORY")
