"""AuditWriter is best effort: failures are logged, never raised."""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.tc_audit.application.writer import AuditWriter
from src.tc_audit.domain.models import AuditEntry


def _factory(session: AsyncMock) -> MagicMock:
    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=session)
    ctx.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=ctx)


async def test_writes_in_own_session_and_commits() -> None:
    session = AsyncMock()
    repo = AsyncMock()
    repo.insert.return_value = AuditEntry(
        id=1, timestamp=datetime.now(timezone.utc), action="CREATE", entity="HOLD"
    )
    notifier = AsyncMock()
    writer = AuditWriter(_factory(session), repo, notifier)

    entry = await writer.write("u1", "a@x.com", "CREATE", "HOLD", entity_id="HLD-1", amount_usd=Decimal("10"))

    assert entry is not None
    session.commit.assert_awaited_once()
    assert repo.insert.await_args.kwargs["entity_id"] == "HLD-1"
    notifier.notify_audit_event.assert_awaited_once()


async def test_failure_is_swallowed() -> None:
    repo = AsyncMock()
    repo.insert.side_effect = RuntimeError("db down")
    notifier = AsyncMock()
    writer = AuditWriter(_factory(AsyncMock()), repo, notifier)

    assert await writer.write(None, None, "LOGIN_FAILED", "USER") is None
    notifier.notify_audit_event.assert_not_awaited()


async def test_notifier_failure_does_not_lose_entry() -> None:
    repo = AsyncMock()
    repo.insert.return_value = AuditEntry(
        id=2, timestamp=datetime.now(timezone.utc), action="PAYMENT_CONFIRMED", entity="PURCHASE_ORDER"
    )
    notifier = AsyncMock()
    notifier.notify_audit_event.side_effect = RuntimeError("telegram down")
    writer = AuditWriter(_factory(AsyncMock()), repo, notifier)

    assert await writer.write("u1", "a@x.com", "PAYMENT_CONFIRMED", "PURCHASE_ORDER") is not None
