"""AuditWriter: best-effort, append-only audit trail.

Each write runs in its own session and transaction, AFTER the business
transaction it annotates has committed. A failed audit write is logged and
swallowed: it never rolls back or fails the primary action.
"""

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.tc_audit.domain.models import AuditEntry
from src.tc_audit.infrastructure.persistence import AuditRepository
from src.tc_common.database import async_session_factory
from src.tc_notify.telegram import TelegramNotifier

logger = logging.getLogger(__name__)


class AuditWriter:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        repo: AuditRepository | None = None,
        notifier: TelegramNotifier | None = None,
    ) -> None:
        self._session_factory = session_factory or async_session_factory
        self._repo = repo or AuditRepository()
        self._notifier = notifier or TelegramNotifier()

    async def write(
        self,
        actor_id: str | None,
        actor_email: str | None,
        action: str,
        entity: str,
        entity_id: str | None = None,
        details: dict[str, Any] | None = None,
        company_id: str | None = None,
        amount_usd: Decimal | None = None,
        ip: str | None = None,
    ) -> AuditEntry | None:
        """Append one immutable row. Returns None when the write failed."""
        try:
            async with self._session_factory() as session:
                entry = await self._repo.insert(
                    session,
                    actor_id=actor_id,
                    actor_email=actor_email,
                    action=action,
                    entity=entity,
                    entity_id=entity_id,
                    details=details,
                    company_id=company_id,
                    amount_usd=amount_usd,
                    ip=ip,
                )
                await session.commit()
        except Exception:
            logger.exception(
                "Audit write failed: action=%s entity=%s entity_id=%s", action, entity, entity_id
            )
            return None

        try:
            await self._notifier.notify_audit_event(
                action,
                entity,
                actor_email=actor_email,
                entity_id=entity_id,
                amount_usd=amount_usd,
                details=details,
            )
        except Exception:
            logger.exception("Audit notification failed: action=%s", action)
        return entry


audit_writer = AuditWriter()
