"""Repository Protocol: dependency inversion for testability."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_company.domain.models import Accountant, Broker, Company


class CompanyRepositoryProtocol(Protocol):
    async def get_company(self, db: AsyncSession, company_id: str) -> Company | None: ...

    async def list_companies(
        self,
        db: AsyncSession,
        company_ids: list[str] | None,
        status: str | None,
    ) -> list[Company]: ...

    async def set_status(self, db: AsyncSession, company_id: str, status: str) -> Company | None: ...

    async def set_verification(
        self, db: AsyncSession, company_id: str, status: str, note: str | None
    ) -> Company | None: ...

    async def get_broker(self, db: AsyncSession, broker_id: str) -> Broker | None: ...

    async def get_broker_by_user(self, db: AsyncSession, user_id: str) -> Broker | None: ...

    async def list_brokers(self, db: AsyncSession) -> list[Broker]: ...

    async def set_broker_verification(
        self, db: AsyncSession, broker_id: str, status: str
    ) -> Broker | None: ...

    async def get_accountant(self, db: AsyncSession, user_id: str) -> Accountant | None: ...

    async def list_accountants(self, db: AsyncSession) -> list[Accountant]: ...
