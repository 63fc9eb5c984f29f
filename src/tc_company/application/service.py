"""CompanyService: company detail, admin lifecycle, accountant links, brokers.

Mutations run inside atomic(); the audit entry is written after commit.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_access.application.service import AccessService, access_service
from src.tc_access.infrastructure.persistence import AccessRepository
from src.tc_audit.application.writer import AuditWriter, audit_writer
from src.tc_common.database import atomic
from src.tc_common.enums import (
    AuditAction,
    AuditEntity,
    CompanyStatus,
    Role,
    VerificationStatus,
)
from src.tc_common.errors import (
    AccountantNotFoundError,
    BrokerNotFoundError,
    BrokerNotVerifiedError,
    CompanyNotActiveError,
    CompanyNotFoundError,
    ForbiddenError,
    ValidationError,
)
from src.tc_company.application.schemas import (
    AccountantLinkResponse,
    AccountantResponse,
    BrokerResponse,
    CompanyListResponse,
    CompanyResponse,
)
from src.tc_company.domain.models import Broker, Company
from src.tc_company.domain.repository import CompanyRepositoryProtocol
from src.tc_company.infrastructure.persistence import CompanyRepository
from src.tc_gateway.user.db_models import UserModel

# status transitions allowed by each admin lifecycle action
_LIFECYCLE: dict[AuditAction, tuple[set[str], CompanyStatus]] = {
    AuditAction.BLOCK_COMPANY: ({CompanyStatus.ACTIVE.value}, CompanyStatus.BLOCKED),
    AuditAction.UNBLOCK_COMPANY: ({CompanyStatus.BLOCKED.value}, CompanyStatus.ACTIVE),
    AuditAction.ARCHIVE_COMPANY: (
        {CompanyStatus.ACTIVE.value, CompanyStatus.BLOCKED.value},
        CompanyStatus.ARCHIVED,
    ),
    AuditAction.UNARCHIVE_COMPANY: ({CompanyStatus.ARCHIVED.value}, CompanyStatus.ACTIVE),
}


class CompanyService:
    def __init__(
        self,
        repo: CompanyRepositoryProtocol | None = None,
        access: AccessService | None = None,
        links: AccessRepository | None = None,
        audit: AuditWriter | None = None,
    ) -> None:
        self._repo: CompanyRepositoryProtocol = repo or CompanyRepository()
        self._access = access or access_service
        self._links = links or AccessRepository()
        self._audit = audit or audit_writer

    # ------------------------------------------------------------------
    # Lookups used by other contexts
    # ------------------------------------------------------------------

    async def get_active_company(self, db: AsyncSession, company_id: str) -> Company:
        company = await self._repo.get_company(db, company_id)
        if company is None:
            raise CompanyNotFoundError(company_id)
        if not company.is_active:
            raise CompanyNotActiveError(company_id)
        return company

    async def get_verified_broker(self, db: AsyncSession, user: UserModel) -> Broker:
        broker = await self._repo.get_broker_by_user(db, str(user.id))
        if broker is None:
            raise BrokerNotFoundError(str(user.id))
        if not broker.is_verified:
            raise BrokerNotVerifiedError()
        return broker

    # ------------------------------------------------------------------
    # Company reads
    # ------------------------------------------------------------------

    async def get_company(self, db: AsyncSession, user: UserModel, company_id: str) -> CompanyResponse:
        await self._access.require_company_access(db, user, company_id)
        company = await self._repo.get_company(db, company_id)
        if company is None:
            raise CompanyNotFoundError(company_id)
        return CompanyResponse.from_domain(company)

    async def list_companies(
        self, db: AsyncSession, user: UserModel, status: str | None = None
    ) -> CompanyListResponse:
        """Admin sees all companies; accountants their linked clients; companies themselves."""
        scope = await self._access.accessible_company_ids(db, user)
        companies = await self._repo.list_companies(db, scope, status)
        return CompanyListResponse(items=[CompanyResponse.from_domain(c) for c in companies])

    # ------------------------------------------------------------------
    # Admin lifecycle
    # ------------------------------------------------------------------

    async def verify_company(
        self,
        db: AsyncSession,
        admin: UserModel,
        company_id: str,
        status: VerificationStatus,
        note: str | None,
    ) -> CompanyResponse:
        async with atomic(db):
            prev = await self._repo.get_company(db, company_id)
            if prev is None:
                raise CompanyNotFoundError(company_id)
            company = await self._repo.set_verification(db, company_id, status.value, note)
            assert company is not None

        action = (
            AuditAction.REJECT_COMPANY
            if status == VerificationStatus.REJECTED
            else AuditAction.VERIFY_COMPANY
        )
        await self._audit.write(
            str(admin.id),
            admin.email,
            action.value,
            AuditEntity.COMPANY.value,
            entity_id=company_id,
            company_id=company_id,
            details={
                "previous_status": prev.verification_status,
                "new_status": status.value,
                "note": note,
                "company_name": prev.legal_name,
            },
        )
        return CompanyResponse.from_domain(company)

    async def change_status(
        self, db: AsyncSession, admin: UserModel, company_id: str, action: AuditAction
    ) -> CompanyResponse:
        allowed_from, target = _LIFECYCLE[action]
        async with atomic(db):
            prev = await self._repo.get_company(db, company_id)
            if prev is None:
                raise CompanyNotFoundError(company_id)
            if prev.status == target.value:
                return CompanyResponse.from_domain(prev)
            if prev.status not in allowed_from:
                raise ValidationError(
                    f"Cannot {action.value.split('_')[0].lower()} a {prev.status} company"
                )
            company = await self._repo.set_status(db, company_id, target.value)
            assert company is not None

        await self._audit.write(
            str(admin.id),
            admin.email,
            action.value,
            AuditEntity.COMPANY.value,
            entity_id=company_id,
            company_id=company_id,
            details={"prev_status": prev.status, "next_status": company.status},
        )
        return CompanyResponse.from_domain(company)

    # ------------------------------------------------------------------
    # Accountant links
    # ------------------------------------------------------------------

    async def link_accountant(
        self, db: AsyncSession, admin: UserModel, accountant_id: str, company_id: str
    ) -> AccountantLinkResponse:
        async with atomic(db):
            if await self._repo.get_accountant(db, accountant_id) is None:
                raise AccountantNotFoundError(accountant_id)
            if await self._repo.get_company(db, company_id) is None:
                raise CompanyNotFoundError(company_id)
            created = await self._links.link(db, accountant_id, company_id)

        if created:
            await self._audit.write(
                str(admin.id),
                admin.email,
                AuditAction.LINK_ACCOUNTANT.value,
                AuditEntity.ACCOUNTANT_LINK.value,
                entity_id=f"{accountant_id}:{company_id}",
                company_id=company_id,
                details={"accountant_id": accountant_id},
            )
        return AccountantLinkResponse(
            accountant_id=accountant_id, company_id=company_id, linked=True, changed=created
        )

    async def unlink_accountant(
        self, db: AsyncSession, admin: UserModel, accountant_id: str, company_id: str
    ) -> AccountantLinkResponse:
        async with atomic(db):
            removed = await self._links.unlink(db, accountant_id, company_id)

        if removed:
            await self._audit.write(
                str(admin.id),
                admin.email,
                AuditAction.UNLINK_ACCOUNTANT.value,
                AuditEntity.ACCOUNTANT_LINK.value,
                entity_id=f"{accountant_id}:{company_id}",
                company_id=company_id,
                details={"accountant_id": accountant_id},
            )
        return AccountantLinkResponse(
            accountant_id=accountant_id, company_id=company_id, linked=False, changed=removed
        )

    async def accountant_companies(self, db: AsyncSession, user: UserModel) -> CompanyListResponse:
        if user.role != Role.ACCOUNTANT:
            raise ForbiddenError("Only accountants have client companies")
        ids = await self._links.linked_company_ids(db, str(user.id))
        companies = await self._repo.list_companies(db, ids, None)
        return CompanyListResponse(items=[CompanyResponse.from_domain(c) for c in companies])

    async def list_accountants(self, db: AsyncSession) -> list[AccountantResponse]:
        return [AccountantResponse.from_domain(a) for a in await self._repo.list_accountants(db)]

    # ------------------------------------------------------------------
    # Brokers
    # ------------------------------------------------------------------

    async def list_brokers(self, db: AsyncSession) -> list[BrokerResponse]:
        return [BrokerResponse.from_domain(b) for b in await self._repo.list_brokers(db)]

    async def verify_broker(
        self, db: AsyncSession, admin: UserModel, broker_id: str, status: VerificationStatus
    ) -> BrokerResponse:
        async with atomic(db):
            prev = await self._repo.get_broker(db, broker_id)
            if prev is None:
                raise BrokerNotFoundError(broker_id)
            broker = await self._repo.set_broker_verification(db, broker_id, status.value)
            assert broker is not None

        await self._audit.write(
            str(admin.id),
            admin.email,
            AuditAction.VERIFY_BROKER.value,
            AuditEntity.BROKER.value,
            entity_id=broker_id,
            details={"previous_status": prev.verification_status, "new_status": status.value},
        )
        return BrokerResponse.from_domain(broker)


company_service = CompanyService()
