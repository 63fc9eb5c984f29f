"""AccessService: applies the access gate to a concrete user and company.

Authentication happens first (get_current_user); this layer only answers
"may this authenticated user touch this company's data".
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_access.domain.gate import Capability, relationship_for, resolve_access
from src.tc_access.infrastructure.persistence import AccessRepository
from src.tc_common.enums import Role
from src.tc_common.errors import ForbiddenError
from src.tc_gateway.user.db_models import UserModel


class AccessService:
    def __init__(self, repo: AccessRepository | None = None) -> None:
        self._repo = repo or AccessRepository()

    async def capability(
        self,
        db: AsyncSession,
        user_id: str,
        role: str,
        user_company_id: str | None,
        company_id: str,
    ) -> Capability:
        linked = False
        if role == Role.ACCOUNTANT:
            linked = await self._repo.is_linked(db, user_id, company_id)
        return resolve_access(role, relationship_for(role, user_company_id, company_id, linked))

    async def has_access(
        self,
        db: AsyncSession,
        user_id: str,
        role: str,
        company_id: str,
        user_company_id: str | None = None,
    ) -> bool:
        cap = await self.capability(db, user_id, role, user_company_id, company_id)
        return cap != Capability.NONE

    async def require_company_access(
        self, db: AsyncSession, user: UserModel, company_id: str
    ) -> Capability:
        """Raise ForbiddenError unless the user may act on company_id."""
        cap = await self.capability(db, str(user.id), user.role, user.company_id, company_id)
        if cap == Capability.NONE:
            raise ForbiddenError(f"No access to company {company_id}")
        return cap

    async def accessible_company_ids(self, db: AsyncSession, user: UserModel) -> list[str] | None:
        """Company scope for list queries. None means unrestricted (admin)."""
        if user.role == Role.ADMIN:
            return None
        if user.role == Role.COMPANY:
            return [user.company_id] if user.company_id else []
        if user.role == Role.ACCOUNTANT:
            return await self._repo.linked_company_ids(db, str(user.id))
        return []


access_service = AccessService()
