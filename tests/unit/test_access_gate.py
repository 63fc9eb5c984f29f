"""Access gate: pure rules plus AccessService over a mocked link repository."""

import uuid
from unittest.mock import AsyncMock

import pytest

from src.tc_access.application.service import AccessService
from src.tc_access.domain.gate import Capability, Relationship, relationship_for, resolve_access
from src.tc_common.enums import Role
from src.tc_common.errors import ForbiddenError
from src.tc_gateway.user.db_models import UserModel


def _user(role: Role, company_id: str | None = None) -> UserModel:
    user = UserModel()
    user.id = uuid.uuid4()
    user.email = f"{role.value.lower()}@example.com"
    user.role = role.value
    user.company_id = company_id
    user.is_active = True
    return user


class TestResolveAccess:
    @pytest.mark.parametrize("rel", list(Relationship))
    def test_admin_always_full(self, rel: Relationship) -> None:
        assert resolve_access(Role.ADMIN, rel) == Capability.FULL

    def test_company_owner(self) -> None:
        assert resolve_access(Role.COMPANY, Relationship.OWN_COMPANY) == Capability.OWNER

    def test_company_other(self) -> None:
        assert resolve_access(Role.COMPANY, Relationship.NONE) == Capability.NONE

    def test_accountant_linked(self) -> None:
        assert resolve_access(Role.ACCOUNTANT, Relationship.LINKED) == Capability.DELEGATE

    def test_accountant_unlinked(self) -> None:
        assert resolve_access(Role.ACCOUNTANT, Relationship.NONE) == Capability.NONE

    @pytest.mark.parametrize("rel", list(Relationship))
    def test_broker_never(self, rel: Relationship) -> None:
        assert resolve_access(Role.BROKER, rel) == Capability.NONE

    def test_unknown_role(self) -> None:
        assert resolve_access("SUPERUSER", Relationship.OWN_COMPANY) == Capability.NONE

    def test_plain_string_role(self) -> None:
        assert resolve_access("ADMIN", Relationship.NONE) == Capability.FULL


class TestRelationshipFor:
    def test_own_company(self) -> None:
        assert relationship_for(Role.COMPANY, "CO-1", "CO-1", False) == Relationship.OWN_COMPANY

    def test_company_without_company_id(self) -> None:
        assert relationship_for(Role.COMPANY, None, "CO-1", False) == Relationship.NONE

    def test_link_only_counts_for_accountants(self) -> None:
        assert relationship_for(Role.ACCOUNTANT, None, "CO-1", True) == Relationship.LINKED
        assert relationship_for(Role.BROKER, None, "CO-1", True) == Relationship.NONE


class TestAccessService:
    async def test_company_user_own_company(self) -> None:
        repo = AsyncMock()
        svc = AccessService(repo)
        user = _user(Role.COMPANY, "CO-1")
        assert await svc.require_company_access(AsyncMock(), user, "CO-1") == Capability.OWNER
        repo.is_linked.assert_not_awaited()

    async def test_company_user_other_company_forbidden(self) -> None:
        svc = AccessService(AsyncMock())
        with pytest.raises(ForbiddenError):
            await svc.require_company_access(AsyncMock(), _user(Role.COMPANY, "CO-1"), "CO-2")

    async def test_accountant_linked(self) -> None:
        repo = AsyncMock()
        repo.is_linked.return_value = True
        svc = AccessService(repo)
        user = _user(Role.ACCOUNTANT)
        assert await svc.has_access(AsyncMock(), str(user.id), user.role, "CO-1") is True
        repo.is_linked.assert_awaited_once()

    async def test_accountant_unlinked(self) -> None:
        repo = AsyncMock()
        repo.is_linked.return_value = False
        svc = AccessService(repo)
        with pytest.raises(ForbiddenError):
            await svc.require_company_access(AsyncMock(), _user(Role.ACCOUNTANT), "CO-1")

    async def test_broker_has_no_company_access(self) -> None:
        svc = AccessService(AsyncMock())
        assert await svc.has_access(AsyncMock(), "u1", Role.BROKER.value, "CO-1") is False

    async def test_scopes(self) -> None:
        repo = AsyncMock()
        repo.linked_company_ids.return_value = ["CO-7", "CO-9"]
        svc = AccessService(repo)
        db = AsyncMock()
        assert await svc.accessible_company_ids(db, _user(Role.ADMIN)) is None
        assert await svc.accessible_company_ids(db, _user(Role.COMPANY, "CO-1")) == ["CO-1"]
        assert await svc.accessible_company_ids(db, _user(Role.ACCOUNTANT)) == ["CO-7", "CO-9"]
        assert await svc.accessible_company_ids(db, _user(Role.BROKER)) == []
