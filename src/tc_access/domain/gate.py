"""Company-scoped access rules.

Every rule lives in resolve_access; callers derive the Relationship from the
data they hold and never branch on role themselves.
"""

from enum import Enum

from src.tc_common.enums import Role


class Relationship(str, Enum):
    OWN_COMPANY = "OWN_COMPANY"
    LINKED = "LINKED"
    NONE = "NONE"


class Capability(str, Enum):
    FULL = "FULL"          # admin: any company
    OWNER = "OWNER"        # company user: its own company
    DELEGATE = "DELEGATE"  # accountant: linked client company
    NONE = "NONE"


_RULES: dict[tuple[Role, Relationship], Capability] = {
    (Role.COMPANY, Relationship.OWN_COMPANY): Capability.OWNER,
    (Role.ACCOUNTANT, Relationship.LINKED): Capability.DELEGATE,
}


def resolve_access(role: Role | str, relationship: Relationship) -> Capability:
    """Map (role, relationship) to a capability. Unknown roles get NONE."""
    try:
        role = Role(role)
    except ValueError:
        return Capability.NONE
    if role == Role.ADMIN:
        return Capability.FULL
    return _RULES.get((role, relationship), Capability.NONE)


def relationship_for(
    role: Role | str,
    user_company_id: str | None,
    target_company_id: str,
    linked: bool,
) -> Relationship:
    if role == Role.COMPANY and user_company_id is not None and user_company_id == target_company_id:
        return Relationship.OWN_COMPANY
    if role == Role.ACCOUNTANT and linked:
        return Relationship.LINKED
    return Relationship.NONE
