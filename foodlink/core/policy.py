from enum import Enum

from foodlink.core.errors import PermissionDenied


class Role(str, Enum):
    DONOR = "donor"
    NGO = "ngo"
    VOLUNTEER = "volunteer"
    ADMIN = "admin"


# every Role must have an entry; lookups index directly so a missing role fails loudly
ROLE_SCOPES = {
    Role.DONOR: {"donations:create", "donations:cancel"},
    Role.NGO: {"donations:accept"},
    Role.VOLUNTEER: {"donations:accept"},
    Role.ADMIN: {"*"},
}


def scopes_for(role: Role) -> set:
    return ROLE_SCOPES[Role(role)]


def has_scope(role: Role, scope: str) -> bool:
    scopes = scopes_for(role)
    return "*" in scopes or scope in scopes


def require_scope(role: Role, scope: str) -> None:
    if not has_scope(role, scope):
        raise PermissionDenied(f"Role '{Role(role).value}' cannot perform {scope}")
