"""Role to capability mapping."""
from __future__ import annotations

import enum
from typing import Dict, FrozenSet, Union

from core.models import UserRole


class Capability(str, enum.Enum):
    READ = "read"
    WRITE = "write"
    ADMIN = "admin"


ROLE_CAPABILITIES: Dict[UserRole, FrozenSet[Capability]] = {
    UserRole.MASTER: frozenset({Capability.READ, Capability.WRITE, Capability.ADMIN}),
    UserRole.DEVELOPER_HQ: frozenset({Capability.READ, Capability.WRITE}),
    UserRole.SALES_ADMIN: frozenset({Capability.READ, Capability.WRITE}),
    UserRole.SALES_EXECUTIVE: frozenset({Capability.READ}),
}


def capabilities_for(role: Union[str, UserRole]) -> FrozenSet[Capability]:
    """Capabilities granted to a role; unknown roles get none."""
    try:
        return ROLE_CAPABILITIES[UserRole(role)]
    except ValueError:
        return frozenset()


def has_capability(role: Union[str, UserRole], capability: Union[str, Capability]) -> bool:
    try:
        wanted = Capability(capability)
    except ValueError:
        return False
    return wanted in capabilities_for(role)


__all__ = ["Capability", "ROLE_CAPABILITIES", "capabilities_for", "has_capability"]
