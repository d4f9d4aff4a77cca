"""
Permission contract: the boundary between the award core and the Hub.

The Hub is the external authority that answers "does the acting member hold
role R over scope S?". The core never decides that itself; it only
synthesises the role codenames and interprets the answer.

Role codenames are built from typed parts (``Role``) so a codename for a
level that does not exist, or a level-scoped view role, cannot be built.

Usage:
    from prestige.services.permission import PRESTIGE, require_over_user

    roles = PRESTIGE.action_roles(AwardAction.AWARD, "national")
    grant = require_over_user(authority, user_id=2, roles=roles)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from prestige.core.exceptions import AuthorizationError
from prestige.models.award import LEVELS, AwardAction

# Org unit at the top of the hierarchy; global listings are checked against it.
ROOT_ORG_UNIT_ID = 1


class Domain(str, Enum):
    PRESTIGE = "prestige"
    VIP = "vip"


class RoleVerb(str, Enum):
    NOMINATE = "nominate"
    AWARD = "award"
    DEDUCT = "deduct"
    VIEW = "view"


_ACTION_VERB = {
    AwardAction.NOMINATE: RoleVerb.NOMINATE,
    AwardAction.AWARD: RoleVerb.AWARD,
    AwardAction.DEDUCT: RoleVerb.DEDUCT,
}


@dataclass(frozen=True)
class Role:
    """A Hub role, rendered as ``<domain>_<verb>[_<level>]``."""

    domain: Domain
    verb: RoleVerb
    level: str | None = None

    def __post_init__(self):
        if self.level is not None and self.level not in LEVELS:
            raise ValueError(f"Unknown level '{self.level}'")
        if self.verb is RoleVerb.VIEW and self.level is not None:
            raise ValueError("View roles are not level-scoped")

    @property
    def codename(self) -> str:
        parts = [self.domain.value, self.verb.value]
        if self.level:
            parts.append(self.level)
        return "_".join(parts)


@dataclass(frozen=True)
class AwardDomain:
    """
    One award endpoint family.

    Attributes:
        name:              Domain of the endpoint.
        levels:            Level fields accepted, in iteration order.
        category_type:     Category.type this domain draws from.
        role_domains:      Role families that may act on these awards.
        level_scoped_roles: Whether action roles carry the level suffix.
    """

    name: Domain
    levels: tuple[str, ...]
    category_type: str
    role_domains: tuple[Domain, ...]
    level_scoped_roles: bool = True

    def action_roles(self, action: AwardAction, level: str | None) -> tuple[Role, ...]:
        """Roles that allow ``action`` at ``level``; empty for self-requests."""
        if action is AwardAction.REQUEST:
            return ()
        verb = _ACTION_VERB[action]
        scoped_level = level if self.level_scoped_roles else None
        return tuple(Role(d, verb, scoped_level) for d in self.role_domains)

    def view_roles(self) -> tuple[Role, ...]:
        return tuple(Role(d, RoleVerb.VIEW) for d in self.role_domains)


PRESTIGE = AwardDomain(
    name=Domain.PRESTIGE,
    levels=("general", "regional", "national"),
    category_type="prestige",
    role_domains=(Domain.PRESTIGE,),
)

# VIP is managed by both prestige and VIP officers, without level scoping.
VIP = AwardDomain(
    name=Domain.VIP,
    levels=("vip",),
    category_type="vip",
    role_domains=(Domain.PRESTIGE, Domain.VIP),
    level_scoped_roles=False,
)


def codenames(roles: Sequence[Role]) -> tuple[str, ...]:
    return tuple(r.codename for r in roles)


def first_office_id(offices: Sequence[dict]) -> int | None:
    """ID of the first office in a Hub office list, used for audit attribution."""
    for office in offices:
        if isinstance(office, dict) and office.get("id") is not None:
            return office["id"]
    return None


@dataclass(frozen=True)
class PermissionGrant:
    """Answer from the authority: allowed or not, and which offices granted it."""

    allowed: bool
    offices: tuple[dict, ...] = field(default_factory=tuple)

    @property
    def office_id(self) -> int | None:
        return first_office_id(self.offices)


class PermissionAuthority(ABC):
    """Contract of the external permission service, bound to one caller."""

    @abstractmethod
    def current_user_id(self) -> int:
        """Return the member ID of the authenticated caller."""

    @abstractmethod
    def has_over_user(self, user_id: int, roles: Sequence[str]) -> PermissionGrant:
        """Does the caller hold any of ``roles`` over member ``user_id``?"""

    @abstractmethod
    def has_over_org_unit(self, org_unit_id: int, roles: Sequence[str]) -> PermissionGrant:
        """Does the caller hold any of ``roles`` over org unit ``org_unit_id``?"""

    @abstractmethod
    def offices_with_roles(self, roles: Sequence[str]) -> list[dict]:
        """Return the caller's offices that carry any of ``roles``."""


def require_over_user(
    authority: PermissionAuthority, user_id: int, roles: Sequence[Role],
) -> PermissionGrant:
    """
    Assert the caller holds one of ``roles`` over a member.

    Raises:
        AuthorizationError: If the authority denies the check.
    """
    names = codenames(roles)
    grant = authority.has_over_user(user_id, names)
    if not grant.allowed:
        raise AuthorizationError(
            f"Missing permission over user {user_id}: {', '.join(names)}", roles=names,
        )
    return grant


def require_over_org_unit(
    authority: PermissionAuthority, org_unit_id: int, roles: Sequence[Role],
) -> PermissionGrant:
    """
    Assert the caller holds one of ``roles`` over an org unit.

    Raises:
        AuthorizationError: If the authority denies the check.
    """
    names = codenames(roles)
    grant = authority.has_over_org_unit(org_unit_id, names)
    if not grant.allowed:
        raise AuthorizationError(
            f"Missing permission over org unit {org_unit_id}: {', '.join(names)}", roles=names,
        )
    return grant
