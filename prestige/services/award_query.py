"""
Award listing: filter parsing, the view-permission gate and paging.

Only Awarded awards are public. Any other status (or ``all``) needs the
domain's view roles, checked over the root org unit for global lists and
over the member for member lists. A member always sees their own awards.
"""

from __future__ import annotations

import logging

from prestige.core.exceptions import ValidationError
from prestige.models.award import Award, AwardStatus
from prestige.models.category import Category
from prestige.services.award_validation import SELF_MARKER
from prestige.services.permission import (
    ROOT_ORG_UNIT_ID,
    AwardDomain,
    PermissionAuthority,
    require_over_org_unit,
    require_over_user,
)
from prestige.services.repositories import AwardRepository
from prestige.utils.helpers import parse_date, parse_int

logger = logging.getLogger(__name__)

ALL_STATUSES = "all"
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class AwardQueryService:
    """Read-side of the award endpoints for one domain and one caller."""

    def __init__(
        self,
        domain: AwardDomain,
        actor_id: int,
        authority: PermissionAuthority,
        awards: AwardRepository,
        default_limit: int = DEFAULT_PAGE_SIZE,
        max_limit: int = MAX_PAGE_SIZE,
    ) -> None:
        self.domain = domain
        self.actor_id = actor_id
        self.authority = authority
        self.awards = awards
        self.default_limit = default_limit
        self.max_limit = max_limit

    def list_awards(self, filters: dict | None = None) -> list[Award]:
        filters = dict(filters or {})
        status = filters.get("status") or AwardStatus.AWARDED.value
        # A list scoped to the caller is their own history.
        if status != AwardStatus.AWARDED.value and self._user_filter(filters) != self.actor_id:
            require_over_org_unit(self.authority, ROOT_ORG_UNIT_ID, self.domain.view_roles())
        return self._page(filters, status)

    def list_member_awards(self, user, filters: dict | None = None) -> list[Award]:
        filters = dict(filters or {})
        status = filters.get("status") or AwardStatus.AWARDED.value
        member = self._member_id(user)
        filters["user"] = member

        if status != AwardStatus.AWARDED.value and member != self.actor_id:
            require_over_user(self.authority, member, self.domain.view_roles())
        return self._page(filters, status)

    # ── Filters ──────────────────────────────────────────────────────────

    def _member_id(self, user) -> int:
        if user == SELF_MARKER:
            return self.actor_id
        member = parse_int(user)
        if member is None:
            raise ValidationError("Invalid member ID", details={"user": "must be an integer or 'me'"})
        return member

    def _id_filter(self, filters: dict, key: str) -> int | None:
        raw = filters.get(key)
        if raw in (None, ""):
            return None
        value = parse_int(raw)
        if value is None:
            raise ValidationError(f"Invalid {key} filter", details={key: "must be an integer"})
        return value

    def _user_filter(self, filters: dict) -> int | None:
        if filters.get("user") == SELF_MARKER:
            return self.actor_id
        return self._id_filter(filters, "user")

    def _limit(self, raw) -> int:
        limit = parse_int(raw)
        if limit is None or limit < 1:
            limit = self.default_limit
        return min(limit, self.max_limit)

    def constraints(self, filters: dict, status: str) -> list:
        """Translate listing filters into SQLAlchemy WHERE clauses."""
        clauses = [Award.category.has(Category.type == self.domain.category_type)]
        if status != ALL_STATUSES:
            clauses.append(Award.status == status)

        user = self._user_filter(filters)
        if user is not None:
            clauses.append(Award.user == user)

        for key, column in (("category", Award.category_id), ("awarder", Award.awarder), ("nominate", Award.nominate)):
            value = self._id_filter(filters, key)
            if value is not None:
                clauses.append(column == value)

        for key, column in (("source", Award.source), ("description", Award.description)):
            text = filters.get(key)
            if text:
                clauses.append(column.contains(str(text), autoescape=True))

        # Unparsable dates are ignored rather than rejected.
        before = parse_date(filters.get("dateBefore"))
        if before is not None:
            clauses.append(Award.date < before)
        after = parse_date(filters.get("dateAfter"))
        if after is not None:
            clauses.append(Award.date >= after)
        return clauses

    def _page(self, filters: dict, status: str) -> list[Award]:
        clauses = self.constraints(filters, status)
        limit = self._limit(filters.get("limit"))
        offset = parse_int(filters.get("offset")) or 0
        logger.debug("Listing %s awards status=%s limit=%d offset=%d", self.domain.name.value, status, limit, offset)
        return self.awards.find_page(clauses, limit=limit, offset=offset)
