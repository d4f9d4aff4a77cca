"""
Award lifecycle service: create, update, remove and fetch single awards.

Every mutating call is one unit of work: the authority is consulted before
anything is written, then the Award row and its audit Action row are flushed
and committed together. Any database failure rolls both back.

Business rules enforced here (never in the blueprint):
    - Requests (self-targeted awards) need no Hub role.
    - A member cannot edit their own award once it is Awarded.
    - Removed awards cannot be edited or removed again.
    - The subject member of an award cannot be changed.
    - Nominated / Awarded / Removed transitions write an Action row.

Usage:
    service = AwardLifecycleService(PRESTIGE, actor_id, authority, awards, categories, actions)
    award = service.create(payload)
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from prestige.core.exceptions import (
    AuthorizationError,
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
)
from prestige.models.award import AUDITED_STATUSES, Award, AwardAction, AwardStatus
from prestige.services.award_validation import AwardValidator, PermissionRequirement
from prestige.services.permission import (
    AwardDomain,
    PermissionAuthority,
    PermissionGrant,
    Role,
    codenames,
    first_office_id,
    require_over_user,
)
from prestige.services.repositories import ActionLog, AwardRepository, CategoryLookup

logger = logging.getLogger(__name__)


class AwardLifecycleService:
    """State transitions of awards in one domain, on behalf of one caller."""

    def __init__(
        self,
        domain: AwardDomain,
        actor_id: int,
        authority: PermissionAuthority,
        awards: AwardRepository,
        categories: CategoryLookup,
        actions: ActionLog,
    ) -> None:
        self.domain = domain
        self.actor_id = actor_id
        self.authority = authority
        self.awards = awards
        self.actions = actions
        self.validator = AwardValidator(domain, categories)

    # ── Public API ───────────────────────────────────────────────────────

    def create(self, data: dict) -> Award:
        """Validate, authorize and persist a new award."""
        draft, requirement = self.validator.validate(data, self.actor_id)
        grant = self._authorize(requirement)

        award = draft.apply_to(Award(), self.actor_id)
        try:
            self.awards.add(award)
            self._record(award, grant.office_id if grant else None)
            self.awards.commit()
        except SQLAlchemyError as exc:
            self._fail(exc, "create")

        logger.info(
            "Award created",
            extra={"award_id": award.id, "actor": self.actor_id, "status": award.status},
        )
        return award

    def update(self, award_id: int, data: dict) -> Award:
        """Re-validate an existing award in place and record the prior state."""
        award = self._load(award_id)
        if award.user == self.actor_id and award.status == AwardStatus.AWARDED.value:
            raise AuthorizationError("Cannot modify your own awarded prestige")

        draft, requirement = self.validator.validate(data, self.actor_id)
        if draft.user != award.user:
            raise ValidationError(
                "Award member cannot be changed",
                details={"user": f"must be {award.user}"},
            )
        grant = self._authorize(requirement)

        previous = award.to_dict(include_category=False)
        try:
            draft.apply_to(award, self.actor_id)
            self.awards.save(award)
            self._record(award, grant.office_id if grant else None, previous=previous)
            self.awards.commit()
        except SQLAlchemyError as exc:
            self._fail(exc, "update")

        logger.info(
            "Award updated",
            extra={"award_id": award.id, "actor": self.actor_id, "status": award.status},
        )
        return award

    def delete(self, award_id: int, note: str | None = None) -> Award:
        """Flip an award to Removed. Owners may withdraw until it is Awarded."""
        award = self._load(award_id)

        office = None
        if award.user != self.actor_id or award.status == AwardStatus.AWARDED.value:
            roles = self.deletion_roles(award)
            names = codenames(roles)
            offices = self.authority.offices_with_roles(names)
            if not offices:
                raise AuthorizationError("No office found", roles=names)
            grant = require_over_user(self.authority, award.user, roles)
            office = grant.office_id or first_office_id(offices)

        previous = award.to_dict(include_category=False)
        try:
            award.status = AwardStatus.REMOVED.value
            self.awards.save(award)
            self._record(award, office, note=note, previous=previous)
            self.awards.commit()
        except SQLAlchemyError as exc:
            self._fail(exc, "delete")

        logger.info(
            "Award removed",
            extra={"award_id": award.id, "actor": self.actor_id, "office": office},
        )
        return award

    def get(self, award_id: int) -> Award:
        """Fetch one award. Awarded and own awards are public, the rest need view roles."""
        award = self._find(award_id)
        if award.status != AwardStatus.AWARDED.value and award.user != self.actor_id:
            require_over_user(self.authority, award.user, self.domain.view_roles())
        return award

    def deletion_roles(self, award: Award) -> tuple[Role, ...]:
        """Roles that may undo the action which produced the award's status."""
        if award.status == AwardStatus.AWARDED.value:
            action = AwardAction.DEDUCT if award.is_deduction else AwardAction.AWARD
        else:
            action = AwardAction.NOMINATE
        return self.domain.action_roles(action, award.level)

    # ── Internals ────────────────────────────────────────────────────────

    def _find(self, award_id: int) -> Award:
        award = self.awards.get(award_id)
        # Awards of the other domain are invisible through this endpoint.
        if award is None or award.category is None or award.category.type != self.domain.category_type:
            raise NotFoundError(resource="Award", resource_id=award_id)
        return award

    def _load(self, award_id: int) -> Award:
        award = self._find(award_id)
        if award.status == AwardStatus.REMOVED.value:
            raise ConflictError("Award", award_id, AwardStatus.REMOVED.value)
        return award

    def _authorize(self, requirement: PermissionRequirement) -> PermissionGrant | None:
        if not requirement.required:
            return None
        return require_over_user(self.authority, requirement.scope_user, requirement.roles)

    def _record(self, award: Award, office: int | None, note=None, previous=None) -> None:
        if award.status not in AUDITED_STATUSES:
            return
        self.actions.append(
            award_id=award.id,
            action=award.status,
            user=self.actor_id,
            office=office,
            note=note,
            previous=previous,
        )

    def _fail(self, exc: SQLAlchemyError, operation: str):
        self.awards.rollback()
        logger.exception("Award %s failed, rolled back", operation)
        raise DependencyError("database", f"award {operation} failed") from exc
