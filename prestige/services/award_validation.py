"""
Award validation engine.

Pure decision logic: from a raw payload and the acting member, work out

  - the action (request / nominate / award / deduct),
  - the status the award lands in,
  - the Hub roles the caller must hold over the subject member,
  - the sanitised fields and the category-capped usable amounts.

The only collaborator is the category lookup; nothing is written.

Per-field constraints come from RULE_TABLE, a declarative table keyed by
(domain, action) and selected before validation runs.

Usage:
    from prestige.services.award_validation import AwardValidator

    draft, requirement = AwardValidator(PRESTIGE, categories).validate(payload, actor_id=1)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from prestige.core.exceptions import ValidationError
from prestige.models.award import ACTION_STATUS, Award, AwardAction, AwardStatus, usable_key
from prestige.models.category import Category
from prestige.services.permission import VIP, PRESTIGE, AwardDomain, Domain, Role, codenames
from prestige.services.repositories import CategoryLookup
from prestige.utils.helpers import parse_date, parse_int

logger = logging.getLogger(__name__)

# Payload value that stands for "the acting member".
SELF_MARKER = "me"


# ── Rule table ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class FieldRule:
    """Constraint on one payload field.

    kind:     integer | date | text | choice
    sign:     1 → value must be >= 0, -1 → value must be <= 0, 0 → unchecked
    """

    kind: str
    required: bool = False
    sign: int = 0
    choices: tuple[str, ...] = ()


def _base_rules() -> dict[str, FieldRule]:
    return {
        "user": FieldRule("integer", required=True),
        "category": FieldRule("integer", required=True),
        "date": FieldRule("date", required=True),
        "action": FieldRule("choice", required=True, choices=tuple(a.value for a in AwardAction)),
        "description": FieldRule("text", required=True),
        "source": FieldRule("text"),
    }


def _build_rule_table() -> dict[tuple[Domain, AwardAction], dict[str, FieldRule]]:
    table = {}
    for domain in (PRESTIGE, VIP):
        for action in AwardAction:
            rules = _base_rules()
            sign = -1 if action is AwardAction.DEDUCT else 1
            for level in domain.levels:
                rules[level] = FieldRule("integer", sign=sign)
                if action is AwardAction.AWARD:
                    rules[usable_key(level)] = FieldRule("integer", sign=1)
            table[(domain.name, action)] = rules
    return table


RULE_TABLE = _build_rule_table()


def _check(rule: FieldRule, value) -> tuple[object, str | None]:
    """Return ``(coerced_value, reason)``; reason is None when the value passes."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None, "can't be blank" if rule.required else None

    if rule.kind == "integer":
        number = parse_int(value)
        if number is None:
            return None, "must be an integer"
        if rule.sign > 0 and number < 0:
            return None, "must be greater than or equal to 0"
        if rule.sign < 0 and number > 0:
            return None, "must be less than or equal to 0"
        return number, None

    if rule.kind == "date":
        parsed = parse_date(value) if isinstance(value, (str, date)) else None
        if parsed is None:
            return None, "must be a valid date"
        return parsed, None

    if rule.kind == "choice":
        if value not in rule.choices:
            return None, "is not included in the list"
        return value, None

    if not isinstance(value, str):
        return None, "must be text"
    return value.strip(), None


# ── Output types ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PermissionRequirement:
    """Roles the caller must hold over ``scope_user``; none for self-requests."""

    scope_user: int
    roles: tuple[Role, ...] = ()

    @property
    def required(self) -> bool:
        return bool(self.roles)

    @property
    def codenames(self) -> tuple[str, ...]:
        return codenames(self.roles)


@dataclass
class AwardDraft:
    """Sanitised, fully resolved award ready to be written."""

    user: int
    category: Category
    date: date
    description: str
    source: str | None
    action: AwardAction
    status: AwardStatus
    level: str | None
    levels: tuple[str, ...]
    amounts: dict[str, int] = field(default_factory=dict)
    usable: dict[str, int] = field(default_factory=dict)

    def apply_to(self, award: Award, actor_id: int) -> Award:
        """Copy the draft onto a new or existing Award row."""
        award.user = self.user
        award.category = self.category
        award.category_id = self.category.id
        award.date = self.date
        award.description = self.description
        award.source = self.source
        award.status = self.status.value
        award.level = self.level
        for lvl in self.levels:
            award.set_level(lvl, self.amounts.get(lvl), self.usable.get(lvl))
        # Stamps belong to the status that set them; stepping back clears them.
        if self.status is AwardStatus.REQUESTED:
            award.nominate = None
            award.awarder = None
        elif self.status is AwardStatus.NOMINATED:
            award.nominate = actor_id
            award.awarder = None
        elif self.status is AwardStatus.AWARDED:
            award.awarder = actor_id
        return award


# ── Engine ───────────────────────────────────────────────────────────────────


class AwardValidator:
    """Validation engine for one award domain (prestige or VIP)."""

    def __init__(self, domain: AwardDomain, categories: CategoryLookup) -> None:
        self.domain = domain
        self.categories = categories

    def rules_for(self, action) -> dict[str, FieldRule]:
        """Select the rule set for a raw action value.

        Unknown actions get the nominate rules; the ``action`` rule itself
        then reports the bad value.
        """
        try:
            selected = AwardAction(action)
        except (ValueError, TypeError):
            selected = AwardAction.NOMINATE
        return RULE_TABLE[(self.domain.name, selected)]

    def resolve_action(self, data: dict, actor_id: int) -> dict:
        """Apply the self-marker and action inference to a copy of ``data``."""
        payload = dict(data)
        if payload.get("user") == SELF_MARKER:
            payload["user"] = actor_id

        # Self-targeted payloads are always requests, whatever the caller sent.
        if parse_int(payload.get("user")) == actor_id:
            payload["action"] = AwardAction.REQUEST.value
        elif not payload.get("action"):
            payload["action"] = AwardAction.NOMINATE.value
        return payload

    def validate(self, data: dict, actor_id: int) -> tuple[AwardDraft, PermissionRequirement]:
        """
        Validate a create/update payload.

        Returns:
            (AwardDraft, PermissionRequirement)

        Raises:
            ValidationError: aggregated field errors, "No prestige awarded",
                             or "Invalid category ID".
        """
        if not isinstance(data, dict):
            raise ValidationError("Award payload must be a JSON object")

        payload = self.resolve_action(data, actor_id)
        rules = self.rules_for(payload["action"])

        cleaned: dict = {}
        errors: dict[str, str] = {}
        for name, rule in rules.items():
            value, reason = _check(rule, payload.get(name))
            if reason:
                errors[name] = reason
            elif value is not None:
                cleaned[name] = value
        if errors:
            summary = ", ".join(f"{name} {reason}" for name, reason in errors.items())
            raise ValidationError(f"Errors found: {summary}", details=errors)

        action = AwardAction(cleaned["action"])
        levels = self.domain.levels
        amounts = {lvl: cleaned[lvl] for lvl in levels if lvl in cleaned}
        if not any(amounts.values()):
            raise ValidationError(
                "No prestige awarded",
                details={lvl: "at least one level must be non-zero" for lvl in levels},
            )

        overrides = {lvl: cleaned[usable_key(lvl)] for lvl in levels if usable_key(lvl) in cleaned}
        too_high = {
            usable_key(lvl): f"must be less than or equal to {lvl}"
            for lvl, value in overrides.items()
            if value > amounts.get(lvl, 0)
        }
        if too_high:
            raise ValidationError("Usable amount exceeds the awarded amount", details=too_high)

        category = self.categories.find_active(
            cleaned["category"], cleaned["date"], self.domain.category_type,
        )
        if category is None:
            raise ValidationError(
                "Invalid category ID",
                details={"category": "no active category for this date"},
            )

        # Last non-zero level in domain order wins ``level``.
        usable: dict[str, int] = {}
        level = None
        for lvl in levels:
            amount = amounts.get(lvl)
            if not amount:
                continue
            requested = overrides.get(lvl)
            usable[lvl] = category.cap(requested if requested is not None else amount)
            level = lvl

        draft = AwardDraft(
            user=cleaned["user"],
            category=category,
            date=cleaned["date"],
            description=cleaned["description"],
            source=cleaned.get("source"),
            action=action,
            status=ACTION_STATUS[action],
            level=level,
            levels=levels,
            amounts=amounts,
            usable=usable,
        )
        requirement = PermissionRequirement(
            scope_user=draft.user,
            roles=self.domain.action_roles(action, level),
        )
        logger.debug(
            "Award payload validated action=%s status=%s level=%s user=%s",
            action.value, draft.status.value, level, draft.user,
        )
        return draft, requirement
