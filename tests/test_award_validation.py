"""Tests for the award validation engine.

Coverage:
  1. Self-marker substitution and forced self-requests
  2. Action inference, status derivation and role synthesis
  3. Aggregated field errors and sign rules per action
  4. "No prestige awarded" and "Invalid category ID"
  5. Usable amounts capped by the category entry limit
  6. Rule table shape per (domain, action)
"""

from datetime import date

import pytest

from conftest import ACTOR_ID, MEMBER_ID, payload
from prestige.core.exceptions import ValidationError
from prestige.models import db
from prestige.models.award import AwardAction, AwardStatus
from prestige.services.award_validation import RULE_TABLE, AwardValidator
from prestige.services.permission import PRESTIGE, VIP, Domain
from prestige.services.repositories import CategoryLookup


def _validate(data, domain=PRESTIGE, actor_id=ACTOR_ID):
    return AwardValidator(domain, CategoryLookup(db.session)).validate(data, actor_id)


class TestSelfRequests:
    def test_self_marker_becomes_actor_and_request(self):
        draft, requirement = _validate(payload(user="me"))
        assert draft.user == ACTOR_ID
        assert draft.action is AwardAction.REQUEST
        assert draft.status is AwardStatus.REQUESTED
        assert requirement.required is False
        assert requirement.codenames == ()

    def test_explicit_action_ignored_for_own_id(self):
        draft, requirement = _validate(payload(user=str(ACTOR_ID), action="award"))
        assert draft.action is AwardAction.REQUEST
        assert draft.status is AwardStatus.REQUESTED
        assert not requirement.required

    def test_usable_override_not_accepted_on_request(self):
        draft, _ = _validate(payload(user="me", action="award", general=40, usableGeneral=5))
        assert draft.usable == {"general": 40}


class TestActionInference:
    def test_missing_action_defaults_to_nominate(self):
        draft, requirement = _validate(payload())
        assert draft.action is AwardAction.NOMINATE
        assert draft.status is AwardStatus.NOMINATED
        assert requirement.scope_user == MEMBER_ID
        assert requirement.codenames == ("prestige_nominate_general",)

    def test_award_yields_awarded_with_level_scoped_role(self):
        draft, requirement = _validate(payload(action="award", general=None, national=20))
        assert draft.status is AwardStatus.AWARDED
        assert draft.level == "national"
        assert requirement.codenames == ("prestige_award_national",)

    def test_deduct_yields_awarded(self):
        draft, requirement = _validate(payload(action="deduct", general=-10))
        assert draft.status is AwardStatus.AWARDED
        assert draft.usable == {"general": -10}
        assert requirement.codenames == ("prestige_deduct_general",)

    def test_vip_roles_cover_both_families_without_level(self):
        data = payload(category=6, general=None, vip=5, action="award")
        draft, requirement = _validate(data, domain=VIP)
        assert draft.level == "vip"
        assert requirement.codenames == ("prestige_award", "vip_award")

    def test_last_non_zero_level_wins(self):
        draft, requirement = _validate(payload(general=5, regional=0, national=10))
        assert draft.level == "national"
        assert draft.usable == {"general": 5, "national": 10}
        assert draft.amounts == {"general": 5, "regional": 0, "national": 10}
        assert requirement.codenames == ("prestige_nominate_national",)


class TestFieldRules:
    def test_missing_required_fields_are_aggregated(self):
        with pytest.raises(ValidationError) as exc_info:
            _validate({"general": 10})
        details = exc_info.value.details
        assert set(details) == {"user", "category", "date", "description"}
        assert details["user"] == "can't be blank"
        assert str(exc_info.value).startswith("Errors found: ")

    def test_unknown_action_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            _validate(payload(action="steal"))
        assert exc_info.value.details == {"action": "is not included in the list"}

    def test_unparseable_date_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            _validate(payload(date="someday"))
        assert "date" in exc_info.value.details

    def test_non_integer_amount_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            _validate(payload(general="10.5"))
        assert exc_info.value.details == {"general": "must be an integer"}

    def test_negative_amount_rejected_unless_deduct(self):
        with pytest.raises(ValidationError) as exc_info:
            _validate(payload(action="award", general=-5))
        assert exc_info.value.details == {"general": "must be greater than or equal to 0"}

    def test_positive_amount_rejected_for_deduct(self):
        with pytest.raises(ValidationError) as exc_info:
            _validate(payload(action="deduct", general=5))
        assert exc_info.value.details == {"general": "must be less than or equal to 0"}

    def test_numeric_strings_are_coerced(self):
        draft, _ = _validate(payload(user="2", category="1", general="12"))
        assert draft.user == 2
        assert draft.amounts["general"] == 12
        assert draft.date == date(2017, 1, 1)

    def test_unknown_fields_are_dropped(self):
        draft, _ = _validate(payload(status="Awarded", awarder=99, vip=4))
        assert draft.status is AwardStatus.NOMINATED
        assert "vip" not in draft.amounts

    def test_description_is_trimmed(self):
        draft, _ = _validate(payload(description="  Ran the game  ", source=""))
        assert draft.description == "Ran the game"
        assert draft.source is None

    def test_non_object_payload_rejected(self):
        with pytest.raises(ValidationError):
            _validate(["not", "an", "object"])


class TestPrestigePresence:
    def test_all_levels_absent(self):
        with pytest.raises(ValidationError, match="No prestige awarded"):
            _validate(payload(general=None))

    def test_all_levels_zero(self):
        with pytest.raises(ValidationError, match="No prestige awarded"):
            _validate(payload(general=0, regional=0, national=0))


class TestCategoryResolution:
    def test_unknown_category(self):
        with pytest.raises(ValidationError, match="Invalid category ID"):
            _validate(payload(category=99))

    def test_expired_category(self):
        with pytest.raises(ValidationError, match="Invalid category ID"):
            _validate(payload(category=7))

    def test_end_date_is_inclusive(self):
        draft, _ = _validate(payload(category=7, date="2012-12-31"))
        assert draft.category.id == 7

    def test_start_date_is_exclusive(self):
        with pytest.raises(ValidationError, match="Invalid category ID"):
            _validate(payload(date="2013-06-01"))

    def test_vip_category_not_valid_for_prestige(self):
        with pytest.raises(ValidationError, match="Invalid category ID"):
            _validate(payload(category=6))


class TestUsableAmounts:
    def test_capped_by_entry_limit(self):
        draft, _ = _validate(payload(action="award", general=80))
        assert draft.usable == {"general": 50}
        assert draft.amounts == {"general": 80}

    def test_uncapped_category(self):
        draft, _ = _validate(payload(category=4, general=500))
        assert draft.usable == {"general": 500}

    def test_override_used_when_awarding(self):
        draft, _ = _validate(payload(action="award", general=40, usableGeneral=20))
        assert draft.usable == {"general": 20}

    def test_override_still_capped(self):
        draft, _ = _validate(payload(action="award", general=80, usableGeneral=70))
        assert draft.usable == {"general": 50}

    def test_override_above_amount_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            _validate(payload(action="award", general=10, usableGeneral=20))
        assert "usableGeneral" in exc_info.value.details

    def test_override_ignored_for_nominations(self):
        draft, _ = _validate(payload(general=40, usableGeneral=5))
        assert draft.usable == {"general": 40}

    def test_vip_entry_limit(self):
        draft, _ = _validate(payload(category=6, general=None, vip=5), domain=VIP)
        assert draft.usable == {"vip": 3}


class TestRuleTable:
    def test_usable_fields_only_for_award(self):
        assert "usableGeneral" in RULE_TABLE[(Domain.PRESTIGE, AwardAction.AWARD)]
        assert "usableGeneral" not in RULE_TABLE[(Domain.PRESTIGE, AwardAction.NOMINATE)]
        assert "usableVip" in RULE_TABLE[(Domain.VIP, AwardAction.AWARD)]

    def test_deduct_rules_flip_sign(self):
        assert RULE_TABLE[(Domain.PRESTIGE, AwardAction.DEDUCT)]["general"].sign == -1
        assert RULE_TABLE[(Domain.PRESTIGE, AwardAction.REQUEST)]["general"].sign == 1

    def test_domains_accept_only_their_levels(self):
        assert "vip" not in RULE_TABLE[(Domain.PRESTIGE, AwardAction.NOMINATE)]
        assert "general" not in RULE_TABLE[(Domain.VIP, AwardAction.NOMINATE)]
