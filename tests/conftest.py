"""
Shared pytest fixtures for the Prestige Ledger test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB recreate + category seed (autouse)
    - authority: FakeAuthority standing in for the Hub
    - client: Flask test client with the Hub factory swapped for the fake
    - make_award: helper persisting an Award row directly
"""

from datetime import date

import pytest

from prestige import create_app
from prestige.models import db as _db
from prestige.models.award import Award
from prestige.models.category import Category
from prestige.services.permission import PermissionAuthority, PermissionGrant

ACTOR_ID = 1
MEMBER_ID = 2
OFFICE = {"id": 10, "name": "National Prestige Office"}
AUTH_HEADERS = {"Authorization": "Bearer test-token"}

# Category 6 starts earlier than the production seed so awards dated
# 2017-01-01 resolve to it; category 7 is an expired window.
TEST_CATEGORIES = (
    {"id": 1, "name": "Administration", "total_limit": 80, "entry_limit": 50,
     "start": date(2013, 6, 1), "type": "prestige"},
    {"id": 2, "name": "Non-Administrative Game Support", "total_limit": 50, "entry_limit": 30,
     "start": date(2013, 6, 1), "type": "prestige"},
    {"id": 4, "name": "Convention Events", "total_limit": 100,
     "start": date(2013, 6, 1), "type": "prestige"},
    {"id": 6, "name": "Attending Events", "entry_limit": 3,
     "start": date(2016, 1, 1), "type": "vip"},
    {"id": 7, "name": "Retired Rules", "entry_limit": 10,
     "start": date(2010, 1, 1), "end": date(2012, 12, 31), "type": "prestige"},
)


class FakeAuthority(PermissionAuthority):
    """In-memory Hub: records every call and answers from its settings.

    calls: list of (kind, scope, roles) with kind in {"user", "org", "offices"}.
    """

    def __init__(self, user_id=ACTOR_ID, allowed=True, offices=(OFFICE,), held_offices=None):
        self.user_id = user_id
        self.allowed = allowed
        self.offices = tuple(offices)
        self.held_offices = list(self.offices) if held_offices is None else list(held_offices)
        self.calls = []

    def current_user_id(self):
        return self.user_id

    def has_over_user(self, user_id, roles):
        self.calls.append(("user", user_id, tuple(roles)))
        return PermissionGrant(self.allowed, self.offices if self.allowed else ())

    def has_over_org_unit(self, org_unit_id, roles):
        self.calls.append(("org", org_unit_id, tuple(roles)))
        return PermissionGrant(self.allowed, self.offices if self.allowed else ())

    def offices_with_roles(self, roles):
        self.calls.append(("offices", None, tuple(roles)))
        return list(self.held_offices)


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, seed categories, recreate tables afterwards."""
    with app.app_context():
        for row in TEST_CATEGORIES:
            _db.session.add(Category(**row))
        _db.session.commit()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def authority():
    return FakeAuthority()


@pytest.fixture()
def client(app, authority, monkeypatch):
    """Flask test client; every Hub lookup returns ``authority``."""
    monkeypatch.setitem(app.extensions, "hub_authority_factory", lambda token: authority)
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def make_award():
    """Persist an Award row directly, bypassing validation."""

    def _make(**overrides) -> Award:
        fields = {
            "user": MEMBER_ID,
            "category_id": 1,
            "date": date(2017, 1, 1),
            "description": "Ran the regional game",
            "status": "Awarded",
            "general": 10,
            "usable_general": 10,
            "level": "general",
        }
        fields.update(overrides)
        award = Award(**fields)
        _db.session.add(award)
        _db.session.commit()
        return award

    return _make


def payload(**overrides) -> dict:
    """A valid prestige nomination for MEMBER_ID in category 1."""
    data = {
        "user": MEMBER_ID,
        "category": 1,
        "date": "2017-01-01",
        "description": "Ran the regional game",
        "general": 10,
    }
    data.update(overrides)
    return {k: v for k, v in data.items() if v is not None}
