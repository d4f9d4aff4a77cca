"""HTTP tests for the award blueprints (prestige + VIP) and app wiring."""

from conftest import ACTOR_ID, AUTH_HEADERS, MEMBER_ID, FakeAuthority, payload
from prestige.core.exceptions import AuthenticationError, DependencyError
from prestige.models import db
from prestige.models.action import Action


def _post(client, url, data):
    return client.post(url, json=data, headers=AUTH_HEADERS)


class TestAuthentication:
    def test_missing_token(self, client):
        res = client.get("/api/v1/awards")
        assert res.status_code == 401
        assert res.get_json()["code"] == "ERR_UNAUTHENTICATED"

    def test_rejected_token(self, app, client, monkeypatch):
        class _Rejecting(FakeAuthority):
            def current_user_id(self):
                raise AuthenticationError("Hub rejected the bearer token")

        monkeypatch.setitem(app.extensions, "hub_authority_factory", lambda token: _Rejecting())
        assert client.get("/api/v1/vip", headers=AUTH_HEADERS).status_code == 401

    def test_hub_down(self, app, client, monkeypatch):
        class _Down(FakeAuthority):
            def current_user_id(self):
                raise DependencyError("hub", "connection refused")

        monkeypatch.setitem(app.extensions, "hub_authority_factory", lambda token: _Down())
        res = client.get("/api/v1/awards", headers=AUTH_HEADERS)
        assert res.status_code == 502
        assert res.get_json()["code"] == "ERR_DEPENDENCY"

    def test_health_needs_no_token(self, client):
        assert client.get("/api/v1/health/ready").status_code == 200
        res = client.get("/api/v1/health/live")
        assert res.status_code == 200
        assert res.get_json()["checks"]["database"]["status"] == "ok"

    def test_timing_headers(self, client):
        res = client.get("/api/v1/health/ready", headers={"X-Request-ID": "abc123"})
        assert res.headers["X-Request-ID"] == "abc123"
        assert "X-Request-Duration-Ms" in res.headers


class TestCreate:
    def test_nomination(self, client, authority):
        res = _post(client, "/api/v1/awards", payload(action="award", general=80))
        assert res.status_code == 201
        body = res.get_json()
        assert body["status"] == "Awarded"
        assert body["awarder"] == ACTOR_ID
        assert body["usableGeneral"] == 50
        assert body["category"]["entryLimit"] == 50
        assert "categoryId" not in body

    def test_validation_error_body(self, client):
        res = _post(client, "/api/v1/awards", {"user": MEMBER_ID, "general": -1, "action": "award"})
        assert res.status_code == 422
        body = res.get_json()
        assert body["code"] == "ERR_VALIDATION_INVALID"
        assert body["details"]["general"] == "must be greater than or equal to 0"
        assert body["details"]["description"] == "can't be blank"

    def test_forbidden(self, client, authority):
        authority.allowed = False
        res = _post(client, "/api/v1/awards", payload(action="award", national=5, general=None))
        assert res.status_code == 403
        body = res.get_json()
        assert body["code"] == "ERR_FORBIDDEN"
        assert body["details"]["roles"] == ["prestige_award_national"]

    def test_vip_end_to_end_self_then_officer(self, client, authority):
        data = {"category": 6, "date": "2017-01-01", "description": "Test", "vip": 3}

        res = _post(client, "/api/v1/vip", {**data, "user": "me"})
        assert res.status_code == 201
        own = res.get_json()
        assert own["status"] == "Requested"
        assert own["user"] == ACTOR_ID
        assert db.session.query(Action).filter_by(award_id=own["id"]).count() == 0
        assert authority.calls == []

        res = _post(client, "/api/v1/vip", {**data, "user": MEMBER_ID})
        assert res.status_code == 201
        nominated = res.get_json()
        assert nominated["status"] == "Nominated"
        assert nominated["nominate"] == ACTOR_ID
        assert nominated["usableVip"] == 3
        actions = db.session.query(Action).filter_by(award_id=nominated["id"]).all()
        assert [a.action for a in actions] == ["Nominated"]
        assert len(authority.calls) == 1


class TestReadUpdateDelete:
    def test_list_and_member_list(self, client, make_award):
        awarded = make_award()
        make_award(user=ACTOR_ID, status="Requested")

        res = client.get("/api/v1/awards", headers=AUTH_HEADERS)
        assert res.status_code == 200
        assert [a["id"] for a in res.get_json()["results"]] == [awarded.id]

        res = client.get("/api/v1/awards/member/me?status=all", headers=AUTH_HEADERS)
        assert [a["user"] for a in res.get_json()["results"]] == [ACTOR_ID]

    def test_own_pending_listed_without_view_role(self, client, authority, make_award):
        authority.allowed = False
        mine = make_award(user=ACTOR_ID, status="Requested")
        make_award(status="Nominated")

        res = client.get("/api/v1/awards?user=me&status=all", headers=AUTH_HEADERS)
        assert res.status_code == 200
        assert [a["id"] for a in res.get_json()["results"]] == [mine.id]
        assert authority.calls == []

    def test_get_missing(self, client):
        res = client.get("/api/v1/awards/999", headers=AUTH_HEADERS)
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"

    def test_update(self, client, make_award):
        award = make_award(status="Nominated")
        res = client.put(
            f"/api/v1/awards/{award.id}",
            json=payload(action="award", general=25),
            headers=AUTH_HEADERS,
        )
        assert res.status_code == 200
        assert res.get_json()["status"] == "Awarded"
        assert res.get_json()["general"] == 25

    def test_delete_then_conflict(self, client, make_award):
        award = make_award()
        res = client.delete(f"/api/v1/awards/{award.id}", json={"note": "duplicate"}, headers=AUTH_HEADERS)
        assert res.status_code == 200
        assert res.get_json()["status"] == "Removed"
        action = db.session.query(Action).filter_by(award_id=award.id).one()
        assert action.note == "duplicate"

        res = client.delete(f"/api/v1/awards/{award.id}", headers=AUTH_HEADERS)
        assert res.status_code == 409
        assert res.get_json()["code"] == "ERR_CONFLICT_STATE"

    def test_vip_award_hidden_from_prestige_routes(self, client, make_award):
        award = make_award(category_id=6, general=None, usable_general=None, vip=2, usable_vip=2, level="vip")
        assert client.get(f"/api/v1/awards/{award.id}", headers=AUTH_HEADERS).status_code == 404
        assert client.get(f"/api/v1/vip/{award.id}", headers=AUTH_HEADERS).status_code == 200

    def test_unknown_route(self, client):
        res = client.get("/api/v1/nothing-here")
        assert res.status_code == 404
        assert res.get_json()["error"] == "Not found"
