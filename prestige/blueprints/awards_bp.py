"""
Award endpoints: prestige and VIP.

Both domains expose the same routes; one blueprint is built per domain:

    GET    /api/v1/awards                   list (Awarded unless ?status=)
    GET    /api/v1/awards/member/<user>     list one member's awards ("me" allowed)
    GET    /api/v1/awards/<id>              fetch one award
    POST   /api/v1/awards                   create (request / nominate / award / deduct)
    PUT    /api/v1/awards/<id>              update
    DELETE /api/v1/awards/<id>              remove, optional body {"note": ...}

and the same under /api/v1/vip.

The caller (g.user_id) and their Hub client (g.hub) are set by the Hub
context middleware. Services own all business logic and commits.
"""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, g, jsonify, request

from prestige.blueprints import register_error_handlers
from prestige.models import db
from prestige.services.award_query import AwardQueryService
from prestige.services.award_service import AwardLifecycleService
from prestige.services.permission import PRESTIGE, VIP, AwardDomain
from prestige.services.repositories import ActionLog, AwardRepository, CategoryLookup

logger = logging.getLogger(__name__)


def _lifecycle(domain: AwardDomain) -> AwardLifecycleService:
    session = db.session
    return AwardLifecycleService(
        domain,
        actor_id=g.user_id,
        authority=g.hub,
        awards=AwardRepository(session),
        categories=CategoryLookup(session),
        actions=ActionLog(session),
    )


def _query(domain: AwardDomain) -> AwardQueryService:
    return AwardQueryService(
        domain,
        actor_id=g.user_id,
        authority=g.hub,
        awards=AwardRepository(db.session),
        default_limit=current_app.config.get("AWARDS_DEFAULT_PAGE_SIZE", 20),
        max_limit=current_app.config.get("AWARDS_MAX_PAGE_SIZE", 100),
    )


def _payload():
    data = request.get_json(silent=True)
    return {} if data is None else data


def make_award_blueprint(name: str, domain: AwardDomain, url_prefix: str) -> Blueprint:
    """Build the award routes for one domain."""
    bp = Blueprint(name, __name__, url_prefix=url_prefix)
    register_error_handlers(bp)

    @bp.route("", methods=["GET"])
    def list_awards():
        """Query params: status, user, category, source, description, awarder,
        nominate, dateBefore, dateAfter, limit, offset."""
        awards = _query(domain).list_awards(request.args.to_dict())
        return jsonify({"results": [a.to_dict() for a in awards]}), 200

    @bp.route("/member/<user>", methods=["GET"])
    def list_member_awards(user):
        awards = _query(domain).list_member_awards(user, request.args.to_dict())
        return jsonify({"results": [a.to_dict() for a in awards]}), 200

    @bp.route("/<int:award_id>", methods=["GET"])
    def get_award(award_id):
        award = _lifecycle(domain).get(award_id)
        return jsonify(award.to_dict()), 200

    @bp.route("", methods=["POST"])
    def create_award():
        award = _lifecycle(domain).create(_payload())
        return jsonify(award.to_dict()), 201

    @bp.route("/<int:award_id>", methods=["PUT"])
    def update_award(award_id):
        award = _lifecycle(domain).update(award_id, _payload())
        return jsonify(award.to_dict()), 200

    @bp.route("/<int:award_id>", methods=["DELETE"])
    def delete_award(award_id):
        body = _payload()
        note = body.get("note") if isinstance(body, dict) else None
        award = _lifecycle(domain).delete(award_id, note=note if isinstance(note, str) else None)
        return jsonify(award.to_dict()), 200

    return bp


awards_bp = make_award_blueprint("awards", PRESTIGE, "/api/v1/awards")
vip_bp = make_award_blueprint("vip", VIP, "/api/v1/vip")
