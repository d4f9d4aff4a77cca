"""
Hub context middleware: resolves the caller for the award endpoints.

For every request under HUB_PREFIXES:
  - the ``Authorization: Bearer <token>`` header is required (401 otherwise),
  - a PermissionAuthority bound to that token is built and stored in ``g.hub``,
  - the caller's member ID is resolved through it into ``g.user_id``.

The authority factory lives in ``app.extensions["hub_authority_factory"]``
so tests can swap the Hub for a fake.
"""

import logging

from flask import current_app, g, request

from prestige.core.exceptions import AuthenticationError, DependencyError
from prestige.integrations.hub_gateway import HubGateway
from prestige.utils.errors import E, api_error

logger = logging.getLogger(__name__)

HUB_PREFIXES = ("/api/v1/awards", "/api/v1/vip")


def hub_gateway_factory(token: str) -> HubGateway:
    """Default factory: a HubGateway for the configured Hub URL."""
    return HubGateway(
        current_app.config["HUB_URL"],
        token,
        timeout=current_app.config.get("HUB_TIMEOUT_SECONDS", 10),
    )


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    return auth_header[7:].strip() or None


def init_hub_context(app):
    """Register the Hub context as a before_request hook."""
    app.extensions.setdefault("hub_authority_factory", hub_gateway_factory)

    @app.before_request
    def _hub_context():
        g.hub = None
        g.user_id = None

        if request.method == "OPTIONS" or not request.path.startswith(HUB_PREFIXES):
            return None

        token = _bearer_token()
        if token is None:
            return api_error(E.UNAUTHENTICATED, "Bearer token required")

        try:
            hub = current_app.extensions["hub_authority_factory"](token)
            g.user_id = hub.current_user_id()
        except AuthenticationError as exc:
            logger.info("Hub rejected caller path=%s", request.path)
            return api_error(E.UNAUTHENTICATED, str(exc))
        except DependencyError as exc:
            logger.warning("Hub unavailable while resolving caller: %s", exc)
            return api_error(E.DEPENDENCY, "Permission service unavailable")
        g.hub = hub
        return None
