"""
Rate limiting configuration.

The Limiter instance is created in prestige/__init__.py with no default
limits, keyed by remote address; this module applies limits per blueprint.

Usage:
    from prestige.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

READ_WRITE_LIMIT = "120/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to the API blueprints.

        - awards / vip:  120/minute per remote IP
        - health:        exempt

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    for bp_name in ("awards", "vip"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(READ_WRITE_LIMIT)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info("Rate limiter configured: awards/vip %s, health exempt", READ_WRITE_LIMIT)
