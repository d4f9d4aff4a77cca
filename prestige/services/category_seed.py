"""
Category seed data.

Categories are append-only configuration: rows are inserted when missing
and never edited, so re-running the seed is safe.

Usage:
    flask seed-categories
"""

import logging
from datetime import date

from prestige.models import db
from prestige.models.category import Category

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = (
    {"id": 1, "name": "Administration", "total_limit": 80, "entry_limit": 50,
     "start": date(2013, 6, 1), "type": "prestige"},
    {"id": 2, "name": "Non-Administrative Game Support", "total_limit": 50, "entry_limit": 30,
     "start": date(2013, 6, 1), "type": "prestige"},
    {"id": 3, "name": "Social/Non-Game Support", "total_limit": 50, "entry_limit": 30,
     "start": date(2013, 6, 1), "type": "prestige"},
    {"id": 4, "name": "Convention Events", "total_limit": 100,
     "start": date(2013, 6, 1), "type": "prestige"},
    {"id": 5, "name": "Standards and Renewals",
     "start": date(2013, 6, 1), "type": "prestige"},
    {"id": 6, "name": "Attending Events", "entry_limit": 3,
     "start": date(2017, 2, 1), "type": "vip"},
)


def seed_categories(rows=DEFAULT_CATEGORIES) -> int:
    """Insert any missing categories. Returns the number added; the caller commits."""
    added = 0
    for row in rows:
        if db.session.get(Category, row["id"]) is not None:
            continue
        db.session.add(Category(**row))
        added += 1
    db.session.flush()
    logger.info("Category seed: %d added, %d already present", added, len(rows) - added)
    return added
