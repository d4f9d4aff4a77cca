"""
Repositories over the SQLAlchemy session.

Each repository is bound to the session it is given; services receive them
through their constructors. Writers only ``flush`` so the service that owns
the unit of work decides when to commit.

Usage:
    from prestige.models import db
    from prestige.services.repositories import AwardRepository

    awards = AwardRepository(db.session)
    award = awards.get(42)
"""

from __future__ import annotations

import json
import logging
from datetime import date

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, joinedload

from prestige.models.action import Action
from prestige.models.award import Award
from prestige.models.category import Category

logger = logging.getLogger(__name__)


class CategoryLookup:
    """Resolves categories by ID and effective date."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_active(
        self,
        category_id: int,
        on_date: date,
        category_type: str | None = None,
    ) -> Category | None:
        """Return the category with this ID that is active on ``on_date``.

        Active means ``start < on_date`` and ``end`` is NULL or ``>= on_date``.
        Returns None when the ID is unknown, outside its window, or of a
        different type.
        """
        stmt = select(Category).where(
            Category.id == category_id,
            Category.start < on_date,
            or_(Category.end.is_(None), Category.end >= on_date),
        )
        if category_type is not None:
            stmt = stmt.where(Category.type == category_type)
        return self.session.execute(stmt).scalar_one_or_none()


class AwardRepository:
    """Create / update / fetch awards. Owns the unit-of-work boundary."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, award_id: int) -> Award | None:
        return self.session.get(Award, award_id)

    def add(self, award: Award) -> Award:
        self.session.add(award)
        self.session.flush()
        return award

    def save(self, award: Award) -> Award:
        self.session.flush()
        return award

    def find_page(self, constraints: list, limit: int, offset: int) -> list[Award]:
        """Return one page of awards matching every constraint, category attached."""
        stmt = (
            select(Award)
            .options(joinedload(Award.category))
            .where(*constraints)
            .order_by(Award.date.desc(), Award.id.desc())
            .limit(limit)
            .offset(max(offset, 0))
        )
        return list(self.session.execute(stmt).unique().scalars())

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class ActionLog:
    """Append-only writer for award Action rows."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def append(
        self,
        award_id: int,
        action: str,
        user: int,
        office: int | None = None,
        note: str | None = None,
        previous: dict | None = None,
    ) -> Action:
        """Append a single Action row. Uses ``flush`` so callers keep transaction control."""
        row = Action(
            award_id=award_id,
            action=action,
            user=user,
            office=office,
            note=note,
            previous_json=json.dumps(previous, default=str) if previous is not None else None,
        )
        self.session.add(row)
        self.session.flush()
        return row

    def for_award(self, award_id: int) -> list[Action]:
        stmt = select(Action).where(Action.award_id == award_id).order_by(Action.id)
        return list(self.session.execute(stmt).scalars())
