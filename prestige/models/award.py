"""
Prestige Ledger
Award domain model.

Models:
    - Award: one prestige (or VIP) grant to a member.

Enums:
    - AwardAction: the caller's intent (request / nominate / award / deduct).
    - AwardStatus: the lifecycle state an award is stored in.
"""

from datetime import datetime, timezone
from enum import Enum

from prestige.models import db


class AwardAction(str, Enum):
    REQUEST = "request"
    NOMINATE = "nominate"
    AWARD = "award"
    DEDUCT = "deduct"


class AwardStatus(str, Enum):
    REQUESTED = "Requested"
    NOMINATED = "Nominated"
    AWARDED = "Awarded"
    REMOVED = "Removed"


# Status an action produces when it succeeds.
ACTION_STATUS = {
    AwardAction.REQUEST: AwardStatus.REQUESTED,
    AwardAction.NOMINATE: AwardStatus.NOMINATED,
    AwardAction.AWARD: AwardStatus.AWARDED,
    AwardAction.DEDUCT: AwardStatus.AWARDED,
}

# Statuses that get an audit Action row when an award enters them.
AUDITED_STATUSES = frozenset({
    AwardStatus.NOMINATED.value,
    AwardStatus.AWARDED.value,
    AwardStatus.REMOVED.value,
})

LEVELS = ("general", "regional", "national", "vip")


def usable_key(level: str) -> str:
    """Payload / JSON key of the usable amount for a level (``usableVip``)."""
    return "usable" + level.capitalize()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Award(db.Model):
    """
    A prestige grant to a member.

    Business rules:
    - At least one level amount is non-zero.
    - Deductions carry amounts <= 0, everything else >= 0.
    - ``usable_<level>`` is the category-capped share of ``<level>``.
    - Removal flips ``status`` to Removed; rows are never hard-deleted.
    - ``nominate`` / ``awarder`` hold the acting member when the award
      becomes Nominated / Awarded.
    """

    __tablename__ = "awards"
    __table_args__ = (
        db.Index("idx_award_user_status", "user", "status"),
        db.Index("idx_award_status_date", "status", "date"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user = db.Column(db.Integer, nullable=False, comment="Subject member ID")
    category_id = db.Column(
        db.Integer,
        db.ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    date = db.Column(db.Date, nullable=False, comment="Effective date supplied by the caller")
    description = db.Column(db.Text, nullable=False)
    source = db.Column(db.String(255), nullable=True)
    status = db.Column(
        db.String(20), nullable=False, default=AwardStatus.REQUESTED.value,
        comment="Requested | Nominated | Awarded | Removed",
    )
    nominate = db.Column(db.Integer, nullable=True, comment="Member who nominated")
    awarder = db.Column(db.Integer, nullable=True, comment="Member who awarded")

    general = db.Column(db.Integer, nullable=True)
    regional = db.Column(db.Integer, nullable=True)
    national = db.Column(db.Integer, nullable=True)
    vip = db.Column(db.Integer, nullable=True)
    usable_general = db.Column(db.Integer, nullable=True)
    usable_regional = db.Column(db.Integer, nullable=True)
    usable_national = db.Column(db.Integer, nullable=True)
    usable_vip = db.Column(db.Integer, nullable=True)
    level = db.Column(db.String(20), nullable=True, comment="general | regional | national | vip")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    category = db.relationship("Category", lazy="joined")
    actions = db.relationship(
        "Action", back_populates="award", order_by="Action.id", lazy="select",
    )

    # ── Level helpers ────────────────────────────────────────────────────

    def amount(self, level: str) -> int | None:
        return getattr(self, level)

    def usable(self, level: str) -> int | None:
        return getattr(self, f"usable_{level}")

    def set_level(self, level: str, amount: int | None, usable: int | None) -> None:
        setattr(self, level, amount)
        setattr(self, f"usable_{level}", usable)

    @property
    def is_deduction(self) -> bool:
        return any((self.amount(lvl) or 0) < 0 for lvl in LEVELS)

    # ── Serialisation ────────────────────────────────────────────────────

    def to_dict(self, include_category: bool = True) -> dict:
        result = {
            "id": self.id,
            "user": self.user,
            "date": self.date.isoformat() if self.date else None,
            "description": self.description,
            "source": self.source,
            "status": self.status,
            "nominate": self.nominate,
            "awarder": self.awarder,
            "level": self.level,
        }
        for lvl in LEVELS:
            result[lvl] = self.amount(lvl)
            result[usable_key(lvl)] = self.usable(lvl)
        if include_category:
            result["category"] = self.category.to_dict() if self.category else None
        else:
            result["categoryId"] = self.category_id
        return result

    def __repr__(self):
        return f"<Award {self.id}: user={self.user} {self.status}>"
