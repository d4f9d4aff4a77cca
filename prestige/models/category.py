"""
Prestige Ledger
Category domain model.

A category is a time-bounded configuration of award rules. Categories are
seeded configuration: once historical awards reference a row it is never
edited, new rules get a new row with a new date window.
"""

from datetime import date

from prestige.models import db

CATEGORY_TYPES = frozenset({"prestige", "vip"})


class Category(db.Model):
    """
    Award category with an effective date window.

    Business rules:
    - Active for an award date ``d`` iff ``start < d`` and
      (``end`` is NULL or ``end >= d``).
    - ``entry_limit`` caps the usable amount of a single award; NULL means
      uncapped.
    - ``total_limit`` is an aggregate cap kept for reporting only.
    """

    __tablename__ = "categories"
    __table_args__ = (
        db.Index("idx_category_type_window", "type", "start", "end"),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    total_limit = db.Column(db.Integer, nullable=True, comment="Aggregate cap, not enforced")
    entry_limit = db.Column(db.Integer, nullable=True, comment="Per-award usable cap; NULL = uncapped")
    start = db.Column(db.Date, nullable=False)
    end = db.Column(db.Date, nullable=True, comment="NULL = open-ended")
    type = db.Column(db.String(20), nullable=False, default="prestige", comment="prestige | vip")

    def is_active_on(self, on_date: date) -> bool:
        if not self.start < on_date:
            return False
        return self.end is None or self.end >= on_date

    def cap(self, amount: int) -> int:
        """Apply the entry limit to a requested amount."""
        if self.entry_limit is None:
            return amount
        return min(self.entry_limit, amount)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "totalLimit": self.total_limit,
            "entryLimit": self.entry_limit,
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
            "type": self.type,
        }

    def __repr__(self):
        return f"<Category {self.id}: {self.name} ({self.type})>"
