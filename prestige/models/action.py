"""
Prestige Ledger
Action domain model: immutable, append-only audit trail of award transitions.
"""

import json
from datetime import datetime, timezone

from prestige.models import db


class Action(db.Model):
    """
    One row per state-changing transition of an award.

    ``action`` mirrors the status the award moved into (Nominated, Awarded,
    Removed). ``previous_json`` carries the award snapshot taken before the
    transition so a reviewer can see (and roll back) what changed.
    Rows are never updated or deleted.
    """

    __tablename__ = "actions"
    __table_args__ = (
        db.Index("idx_action_award", "award_id"),
        db.Index("idx_action_user", "user"),
    )

    id = db.Column(db.Integer, primary_key=True)
    award_id = db.Column(
        db.Integer,
        db.ForeignKey("awards.id", ondelete="CASCADE"),
        nullable=False,
    )
    action = db.Column(db.String(20), nullable=False, comment="Nominated | Awarded | Removed")
    user = db.Column(db.Integer, nullable=False, comment="Acting member ID")
    office = db.Column(db.Integer, nullable=True, comment="Hub office that granted the permission")
    note = db.Column(db.Text, nullable=True)
    previous_json = db.Column(db.Text, nullable=True, comment="JSON snapshot of the award before the change")
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    award = db.relationship("Award", back_populates="actions")

    @property
    def previous(self) -> dict | None:
        """Deserialise *previous_json*; None when no snapshot was taken."""
        if not self.previous_json:
            return None
        try:
            return json.loads(self.previous_json)
        except (json.JSONDecodeError, TypeError):
            return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "awardId": self.award_id,
            "action": self.action,
            "user": self.user,
            "office": self.office,
            "note": self.note,
            "previous": self.previous,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Action {self.id}: {self.action} on award {self.award_id}>"
