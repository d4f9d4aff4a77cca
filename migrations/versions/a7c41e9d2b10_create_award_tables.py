"""create_award_tables

Creates the award ledger tables:
  - categories : time-bounded award rules (seeded, append-only)
  - awards     : prestige / VIP grants with per-level and usable amounts
  - actions    : immutable audit trail of award transitions

Tables created conditionally (IF NOT EXISTS semantics) so the migration is
safe against databases that already received them via db.create_all().

Revision ID: a7c41e9d2b10
Revises:
Create Date: 2026-10-18 09:12:40.511203
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = 'a7c41e9d2b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing = set(inspector.get_table_names())

    # ── Category ──────────────────────────────────────────────────────────
    if "categories" not in existing:
        op.create_table(
            "categories",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("total_limit", sa.Integer(), nullable=True, comment="Aggregate cap, not enforced"),
            sa.Column(
                "entry_limit", sa.Integer(), nullable=True,
                comment="Per-award usable cap; NULL = uncapped",
            ),
            sa.Column("start", sa.Date(), nullable=False),
            sa.Column("end", sa.Date(), nullable=True, comment="NULL = open-ended"),
            sa.Column(
                "type", sa.String(length=20), nullable=False,
                server_default="prestige", comment="prestige | vip",
            ),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("idx_category_type_window", "categories", ["type", "start", "end"])

    # ── Award ─────────────────────────────────────────────────────────────
    if "awards" not in existing:
        op.create_table(
            "awards",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("user", sa.Integer(), nullable=False, comment="Subject member ID"),
            sa.Column("category_id", sa.Integer(), nullable=False),
            sa.Column("date", sa.Date(), nullable=False, comment="Effective date supplied by the caller"),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("source", sa.String(length=255), nullable=True),
            sa.Column(
                "status", sa.String(length=20), nullable=False,
                server_default="Requested",
                comment="Requested | Nominated | Awarded | Removed",
            ),
            sa.Column("nominate", sa.Integer(), nullable=True, comment="Member who nominated"),
            sa.Column("awarder", sa.Integer(), nullable=True, comment="Member who awarded"),
            sa.Column("general", sa.Integer(), nullable=True),
            sa.Column("regional", sa.Integer(), nullable=True),
            sa.Column("national", sa.Integer(), nullable=True),
            sa.Column("vip", sa.Integer(), nullable=True),
            sa.Column("usable_general", sa.Integer(), nullable=True),
            sa.Column("usable_regional", sa.Integer(), nullable=True),
            sa.Column("usable_national", sa.Integer(), nullable=True),
            sa.Column("usable_vip", sa.Integer(), nullable=True),
            sa.Column(
                "level", sa.String(length=20), nullable=True,
                comment="general | regional | national | vip",
            ),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="RESTRICT"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_awards_category_id", "awards", ["category_id"])
        op.create_index("idx_award_user_status", "awards", ["user", "status"])
        op.create_index("idx_award_status_date", "awards", ["status", "date"])

    # ── Action ────────────────────────────────────────────────────────────
    if "actions" not in existing:
        op.create_table(
            "actions",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("award_id", sa.Integer(), nullable=False),
            sa.Column(
                "action", sa.String(length=20), nullable=False,
                comment="Nominated | Awarded | Removed",
            ),
            sa.Column("user", sa.Integer(), nullable=False, comment="Acting member ID"),
            sa.Column(
                "office", sa.Integer(), nullable=True,
                comment="Hub office that granted the permission",
            ),
            sa.Column("note", sa.Text(), nullable=True),
            sa.Column(
                "previous_json", sa.Text(), nullable=True,
                comment="JSON snapshot of the award before the change",
            ),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["award_id"], ["awards.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("idx_action_award", "actions", ["award_id"])
        op.create_index("idx_action_user", "actions", ["user"])


def downgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing = set(inspector.get_table_names())

    if "actions" in existing:
        op.drop_index("idx_action_user", table_name="actions")
        op.drop_index("idx_action_award", table_name="actions")
        op.drop_table("actions")

    if "awards" in existing:
        op.drop_index("idx_award_status_date", table_name="awards")
        op.drop_index("idx_award_user_status", table_name="awards")
        op.drop_index("ix_awards_category_id", table_name="awards")
        op.drop_table("awards")

    if "categories" in existing:
        op.drop_index("idx_category_type_window", table_name="categories")
        op.drop_table("categories")
