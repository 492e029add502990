"""create waitlist entries

Revision ID: 20261019_03
Revises: 20261019_02
Create Date: 2026-10-19 09:20:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261019_03"
down_revision: str | None = "20261019_02"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "waitlist_entries",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("event_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="waiting"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("offered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_id", "user_id", name="uq_waitlist_event_user"),
        sa.UniqueConstraint("event_id", "position", name="uq_waitlist_event_position"),
    )
    op.create_index(op.f("ix_waitlist_entries_event_id"), "waitlist_entries", ["event_id"], unique=False)
    op.create_index(op.f("ix_waitlist_entries_user_id"), "waitlist_entries", ["user_id"], unique=False)
    op.create_index(op.f("ix_waitlist_entries_expires_at"), "waitlist_entries", ["expires_at"], unique=False)
    op.create_index(
        "ix_waitlist_entries_event_status_position",
        "waitlist_entries",
        ["event_id", "status", "position"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_waitlist_entries_event_status_position", table_name="waitlist_entries")
    op.drop_index(op.f("ix_waitlist_entries_expires_at"), table_name="waitlist_entries")
    op.drop_index(op.f("ix_waitlist_entries_user_id"), table_name="waitlist_entries")
    op.drop_index(op.f("ix_waitlist_entries_event_id"), table_name="waitlist_entries")
    op.drop_table("waitlist_entries")
