"""create draw tables

Revision ID: 0001_create_draw_tables
Revises:
Create Date: 2026-10-19 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_create_draw_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID_TYPE = sa.BigInteger().with_variant(sa.Integer(), "sqlite")
TIMESTAMP_TYPE = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "draws",
        sa.Column("id", ID_TYPE, autoincrement=False, nullable=False),
        sa.Column("creator", sa.String(length=255), nullable=False),
        sa.Column("commit_window_end", TIMESTAMP_TYPE, nullable=False),
        sa.Column("reveal_window_end", TIMESTAMP_TYPE, nullable=False),
        sa.Column("created_at", TIMESTAMP_TYPE, nullable=False),
        sa.Column("finalized", sa.Boolean(), nullable=False),
        sa.Column("winner", sa.String(length=255), nullable=True),
        sa.Column("winner_index", sa.Integer(), nullable=True),
        sa.Column("external_entropy", sa.String(length=64), nullable=True),
        sa.Column("finalized_at", TIMESTAMP_TYPE, nullable=True),
        sa.CheckConstraint("id >= 0", name=op.f("ck_draws_id_non_negative")),
        sa.CheckConstraint(
            "commit_window_end < reveal_window_end",
            name=op.f("ck_draws_window_order"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_draws")),
    )
    op.create_table(
        "draw_entries",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("draw_id", ID_TYPE, nullable=False),
        sa.Column("participant", sa.String(length=255), nullable=False),
        sa.Column("entry_index", sa.Integer(), nullable=False),
        sa.Column("commitment", sa.String(length=64), nullable=False),
        sa.Column("committed_at", TIMESTAMP_TYPE, nullable=False),
        sa.Column("secret", sa.String(length=64), nullable=True),
        sa.Column("reveal_index", sa.Integer(), nullable=True),
        sa.Column("revealed_at", TIMESTAMP_TYPE, nullable=True),
        sa.CheckConstraint(
            "(secret IS NULL) = (reveal_index IS NULL)",
            name=op.f("ck_draw_entries_reveal_consistency"),
        ),
        sa.ForeignKeyConstraint(
            ["draw_id"],
            ["draws.id"],
            name=op.f("fk_draw_entries_draw_id_draws"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_draw_entries")),
        sa.UniqueConstraint("draw_id", "participant", name="uq_draw_entry_participant"),
        sa.UniqueConstraint("draw_id", "entry_index", name="uq_draw_entry_index"),
        sa.UniqueConstraint("draw_id", "reveal_index", name="uq_draw_entry_reveal_index"),
    )
    op.create_index("ix_draw_entries_draw_id", "draw_entries", ["draw_id"])
    op.create_table(
        "draw_audit_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("draw_id", ID_TYPE, nullable=False),
        sa.Column("event_type", sa.String(length=20), nullable=False),
        sa.Column("payload_json", sa.Text(), nullable=False),
        sa.Column("occurred_at", TIMESTAMP_TYPE, nullable=False),
        sa.CheckConstraint(
            "event_type IN ('DrawCreated','Committed','Revealed','Finalized')",
            name=op.f("ck_draw_audit_events_event_type_enum"),
        ),
        sa.ForeignKeyConstraint(
            ["draw_id"],
            ["draws.id"],
            name=op.f("fk_draw_audit_events_draw_id_draws"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_draw_audit_events")),
    )
    op.create_index(
        "ix_draw_audit_events_draw_id", "draw_audit_events", ["draw_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_draw_audit_events_draw_id", table_name="draw_audit_events")
    op.drop_table("draw_audit_events")
    op.drop_index("ix_draw_entries_draw_id", table_name="draw_entries")
    op.drop_table("draw_entries")
    op.drop_table("draws")
