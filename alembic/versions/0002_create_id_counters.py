"""create id counters

Revision ID: 0002_create_id_counters
Revises: 0001_create_draw_tables
Create Date: 2026-10-19 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0002_create_id_counters"
down_revision: Union[str, None] = "0001_create_draw_tables"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID_TYPE = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "id_counters",
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("next_id", ID_TYPE, nullable=False),
        sa.PrimaryKeyConstraint("name", name=op.f("pk_id_counters")),
    )
    # continue after any draws created before the counter existed
    op.execute(
        "INSERT INTO id_counters (name, next_id) "
        "SELECT 'draws', COALESCE(MAX(id) + 1, 0) FROM draws"
    )


def downgrade() -> None:
    op.drop_table("id_counters")
