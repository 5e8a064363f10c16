"""Create registrations table.

Revision ID: a7c3e91d2f40
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a7c3e91d2f40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    insp = sa.inspect(bind)

    if not insp.has_table("registrations"):
        op.create_table(
            "registrations",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("phone", sa.String(length=32), nullable=False),
            sa.Column("email", sa.String(length=320), nullable=False),
            sa.Column("city", sa.String(length=255), nullable=False, server_default=""),
            sa.Column("address", sa.Text(), nullable=False, server_default=""),
            sa.Column("created_at", sa.DateTime(timezone=False), nullable=False),
        )

    existing_indexes = {idx["name"] for idx in insp.get_indexes("registrations")} if insp.has_table("registrations") else set()
    for name, column in (
        ("idx_registrations_email", "email"),
        ("idx_registrations_phone", "phone"),
        ("idx_registrations_created_at", "created_at"),
    ):
        if name not in existing_indexes:
            op.create_index(name, "registrations", [column])


def downgrade() -> None:
    op.drop_index("idx_registrations_created_at", table_name="registrations")
    op.drop_index("idx_registrations_phone", table_name="registrations")
    op.drop_index("idx_registrations_email", table_name="registrations")
    op.drop_table("registrations")
