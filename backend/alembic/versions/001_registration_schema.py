"""Registration schema: region capacity ledger and registrations.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Capacity ledger: one row per region, seeded at application startup
    op.create_table(
        "region_capacity",
        sa.Column("region", sa.String(100), primary_key=True),
        sa.Column("confirmed_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("max_capacity", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        # Claims are conditional updates; these make overshoot impossible even for raw SQL
        sa.CheckConstraint("confirmed_count >= 0", name="check_confirmed_count_non_negative"),
        sa.CheckConstraint("max_capacity >= 0", name="check_max_capacity_non_negative"),
        sa.CheckConstraint("confirmed_count <= max_capacity", name="check_confirmed_lte_max"),
    )

    op.create_table(
        "registrations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("program", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("region", sa.String(100), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("status IN ('confirmed', 'waiting_list')", name="check_registration_status"),
    )
    op.create_index("ix_registrations_id", "registrations", ["id"])
    # One registration per person, case-insensitive. Enforced here rather than by a
    # lookup before insert, because two submissions can race between check and insert.
    op.create_index(
        "uq_registrations_email_lower",
        "registrations",
        [sa.text("lower(email)")],
        unique=True,
    )
    # Roster counts group by (region, status)
    op.create_index("ix_registrations_region_status", "registrations", ["region", "status"])
    # Admin roster lists newest first
    op.create_index("ix_registrations_created_at", "registrations", ["created_at"])


def downgrade() -> None:
    op.drop_table("registrations")
    op.drop_table("region_capacity")
