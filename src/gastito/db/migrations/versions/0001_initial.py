"""initial schema

Revision ID: 0001
Revises: 
Create Date: 2025-11-03 00:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("tg_id", sa.BigInteger(), nullable=False, unique=True),
        sa.Column("username", sa.Text()),
        sa.Column("full_name", sa.Text()),
    )

    op.create_table(
        "expense_groups",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("created_by", sa.BigInteger(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "group_members",
        sa.Column("group_id", sa.BigInteger(), sa.ForeignKey("expense_groups.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("role", sa.Text(), nullable=False, server_default="member"),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("role in ('admin','member')", name="group_members_role_check"),
    )

    op.create_table(
        "group_invite_links",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("group_id", sa.BigInteger(), sa.ForeignKey("expense_groups.id", ondelete="CASCADE")),
        sa.Column("token", sa.Text(), nullable=False, unique=True),
        sa.Column("max_uses", sa.Integer()),
        sa.Column("uses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("expires_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "recurring_expenses",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("group_id", sa.BigInteger(), sa.ForeignKey("expense_groups.id", ondelete="CASCADE")),
        sa.Column("created_by", sa.BigInteger(), sa.ForeignKey("users.id")),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("frequency", sa.Text(), nullable=False),
        sa.Column("next_date", sa.Date(), nullable=False),
        sa.Column("last_date", sa.Date()),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.CheckConstraint(
            "frequency in ('mensual','semanal','quincenal','anual')",
            name="recurring_expenses_frequency_check",
        ),
    )

    op.create_table(
        "group_expenses",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("group_id", sa.BigInteger(), sa.ForeignKey("expense_groups.id", ondelete="CASCADE")),
        sa.Column("paid_by", sa.BigInteger(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("spent_on", sa.Date(), nullable=False),
        sa.Column("recurring_id", sa.BigInteger(), sa.ForeignKey("recurring_expenses.id", ondelete="SET NULL")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("amount >= 0", name="group_expenses_amount_check"),
    )

    op.create_table(
        "group_budgets",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("group_id", sa.BigInteger(), sa.ForeignKey("expense_groups.id", ondelete="CASCADE")),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("period", sa.Text(), nullable=False, server_default="monthly"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date()),
        sa.Column("created_by", sa.BigInteger(), sa.ForeignKey("users.id")),
        sa.CheckConstraint("period in ('weekly','monthly','yearly')", name="group_budgets_period_check"),
    )

    op.create_index("idx_group_members_user", "group_members", ["user_id"])
    op.create_index("idx_group_expenses_group", "group_expenses", ["group_id"])
    op.create_index("idx_recurring_expenses_next", "recurring_expenses", ["next_date"])


def downgrade() -> None:
    op.drop_index("idx_recurring_expenses_next", table_name="recurring_expenses")
    op.drop_index("idx_group_expenses_group", table_name="group_expenses")
    op.drop_index("idx_group_members_user", table_name="group_members")

    op.drop_table("group_budgets")
    op.drop_table("group_expenses")
    op.drop_table("recurring_expenses")
    op.drop_table("group_invite_links")
    op.drop_table("group_members")
    op.drop_table("expense_groups")
    op.drop_table("users")
