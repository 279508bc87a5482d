"""Initial ledger schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-16
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "user_account",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column(
            "state",
            sa.Enum("GHOST", "ACTIVE", name="accountstate", native_enum=False),
            nullable=False,
        ),
        sa.Column("avatar_initials", sa.String(length=8), nullable=True),
        sa.Column(
            "migration_status",
            sa.Enum("NONE", "PENDING", "COMPLETED", name="migrationstatus", native_enum=False),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_user_account"),
        sa.UniqueConstraint("username", name="uq_user_account_username"),
        sa.UniqueConstraint("email", name="uq_user_account_email"),
    )
    op.create_table(
        "friend_link",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("friend_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(
            ["user_id"], ["user_account.id"], name="fk_friend_link_user_id_user_account"
        ),
        sa.ForeignKeyConstraint(
            ["friend_id"], ["user_account.id"], name="fk_friend_link_friend_id_user_account"
        ),
        sa.PrimaryKeyConstraint("user_id", "friend_id", name="pk_friend_link"),
    )
    op.create_table(
        "expense_group",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("note", sa.Text(), nullable=False),
        sa.Column("settle_up_date", sa.Date(), nullable=True),
        sa.Column("created_by_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(
            ["created_by_id"],
            ["user_account.id"],
            name="fk_expense_group_created_by_id_user_account",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_expense_group"),
    )
    op.create_index("ix_expense_group_name", "expense_group", ["name"])
    for table_name in ("group_member", "group_past_member"):
        op.create_table(
            table_name,
            sa.Column("group_id", sa.Uuid(), nullable=False),
            sa.Column("user_id", sa.Uuid(), nullable=False),
            sa.ForeignKeyConstraint(
                ["group_id"],
                ["expense_group.id"],
                name=f"fk_{table_name}_group_id_expense_group",
            ),
            sa.ForeignKeyConstraint(
                ["user_id"], ["user_account.id"], name=f"fk_{table_name}_user_id_user_account"
            ),
            sa.PrimaryKeyConstraint("group_id", "user_id", name=f"pk_{table_name}"),
        )
    op.create_table(
        "expense",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("description", sa.String(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("group_id", sa.Uuid(), nullable=True),
        sa.Column("payer_id", sa.Uuid(), nullable=False),
        sa.Column("added_by_id", sa.Uuid(), nullable=False),
        sa.Column("source_expense_id", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(
            ["group_id"], ["expense_group.id"], name="fk_expense_group_id_expense_group"
        ),
        sa.ForeignKeyConstraint(
            ["payer_id"], ["user_account.id"], name="fk_expense_payer_id_user_account"
        ),
        sa.ForeignKeyConstraint(
            ["added_by_id"], ["user_account.id"], name="fk_expense_added_by_id_user_account"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_expense"),
    )
    op.create_index("ix_expense_group_id", "expense", ["group_id"])
    op.create_index("ix_expense_source_expense_id", "expense", ["source_expense_id"])
    op.create_table(
        "expense_split",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("expense_id", sa.Uuid(), nullable=False),
        sa.Column("debtor_id", sa.Uuid(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(
            ["expense_id"], ["expense.id"], name="fk_expense_split_expense_id_expense"
        ),
        sa.ForeignKeyConstraint(
            ["debtor_id"], ["user_account.id"], name="fk_expense_split_debtor_id_user_account"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_expense_split"),
    )


def downgrade() -> None:
    op.drop_table("expense_split")
    op.drop_index("ix_expense_source_expense_id", table_name="expense")
    op.drop_index("ix_expense_group_id", table_name="expense")
    op.drop_table("expense")
    op.drop_table("group_past_member")
    op.drop_table("group_member")
    op.drop_index("ix_expense_group_name", table_name="expense_group")
    op.drop_table("expense_group")
    op.drop_table("friend_link")
    op.drop_table("user_account")
