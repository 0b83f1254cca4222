"""init

Revision ID: 0001_init
Revises: 
Create Date: 2026-10-12

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=10), nullable=False, server_default=sa.text("'user'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=False), nullable=False),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("balance", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default=sa.text("'EUR'")),
        sa.Column("account_type", sa.String(length=30), nullable=False, server_default=sa.text("'main'")),
        sa.Column("color", sa.String(length=20), nullable=True),
        sa.Column("icon", sa.String(length=50), nullable=True),
        sa.Column("hide_balance", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=False), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=False), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_accounts_user_id"),
    )
    op.create_index("ix_accounts_user_id", "accounts", ["user_id"], unique=False)
    op.create_index("ix_accounts_is_archived", "accounts", ["is_archived"], unique=False)

    op.create_table(
        "transfers",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("source_account_id", sa.Integer(), nullable=False),
        sa.Column("destination_account_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.Column("idempotency_key", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=False), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_transfers_user_id"),
        sa.ForeignKeyConstraint(["source_account_id"], ["accounts.id"], name="fk_transfers_source_account_id"),
        sa.ForeignKeyConstraint(
            ["destination_account_id"], ["accounts.id"], name="fk_transfers_destination_account_id"
        ),
        sa.CheckConstraint("amount > 0", name="ck_transfers_amount_positive"),
        sa.CheckConstraint("source_account_id <> destination_account_id", name="ck_transfers_distinct_accounts"),
    )
    op.create_index("ix_transfers_user_id", "transfers", ["user_id"], unique=False)
    op.create_index("ix_transfers_source_account_id", "transfers", ["source_account_id"], unique=False)
    op.create_index("ix_transfers_destination_account_id", "transfers", ["destination_account_id"], unique=False)
    op.create_index("ix_transfers_idempotency_key", "transfers", ["idempotency_key"], unique=False)
    op.create_index("ix_transfers_created_at", "transfers", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_table("transfers")
    op.drop_table("accounts")
    op.drop_table("users")
