"""Ledger tables - Wallet, Transaction, BankAccount

Revision ID: 001
Revises:
Create Date: 2026-03-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the wallet, ledger entry and bank account tables."""

    # Create wallets table
    op.create_table(
        "wallets",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("consumer_id", sa.String(255), nullable=False),
        sa.Column("address", sa.String(42), nullable=False),
        sa.Column("eth_balance", sa.Numeric(24, 6), nullable=False, server_default=sa.text("0")),
        sa.Column("usdc_balance", sa.Numeric(24, 6), nullable=False, server_default=sa.text("0")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("address", name="uq_wallets_address"),
        sa.CheckConstraint("eth_balance >= 0", name="ck_wallets_eth_balance_non_negative"),
        sa.CheckConstraint("usdc_balance >= 0", name="ck_wallets_usdc_balance_non_negative"),
    )
    op.create_index("ix_wallets_consumer_id", "wallets", ["consumer_id"], unique=True)

    # Create transactions table
    op.create_table(
        "transactions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("wallet_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("wallet_version", sa.Integer(), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("from_address", sa.String(42), nullable=True),
        sa.Column("to_address", sa.String(42), nullable=True),
        sa.Column("amount", sa.Numeric(24, 6), nullable=False),
        sa.Column("currency", sa.String(10), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["wallet_id"],
            ["wallets.id"],
            name="fk_transactions_wallet_id",
        ),
        sa.UniqueConstraint("wallet_id", "wallet_version", name="uq_transactions_wallet_version"),
    )
    op.create_index(
        "ix_transactions_wallet_id",
        "transactions",
        ["wallet_id"],
        unique=False,
    )
    op.create_index(
        "ix_transactions_status_created_at",
        "transactions",
        ["status", "created_at"],
        unique=False,
    )

    # Create bank_accounts table
    op.create_table(
        "bank_accounts",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("consumer_id", sa.String(255), nullable=False),
        sa.Column("account_type", sa.String(20), nullable=False),
        sa.Column("last4", sa.String(4), nullable=False),
        sa.Column("bank_name", sa.String(255), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column(
            "added_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_bank_accounts_consumer_id", "bank_accounts", ["consumer_id"], unique=False)


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_index("ix_bank_accounts_consumer_id", table_name="bank_accounts")
    op.drop_table("bank_accounts")
    op.drop_index("ix_transactions_status_created_at", table_name="transactions")
    op.drop_index("ix_transactions_wallet_id", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_wallets_consumer_id", table_name="wallets")
    op.drop_table("wallets")
