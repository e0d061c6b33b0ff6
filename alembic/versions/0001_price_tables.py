"""historical_prices, price_queries and bulk_fetch_jobs tables

Revision ID: 0001_price_tables
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_price_tables"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "historical_prices",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("token_address", sa.String(42), nullable=False),
        sa.Column("network", sa.String(20), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("price", sa.Numeric(), nullable=False),
        sa.Column("market_cap", sa.Numeric(), nullable=True),
        sa.Column("volume", sa.Numeric(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_historical_prices"),
        sa.UniqueConstraint("token_address", "network", "timestamp", name="uq_historical_prices_identity"),
    )
    op.create_index("ix_historical_prices_token_address", "historical_prices", ["token_address"])
    op.create_index("ix_historical_prices_timestamp", "historical_prices", ["timestamp"])

    op.create_table(
        "price_queries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("token_address", sa.String(42), nullable=False),
        sa.Column("network", sa.String(20), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("price", sa.Numeric(), nullable=True),
        sa.Column("source", sa.String(20), nullable=False),
        sa.Column("response_time_ms", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_price_queries"),
    )
    op.create_index("ix_price_queries_token_address", "price_queries", ["token_address"])
    op.create_index("ix_price_queries_source", "price_queries", ["source"])

    op.create_table(
        "bulk_fetch_jobs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("token_address", sa.String(42), nullable=False),
        sa.Column("network", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_days", sa.Integer(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_bulk_fetch_jobs"),
    )
    op.create_index("ix_bulk_fetch_jobs_status", "bulk_fetch_jobs", ["status"])


def downgrade() -> None:
    op.drop_index("ix_bulk_fetch_jobs_status", table_name="bulk_fetch_jobs")
    op.drop_table("bulk_fetch_jobs")
    op.drop_index("ix_price_queries_source", table_name="price_queries")
    op.drop_index("ix_price_queries_token_address", table_name="price_queries")
    op.drop_table("price_queries")
    op.drop_index("ix_historical_prices_timestamp", table_name="historical_prices")
    op.drop_index("ix_historical_prices_token_address", table_name="historical_prices")
    op.drop_table("historical_prices")
