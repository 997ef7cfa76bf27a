"""create ledger tables

Revision ID: a1c4e7f20b31
Revises:
Create Date: 2026-10-19 10:12:41.318204
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "a1c4e7f20b31"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


REFUND_TYPES = ("FULL", "PARTIAL", "SHIPPING", "TAX")
PLATFORMS = ("AMAZON", "EBAY")


def _money(name: str, nullable: bool = False, zero_default: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.Numeric(precision=10, scale=2),
        nullable=nullable,
        server_default=sa.text("0") if zero_default else None,
    )


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    ]


def upgrade() -> None:
    bind = op.get_bind()

    # Enum types created once up front; create_type=False keeps create_table
    # from emitting CREATE TYPE again for the second order table
    refund_type = postgresql.ENUM(*REFUND_TYPES, name="refundtype", create_type=False)
    platform = postgresql.ENUM(*PLATFORMS, name="platform", create_type=False)
    refund_type.create(bind, checkfirst=True)
    platform.create(bind, checkfirst=True)

    # --------------------------------------------------
    # amazon_orders
    # --------------------------------------------------
    op.create_table(
        "amazon_orders",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("order_number", sa.String(length=100), nullable=False, unique=True),
        sa.Column("order_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("number_of_items", sa.Integer(), nullable=False),
        sa.Column("payment_method", sa.String(length=100), nullable=True),
        _money("subtotal", zero_default=True),
        _money("additional_fee", zero_default=True),
        _money("shipping_handling", zero_default=True),
        _money("tax_collected", zero_default=True),
        _money("gift_card_amount", zero_default=True),
        _money("order_total"),
        sa.Column("refund_type", refund_type, nullable=True),
        _money("refund_amount", nullable=True),
        _money("remaining_amount"),
        sa.Column("is_paid", sa.Boolean(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index(op.f("ix_amazon_orders_order_date"), "amazon_orders", ["order_date"], unique=False)

    # --------------------------------------------------
    # ebay_orders
    # --------------------------------------------------
    op.create_table(
        "ebay_orders",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("order_number", sa.String(length=100), nullable=False, unique=True),
        sa.Column("order_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("order_quantity", sa.Integer(), nullable=False),
        _money("item_subtotal", zero_default=True),
        _money("shipping_handling", zero_default=True),
        _money("tax_collected", zero_default=True),
        _money("transaction_fee", zero_default=True),
        _money("ad_fees", zero_default=True),
        _money("net_amount"),
        _money("total_amount"),
        sa.Column("refund_type", refund_type, nullable=True),
        _money("refund_amount", nullable=True),
        _money("remaining_amount"),
        sa.Column("is_paid", sa.Boolean(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index(op.f("ix_ebay_orders_order_date"), "ebay_orders", ["order_date"], unique=False)

    # --------------------------------------------------
    # payouts + allocations
    # --------------------------------------------------
    op.create_table(
        "payouts",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("platform", platform, nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        _money("amount"),
        sa.Column("method", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        *_timestamps(),
    )
    op.create_index(op.f("ix_payouts_platform"), "payouts", ["platform"], unique=False)
    op.create_index(op.f("ix_payouts_date"), "payouts", ["date"], unique=False)

    op.create_table(
        "payout_allocations",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "payout_id",
            sa.Integer(),
            sa.ForeignKey("payouts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "amazon_order_id",
            sa.Integer(),
            sa.ForeignKey("amazon_orders.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "ebay_order_id",
            sa.Integer(),
            sa.ForeignKey("ebay_orders.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("order_number", sa.String(length=100), nullable=False),
        _money("amount"),
    )
    op.create_index(op.f("ix_payout_allocations_payout_id"), "payout_allocations", ["payout_id"], unique=False)
    op.create_index(op.f("ix_payout_allocations_amazon_order_id"), "payout_allocations", ["amazon_order_id"], unique=False)
    op.create_index(op.f("ix_payout_allocations_ebay_order_id"), "payout_allocations", ["ebay_order_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_payout_allocations_ebay_order_id"), table_name="payout_allocations")
    op.drop_index(op.f("ix_payout_allocations_amazon_order_id"), table_name="payout_allocations")
    op.drop_index(op.f("ix_payout_allocations_payout_id"), table_name="payout_allocations")
    op.drop_table("payout_allocations")

    op.drop_index(op.f("ix_payouts_date"), table_name="payouts")
    op.drop_index(op.f("ix_payouts_platform"), table_name="payouts")
    op.drop_table("payouts")

    op.drop_index(op.f("ix_ebay_orders_order_date"), table_name="ebay_orders")
    op.drop_table("ebay_orders")

    op.drop_index(op.f("ix_amazon_orders_order_date"), table_name="amazon_orders")
    op.drop_table("amazon_orders")

    # Postgres keeps enum types around after DROP TABLE
    bind = op.get_bind()
    postgresql.ENUM(*PLATFORMS, name="platform").drop(bind, checkfirst=True)
    postgresql.ENUM(*REFUND_TYPES, name="refundtype").drop(bind, checkfirst=True)
