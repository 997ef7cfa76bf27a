from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    Boolean,
    DateTime,
    Enum,
    text,
)
from sqlalchemy.sql import func

from models import Base
from models.enums import RefundType


class AmazonOrder(Base):
    __tablename__ = "amazon_orders"

    id = Column(Integer, primary_key=True)

    order_number = Column(String(100), nullable=False, unique=True)
    order_date = Column(DateTime(timezone=True), nullable=False, index=True)

    number_of_items = Column(Integer, nullable=False, default=1)
    payment_method = Column(String(100), nullable=True)

    # --- fee components (inputs) ---
    subtotal = Column(Numeric(10, 2), nullable=False, server_default=text("0"))
    additional_fee = Column(Numeric(10, 2), nullable=False, server_default=text("0"))
    shipping_handling = Column(Numeric(10, 2), nullable=False, server_default=text("0"))
    tax_collected = Column(Numeric(10, 2), nullable=False, server_default=text("0"))
    gift_card_amount = Column(Numeric(10, 2), nullable=False, server_default=text("0"))

    # Derived: always recomputed from the components above
    order_total = Column(Numeric(10, 2), nullable=False)

    # --- refund (at most one outstanding) ---
    refund_type = Column(Enum(RefundType), nullable=True)
    refund_amount = Column(Numeric(10, 2), nullable=True)

    # --- payment state ---
    remaining_amount = Column(Numeric(10, 2), nullable=False)
    is_paid = Column(Boolean, nullable=False, default=False)

    # Optimistic concurrency counter (payout allocation)
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def settlement_total(self):
        return self.order_total
