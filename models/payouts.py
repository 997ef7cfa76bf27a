from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    DateTime,
    Enum,
    ForeignKey,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from models import Base
from models.enums import Platform


class Payout(Base):
    """
    Settlement received from a marketplace.
    amount == sum(allocations.amount), checked when the payout is created.
    """
    __tablename__ = "payouts"

    id = Column(Integer, primary_key=True)

    platform = Column(Enum(Platform), nullable=False, index=True)

    date = Column(DateTime(timezone=True), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)

    # Free text: "Direct Deposit", "PayPal", ...
    method = Column(String(100), nullable=False)
    description = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    allocations = relationship(
        "PayoutAllocation",
        back_populates="payout",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PayoutAllocation.id",
    )


class PayoutAllocation(Base):
    """Portion of a payout applied to one order."""
    __tablename__ = "payout_allocations"

    id = Column(Integer, primary_key=True)

    payout_id = Column(
        Integer,
        ForeignKey("payouts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Exactly one of these is set at creation (matches payout.platform).
    # SET NULL: orders are hard-deleted, the allocation history stays.
    amazon_order_id = Column(
        Integer,
        ForeignKey("amazon_orders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    ebay_order_id = Column(
        Integer,
        ForeignKey("ebay_orders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Snapshot, still readable after the order is gone
    order_number = Column(String(100), nullable=False)

    amount = Column(Numeric(10, 2), nullable=False)

    payout = relationship("Payout", back_populates="allocations")

    @property
    def order_id(self):
        if self.amazon_order_id is not None:
            return self.amazon_order_id
        return self.ebay_order_id
