# schemas/orders.py

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from models.enums import RefundType


# --------- AMAZON ---------


class AmazonOrderCreate(BaseModel):
    order_number: str = Field(max_length=100)
    order_date: datetime | date
    number_of_items: Optional[int] = Field(default=None, ge=0)
    payment_method: Optional[str] = Field(default=None, max_length=100)

    # Fee components: missing -> 0
    subtotal: Optional[Decimal] = None
    additional_fee: Optional[Decimal] = None
    shipping_handling: Optional[Decimal] = None
    tax_collected: Optional[Decimal] = None
    gift_card_amount: Optional[Decimal] = None


class AmazonOrderUpdate(BaseModel):
    """Partial update: only the fields sent are changed."""
    order_number: Optional[str] = Field(default=None, max_length=100)
    order_date: datetime | date | None = None
    number_of_items: Optional[int] = Field(default=None, ge=0)
    payment_method: Optional[str] = Field(default=None, max_length=100)

    subtotal: Optional[Decimal] = None
    additional_fee: Optional[Decimal] = None
    shipping_handling: Optional[Decimal] = None
    tax_collected: Optional[Decimal] = None
    gift_card_amount: Optional[Decimal] = None


class AmazonOrderOut(BaseModel):
    id: int
    order_number: str
    order_date: datetime
    number_of_items: int
    payment_method: Optional[str] = None

    subtotal: Decimal
    additional_fee: Decimal
    shipping_handling: Decimal
    tax_collected: Decimal
    gift_card_amount: Decimal
    order_total: Decimal

    refund_type: Optional[RefundType] = None
    refund_amount: Optional[Decimal] = None

    remaining_amount: Decimal
    is_paid: bool

    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


# --------- EBAY ---------


class EbayOrderCreate(BaseModel):
    order_number: str = Field(max_length=100)
    order_date: datetime | date
    order_quantity: Optional[int] = Field(default=None, ge=0)

    item_subtotal: Optional[Decimal] = None
    shipping_handling: Optional[Decimal] = None
    tax_collected: Optional[Decimal] = None
    transaction_fee: Optional[Decimal] = None
    ad_fees: Optional[Decimal] = None


class EbayOrderUpdate(BaseModel):
    order_number: Optional[str] = Field(default=None, max_length=100)
    order_date: datetime | date | None = None
    order_quantity: Optional[int] = Field(default=None, ge=0)

    item_subtotal: Optional[Decimal] = None
    shipping_handling: Optional[Decimal] = None
    tax_collected: Optional[Decimal] = None
    transaction_fee: Optional[Decimal] = None
    ad_fees: Optional[Decimal] = None


class EbayOrderOut(BaseModel):
    id: int
    order_number: str
    order_date: datetime
    order_quantity: int

    item_subtotal: Decimal
    shipping_handling: Decimal
    tax_collected: Decimal
    transaction_fee: Decimal
    ad_fees: Decimal
    net_amount: Decimal
    total_amount: Decimal

    refund_type: Optional[RefundType] = None
    refund_amount: Optional[Decimal] = None

    remaining_amount: Decimal
    is_paid: bool

    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


# --------- REFUND ---------


class RefundRequest(BaseModel):
    refund_type: RefundType
    amount: Decimal
