# schemas/payouts.py

import datetime as dt
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.enums import Platform


class AllocationIn(BaseModel):
    order_id: int
    amount: Decimal


class PayoutCreate(BaseModel):
    platform: Platform
    date: dt.datetime | dt.date
    method: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=255)

    # Optional: if sent, must equal the sum of the allocations
    amount: Optional[Decimal] = None

    allocations: List[AllocationIn] = Field(default_factory=list)


class PayoutUpdate(BaseModel):
    """Amount, platform and allocations are fixed once recorded."""
    model_config = ConfigDict(extra="forbid")

    date: dt.datetime | dt.date | None = None
    method: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=255)


class AllocationOut(BaseModel):
    id: int
    order_id: Optional[int] = None  # None once the order is deleted
    order_number: str
    amount: Decimal

    class Config:
        from_attributes = True


class PayoutOut(BaseModel):
    id: int
    platform: Platform
    date: dt.datetime
    amount: Decimal
    method: str
    description: Optional[str] = None
    allocations: List[AllocationOut] = []
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None

    class Config:
        from_attributes = True


class PayoutGroupOut(BaseModel):
    key: str
    count: int
    payouts: List[PayoutOut]


class LedgerEntryOut(BaseModel):
    kind: str  # "order" | "payout"
    id: int
    date: dt.datetime
    reference: str
    amount: Decimal
