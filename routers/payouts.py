# routers/payouts.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app import payout_service
from app.db import get_db
from app.summaries import group_payouts
from models.enums import Platform
from schemas.payouts import (
    PayoutCreate,
    PayoutUpdate,
    PayoutOut,
    PayoutGroupOut,
)

router = APIRouter(
    prefix="/payouts",
    tags=["Payouts"],
)


# ---------------------------------------------------------
# 1️⃣ LIST PAYOUTS (newest first)
# ---------------------------------------------------------
@router.get("", response_model=List[PayoutOut])
def list_payouts(
    platform: Optional[Platform] = None,
    db: Session = Depends(get_db),
):
    return payout_service.list_payouts(db, platform)


# ---------------------------------------------------------
# 2️⃣ SUMMARY BY METHOD / PLATFORM
# ---------------------------------------------------------
@router.get("/summary", response_model=List[PayoutGroupOut])
def payouts_summary(
    by: str = Query("method", pattern="^(method|platform)$"),
    platform: Optional[Platform] = None,
    db: Session = Depends(get_db),
):
    """
    Payouts grouped by method (or platform):
    - key: the method string / platform
    - count: payouts in the group
    - payouts: the members, newest first
    Groups keep first-seen order.
    """
    return group_payouts(payout_service.list_payouts(db, platform), by=by)


@router.get("/{payout_id}", response_model=PayoutOut)
def get_payout(payout_id: int, db: Session = Depends(get_db)):
    return payout_service.get_payout(db, payout_id)


# ---------------------------------------------------------
# 3️⃣ CREATE PAYOUT + ALLOCATIONS
#    🔒 amount = sum of allocations, all-or-nothing
# ---------------------------------------------------------
@router.post("", response_model=PayoutOut, status_code=status.HTTP_201_CREATED)
def create_payout(payload: PayoutCreate, db: Session = Depends(get_db)):
    return payout_service.create_payout(
        db,
        platform=payload.platform,
        date=payload.date,
        method=payload.method,
        allocations=[a.model_dump() for a in payload.allocations],
        description=payload.description,
        amount=payload.amount,
    )


# ---------------------------------------------------------
# 4️⃣ UPDATE (date / method / description only) & DELETE
#    ⚠️ neither touches the settled orders' balances
# ---------------------------------------------------------
@router.put("/{payout_id}", response_model=PayoutOut)
def update_payout(
    payout_id: int,
    payload: PayoutUpdate,
    db: Session = Depends(get_db),
):
    return payout_service.update_payout(
        db, payout_id, payload.model_dump(exclude_unset=True)
    )


@router.delete("/{payout_id}")
def delete_payout(payout_id: int, db: Session = Depends(get_db)):
    payout_service.delete_payout(db, payout_id)
    return {"message": "Payout deleted successfully"}
