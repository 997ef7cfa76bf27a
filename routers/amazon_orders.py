# routers/amazon_orders.py

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app import order_service
from app.db import get_db
from models.enums import Platform
from schemas.orders import (
    AmazonOrderCreate,
    AmazonOrderUpdate,
    AmazonOrderOut,
    RefundRequest,
)

router = APIRouter(
    prefix="/amazon-orders",
    tags=["Amazon Orders"],
)


# ---------------------------------------------------------
# 1️⃣ LIST (newest first) / UNPAID (oldest first)
# ---------------------------------------------------------
@router.get("", response_model=List[AmazonOrderOut])
def list_amazon_orders(db: Session = Depends(get_db)):
    return order_service.list_orders(db, Platform.AMAZON)


@router.get("/unpaid", response_model=List[AmazonOrderOut])
def list_unpaid_amazon_orders(db: Session = Depends(get_db)):
    return order_service.list_unpaid_orders(db, Platform.AMAZON)


@router.get("/{order_id}", response_model=AmazonOrderOut)
def get_amazon_order(order_id: int, db: Session = Depends(get_db)):
    return order_service.get_order(db, Platform.AMAZON, order_id)


# ---------------------------------------------------------
# 2️⃣ CREATE / UPDATE / DELETE
#    🔒 order_total is always computed, never accepted as input
# ---------------------------------------------------------
@router.post("", response_model=AmazonOrderOut, status_code=status.HTTP_201_CREATED)
def create_amazon_order(payload: AmazonOrderCreate, db: Session = Depends(get_db)):
    return order_service.create_order(db, Platform.AMAZON, payload.model_dump())


@router.put("/{order_id}", response_model=AmazonOrderOut)
def update_amazon_order(
    order_id: int,
    payload: AmazonOrderUpdate,
    db: Session = Depends(get_db),
):
    return order_service.update_order(
        db, Platform.AMAZON, order_id, payload.model_dump(exclude_unset=True)
    )


@router.delete("/{order_id}")
def delete_amazon_order(order_id: int, db: Session = Depends(get_db)):
    order_service.delete_order(db, Platform.AMAZON, order_id)
    return {"success": True, "message": "Order deleted successfully"}


# ---------------------------------------------------------
# 3️⃣ REFUND
# ---------------------------------------------------------
@router.post("/{order_id}/refund", response_model=AmazonOrderOut)
def refund_amazon_order(
    order_id: int,
    payload: RefundRequest,
    db: Session = Depends(get_db),
):
    return order_service.apply_refund(
        db, Platform.AMAZON, order_id, payload.refund_type, payload.amount
    )


@router.delete("/{order_id}/refund", response_model=AmazonOrderOut)
def clear_amazon_refund(order_id: int, db: Session = Depends(get_db)):
    return order_service.clear_refund(db, Platform.AMAZON, order_id)
