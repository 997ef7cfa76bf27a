# routers/ebay_orders.py

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app import order_service
from app.db import get_db
from models.enums import Platform
from schemas.orders import (
    EbayOrderCreate,
    EbayOrderUpdate,
    EbayOrderOut,
    RefundRequest,
)

router = APIRouter(
    prefix="/ebay-orders",
    tags=["eBay Orders"],
)


@router.get("", response_model=List[EbayOrderOut])
def list_ebay_orders(db: Session = Depends(get_db)):
    return order_service.list_orders(db, Platform.EBAY)


@router.get("/unpaid", response_model=List[EbayOrderOut])
def list_unpaid_ebay_orders(db: Session = Depends(get_db)):
    return order_service.list_unpaid_orders(db, Platform.EBAY)


@router.get("/{order_id}", response_model=EbayOrderOut)
def get_ebay_order(order_id: int, db: Session = Depends(get_db)):
    return order_service.get_order(db, Platform.EBAY, order_id)


# net_amount / total_amount are derived, never accepted as input
@router.post("", response_model=EbayOrderOut, status_code=status.HTTP_201_CREATED)
def create_ebay_order(payload: EbayOrderCreate, db: Session = Depends(get_db)):
    return order_service.create_order(db, Platform.EBAY, payload.model_dump())


@router.put("/{order_id}", response_model=EbayOrderOut)
def update_ebay_order(
    order_id: int,
    payload: EbayOrderUpdate,
    db: Session = Depends(get_db),
):
    return order_service.update_order(
        db, Platform.EBAY, order_id, payload.model_dump(exclude_unset=True)
    )


@router.delete("/{order_id}")
def delete_ebay_order(order_id: int, db: Session = Depends(get_db)):
    order_service.delete_order(db, Platform.EBAY, order_id)
    return {"success": True, "message": "Order deleted successfully"}


@router.post("/{order_id}/refund", response_model=EbayOrderOut)
def refund_ebay_order(
    order_id: int,
    payload: RefundRequest,
    db: Session = Depends(get_db),
):
    return order_service.apply_refund(
        db, Platform.EBAY, order_id, payload.refund_type, payload.amount
    )


@router.delete("/{order_id}/refund", response_model=EbayOrderOut)
def clear_ebay_refund(order_id: int, db: Session = Depends(get_db)):
    return order_service.clear_refund(db, Platform.EBAY, order_id)
