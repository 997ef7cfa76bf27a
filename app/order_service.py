# app/order_service.py

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.amounts import ZERO, check_storable, money2, parse_amount, to_utc_timestamp
from app.errors import ConflictError, NotFoundError, ValidationError
from app.order_totals import (
    AMAZON_FEE_FIELDS,
    EBAY_FEE_FIELDS,
    amazon_order_total,
    ebay_order_amounts,
)
from models.amazon_orders import AmazonOrder
from models.ebay_orders import EbayOrder
from models.enums import Platform, RefundType
from models.payouts import PayoutAllocation

logger = logging.getLogger(__name__)

# -----------------------------
# PER-PLATFORM WIRING
# -----------------------------
ORDER_MODELS = {
    Platform.AMAZON: AmazonOrder,
    Platform.EBAY: EbayOrder,
}

FEE_FIELDS = {
    Platform.AMAZON: AMAZON_FEE_FIELDS,
    Platform.EBAY: EBAY_FEE_FIELDS,
}

QUANTITY_FIELD = {
    Platform.AMAZON: "number_of_items",
    Platform.EBAY: "order_quantity",
}

# Plain optional text columns, copied as-is
TEXT_FIELDS = {
    Platform.AMAZON: ("payment_method",),
    Platform.EBAY: (),
}

ALLOCATION_ORDER_COLUMN = {
    Platform.AMAZON: PayoutAllocation.amazon_order_id,
    Platform.EBAY: PayoutAllocation.ebay_order_id,
}

# String column sizes
ORDER_NUMBER_MAX = 100
TEXT_FIELD_MAX = 100


def parse_platform(value: Any) -> Platform:
    try:
        return Platform(value.upper() if isinstance(value, str) else value)
    except ValueError:
        raise ValidationError(f"Unknown platform: {value!r}.") from None


def order_model(platform: Platform):
    return ORDER_MODELS[parse_platform(platform)]


# -----------------------------
# VALIDATION HELPERS
# -----------------------------

def check_length(text: Optional[str], field: str, limit: int) -> Optional[str]:
    if text is not None and len(text) > limit:
        raise ValidationError(f"{field} must be at most {limit} characters.")
    return text


def _clean_order_number(value: Any) -> str:
    number = str(value).strip() if value is not None else ""
    if not number:
        raise ValidationError("order_number is required.")
    return check_length(number, "order_number", ORDER_NUMBER_MAX)


def _clean_text(value: Any, field: str) -> Optional[str]:
    text = (str(value) if value is not None else "").strip() or None
    return check_length(text, field, TEXT_FIELD_MAX)


def _parse_quantity(value: Any, field: str) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        return 1
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a whole number.")
    try:
        qty = int(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field} must be a whole number.") from None
    if qty < 0:
        raise ValidationError(f"{field} cannot be negative.")
    return qty


def check_refund(
    refund_type: Optional[RefundType],
    refund_amount: Optional[Decimal],
    order_total: Decimal,
) -> None:
    """
    One outstanding refund per order:
    0 < amount <= order total, FULL == order total.
    """
    if refund_type is None:
        return
    if refund_amount is None or refund_amount <= 0:
        raise ValidationError("Refund amount must be greater than zero.")
    if refund_amount > order_total:
        raise ValidationError(
            f"Refund amount {refund_amount} exceeds the order total {order_total}."
        )
    if refund_type == RefundType.FULL and refund_amount != order_total:
        raise ValidationError(
            f"A FULL refund must equal the order total {order_total}."
        )


def derived_amounts(platform: Platform, fees: Mapping[str, Any]) -> dict[str, Decimal]:
    if platform == Platform.AMAZON:
        return {"order_total": amazon_order_total(fees)}
    amounts = ebay_order_amounts(fees)
    return {"net_amount": amounts.net_amount, "total_amount": amounts.total_amount}


def _settle(
    platform: Platform,
    fees: Mapping[str, Any],
    paid: Decimal,
    refund_type: Optional[RefundType],
    refund_amount: Optional[Decimal],
) -> dict[str, Any]:
    """
    Recompute derived totals and payment state for a set of fee inputs.
    `paid` is what payouts have already settled on the order.
    """
    derived = derived_amounts(platform, fees)
    total = derived["order_total"] if platform == Platform.AMAZON else derived["total_amount"]

    if total < 0:
        raise ValidationError(f"Order total cannot be negative (got {total}).")
    for name, value in derived.items():
        check_storable(value, name)

    remaining = money2(total - paid)
    if remaining < 0:
        raise ValidationError(
            f"Order total {total} is below the amount already paid out ({paid})."
        )

    check_refund(refund_type, refund_amount, total)

    derived["remaining_amount"] = remaining
    derived["is_paid"] = remaining == ZERO
    return derived


def _commit(db: Session, what: str) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"{what}: order number already exists.") from None
    except StaleDataError:
        db.rollback()
        raise ConflictError(f"{what}: order was modified concurrently, retry.") from None


def _ensure_unique_number(db: Session, model, number: str, exclude_id: Optional[int] = None) -> None:
    q = db.query(model.id).filter(model.order_number == number)
    if exclude_id is not None:
        q = q.filter(model.id != exclude_id)
    if q.first():
        raise ConflictError(f"Order number {number} already exists.")


# ---------------------------------------------------------
# READ
# ---------------------------------------------------------

def get_order(db: Session, platform: Platform, order_id: int):
    model = order_model(platform)
    order = db.query(model).filter(model.id == order_id).first()
    if not order:
        raise NotFoundError(f"Order {order_id} not found.")
    return order


def list_orders(db: Session, platform: Platform):
    model = order_model(platform)
    return (
        db.query(model)
        .order_by(model.order_date.desc(), model.id.desc())
        .all()
    )


def list_unpaid_orders(db: Session, platform: Platform):
    """Orders with an open balance, oldest first."""
    model = order_model(platform)
    return (
        db.query(model)
        .filter(model.remaining_amount > 0)
        .order_by(model.order_date.asc(), model.id.asc())
        .all()
    )


# ---------------------------------------------------------
# CREATE / UPDATE / DELETE
# ---------------------------------------------------------

def create_order(db: Session, platform: Platform, fields: Mapping[str, Any]):
    platform = parse_platform(platform)
    model = ORDER_MODELS[platform]

    number = _clean_order_number(fields.get("order_number"))
    order_date = to_utc_timestamp(fields.get("order_date"), "order_date")

    fees = {f: parse_amount(fields.get(f), f) for f in FEE_FIELDS[platform]}
    quantity_field = QUANTITY_FIELD[platform]

    values: dict[str, Any] = {
        "order_number": number,
        "order_date": order_date,
        quantity_field: _parse_quantity(fields.get(quantity_field), quantity_field),
        **fees,
        **_settle(platform, fees, ZERO, None, None),
    }
    for name in TEXT_FIELDS[platform]:
        values[name] = _clean_text(fields.get(name), name)

    _ensure_unique_number(db, model, number)

    order = model(**values)
    db.add(order)
    _commit(db, "Create order")
    db.refresh(order)

    logger.info(
        "Order created | platform=%s | id=%s | number=%s | total=%s",
        platform.value, order.id, order.order_number, order.settlement_total,
    )
    return order


def update_order(db: Session, platform: Platform, order_id: int, fields: Mapping[str, Any]):
    """
    Partial update. Only keys present in `fields` change; derived
    totals and the remaining balance are always recomputed.
    """
    platform = parse_platform(platform)
    order = get_order(db, platform, order_id)
    model = type(order)

    changes: dict[str, Any] = {}

    if "order_number" in fields:
        number = _clean_order_number(fields["order_number"])
        if number != order.order_number:
            _ensure_unique_number(db, model, number, exclude_id=order.id)
        changes["order_number"] = number

    if "order_date" in fields:
        changes["order_date"] = to_utc_timestamp(fields["order_date"], "order_date")

    quantity_field = QUANTITY_FIELD[platform]
    if quantity_field in fields:
        changes[quantity_field] = _parse_quantity(fields[quantity_field], quantity_field)

    for name in TEXT_FIELDS[platform]:
        if name in fields:
            changes[name] = _clean_text(fields[name], name)

    fees = {f: getattr(order, f) for f in FEE_FIELDS[platform]}
    for f in FEE_FIELDS[platform]:
        if f in fields:
            fees[f] = parse_amount(fields[f], f)
            changes[f] = fees[f]

    paid = money2(order.settlement_total - order.remaining_amount)
    changes.update(_settle(platform, fees, paid, order.refund_type, order.refund_amount))

    for key, value in changes.items():
        setattr(order, key, value)

    _commit(db, "Update order")
    db.refresh(order)

    logger.info(
        "Order updated | platform=%s | id=%s | total=%s | remaining=%s",
        platform.value, order.id, order.settlement_total, order.remaining_amount,
    )
    return order


def delete_order(db: Session, platform: Platform, order_id: int) -> None:
    """Hard delete. Allocations keep their order-number snapshot."""
    platform = parse_platform(platform)
    order = get_order(db, platform, order_id)

    column = ALLOCATION_ORDER_COLUMN[platform]
    detached = (
        db.query(PayoutAllocation)
        .filter(column == order.id)
        .update({column: None}, synchronize_session="fetch")
    )

    db.delete(order)
    _commit(db, "Delete order")

    logger.info(
        "Order deleted | platform=%s | id=%s | detached_allocations=%s",
        platform.value, order_id, detached,
    )


# ---------------------------------------------------------
# REFUNDS
# ---------------------------------------------------------

def apply_refund(db: Session, platform: Platform, order_id: int, refund_type: Any, amount: Any):
    """
    Records the refund on the order. Payouts already allocated
    against the order are not reversed.
    """
    platform = parse_platform(platform)
    order = get_order(db, platform, order_id)

    if order.refund_type is not None:
        raise ValidationError(
            f"Order {order.order_number} already has a {order.refund_type.value} refund."
        )

    if refund_type is None:
        raise ValidationError("refund_type is required.")
    try:
        refund_type = RefundType(refund_type)
    except ValueError:
        raise ValidationError(f"Unknown refund type: {refund_type!r}.") from None

    refund_amount = parse_amount(amount, "refund_amount")
    check_refund(refund_type, refund_amount, order.settlement_total)

    order.refund_type = refund_type
    order.refund_amount = refund_amount
    _commit(db, "Apply refund")
    db.refresh(order)

    logger.info(
        "Refund applied | platform=%s | id=%s | type=%s | amount=%s",
        platform.value, order.id, refund_type.value, refund_amount,
    )
    return order


def clear_refund(db: Session, platform: Platform, order_id: int):
    platform = parse_platform(platform)
    order = get_order(db, platform, order_id)

    if order.refund_type is None:
        raise ValidationError(f"Order {order.order_number} has no outstanding refund.")

    order.refund_type = None
    order.refund_amount = None
    _commit(db, "Clear refund")
    db.refresh(order)

    logger.info("Refund cleared | platform=%s | id=%s", platform.value, order.id)
    return order
