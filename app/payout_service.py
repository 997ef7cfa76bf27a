# app/payout_service.py

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.amounts import ZERO, check_storable, money2, parse_amount, to_utc_timestamp
from app.errors import ConflictError, LedgerError, NotFoundError, ValidationError
from app.order_service import (
    ALLOCATION_ORDER_COLUMN,
    ORDER_MODELS,
    check_length,
    parse_platform,
)
from models.enums import Platform
from models.payouts import Payout, PayoutAllocation

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("date", "method", "description")

# Once recorded, allocations are fixed: editing them would require
# reversing balances on the settled orders, which is not done.
IMMUTABLE_FIELDS = ("amount", "platform", "allocations")

METHOD_MAX = 100
DESCRIPTION_MAX = 255


def _clean_method(value: Any) -> str:
    method = str(value).strip() if value is not None else ""
    if not method:
        raise ValidationError("method is required.")
    return check_length(method, "method", METHOD_MAX)


def _clean_description(value: Any) -> Optional[str]:
    text = (str(value) if value is not None else "").strip() or None
    return check_length(text, "description", DESCRIPTION_MAX)


def _commit(db: Session, what: str) -> None:
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        raise ConflictError(f"{what}: payout was modified concurrently, retry.") from None
    except Exception:
        db.rollback()
        logger.exception("%s failed", what)
        raise


def _parse_allocations(allocations: Iterable[Mapping[str, Any]]) -> dict[int, Decimal]:
    """order_id -> amount, in request order."""
    requested: dict[int, Decimal] = {}

    for item in allocations or ():
        raw_id = item.get("order_id")
        if raw_id is None or isinstance(raw_id, bool):
            raise ValidationError("Each allocation needs an order_id.")
        try:
            order_id = int(raw_id)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid order_id: {raw_id!r}.") from None

        amount = parse_amount(
            item.get("amount"),
            f"allocation amount for order {order_id}",
            allow_negative=True,
        )
        if amount <= 0:
            raise ValidationError(
                f"Allocation amount for order {order_id} must be greater than zero."
            )
        if order_id in requested:
            raise ValidationError(f"Order {order_id} is allocated more than once.")

        requested[order_id] = amount

    return requested


# ---------------------------------------------------------
# READ
# ---------------------------------------------------------

def get_payout(db: Session, payout_id: int) -> Payout:
    payout = db.query(Payout).filter(Payout.id == payout_id).first()
    if not payout:
        raise NotFoundError(f"Payout {payout_id} not found.")
    return payout


def list_payouts(db: Session, platform: Optional[Platform] = None) -> list[Payout]:
    q = db.query(Payout)
    if platform is not None:
        q = q.filter(Payout.platform == parse_platform(platform))
    return q.order_by(Payout.date.desc(), Payout.id.desc()).all()


# ---------------------------------------------------------
# CREATE (allocation)
# 🔒 payout + every touched order commit together or not at all
# ---------------------------------------------------------

def create_payout(
    db: Session,
    platform: Platform,
    date: Any,
    method: Any,
    allocations: Iterable[Mapping[str, Any]],
    description: Any = None,
    amount: Any = None,
) -> Payout:
    platform = parse_platform(platform)
    model = ORDER_MODELS[platform]

    payout_date = to_utc_timestamp(date, "date")
    method = _clean_method(method)
    description = _clean_description(description)

    requested = _parse_allocations(allocations)
    if not requested:
        raise ValidationError("A payout must settle at least one order.")

    total = check_storable(money2(sum(requested.values(), ZERO)), "Payout amount")
    if total <= 0:
        raise ValidationError("Payout amount must be greater than zero.")

    # The declared amount is optional, but when given it must match
    if amount is not None and not (isinstance(amount, str) and not amount.strip()):
        declared = parse_amount(amount, "amount")
        if declared != total:
            raise ValidationError(
                f"Payout amount {declared} does not match the allocated total {total}."
            )

    column = ALLOCATION_ORDER_COLUMN[platform].key

    try:
        # Row locks in id order, fresh values even if already in the
        # session; the version counter catches what locks can't
        orders = (
            db.query(model)
            .filter(model.id.in_(list(requested)))
            .order_by(model.id)
            .with_for_update()
            .populate_existing()
            .all()
        )
        by_id = {o.id: o for o in orders}

        missing = [str(oid) for oid in requested if oid not in by_id]
        if missing:
            raise ValidationError(
                f"Unknown {platform.value} order(s): {', '.join(missing)}."
            )

        for order_id, alloc in requested.items():
            order = by_id[order_id]
            if alloc > order.remaining_amount:
                raise ValidationError(
                    f"Allocation {alloc} exceeds the remaining balance "
                    f"{order.remaining_amount} of order {order.order_number}."
                )

        payout = Payout(
            platform=platform,
            date=payout_date,
            amount=total,
            method=method,
            description=description,
        )

        for order_id, alloc in requested.items():
            order = by_id[order_id]
            order.remaining_amount = money2(order.remaining_amount - alloc)
            order.is_paid = order.remaining_amount == ZERO
            payout.allocations.append(
                PayoutAllocation(
                    order_number=order.order_number,
                    amount=alloc,
                    **{column: order.id},
                )
            )

        db.add(payout)
        db.commit()
    except LedgerError as e:
        db.rollback()
        logger.warning("Payout rejected | platform=%s | %s", platform.value, e.message)
        raise
    except StaleDataError:
        db.rollback()
        logger.warning("Payout rejected | platform=%s | concurrent order update", platform.value)
        raise ConflictError(
            "An order in this payout was modified concurrently, retry."
        ) from None
    except Exception:
        db.rollback()
        logger.exception("Payout creation failed | platform=%s", platform.value)
        raise

    db.refresh(payout)

    logger.info(
        "Payout created | id=%s | platform=%s | amount=%s | orders=%s",
        payout.id, platform.value, payout.amount, len(requested),
    )
    return payout


# ---------------------------------------------------------
# UPDATE / DELETE
# ---------------------------------------------------------

def update_payout(db: Session, payout_id: int, fields: Mapping[str, Any]) -> Payout:
    """Only date, method and description are editable."""
    payout = get_payout(db, payout_id)

    locked = [f for f in IMMUTABLE_FIELDS if f in fields]
    if locked:
        raise ValidationError(
            f"Payout {', '.join(locked)} cannot be edited; delete and re-create the payout."
        )

    changes: dict[str, Any] = {}
    if "date" in fields:
        changes["date"] = to_utc_timestamp(fields["date"], "date")
    if "method" in fields:
        changes["method"] = _clean_method(fields["method"])
    if "description" in fields:
        changes["description"] = _clean_description(fields["description"])

    for key, value in changes.items():
        setattr(payout, key, value)

    _commit(db, "Update payout")
    db.refresh(payout)

    logger.info("Payout updated | id=%s", payout.id)
    return payout


def delete_payout(db: Session, payout_id: int) -> None:
    """
    Hard delete of the payout and its allocations.

    Balances of the settled orders are NOT restored: remaining_amount
    and is_paid keep the values the payout left them with.
    """
    payout = get_payout(db, payout_id)
    settled = [(a.order_number, a.amount) for a in payout.allocations]

    db.delete(payout)
    _commit(db, "Delete payout")

    logger.warning(
        "Payout deleted | id=%s | order balances left unchanged for %s",
        payout_id, ", ".join(f"{n}={a}" for n, a in settled) or "-",
    )
