# app/summaries.py

from __future__ import annotations

from typing import Any, Iterable

from sqlalchemy.orm import Session

from app.errors import ValidationError
from app.order_service import list_orders, parse_platform
from app.payout_service import list_payouts
from models.enums import Platform

GROUP_KEYS = ("method", "platform")


def _group_key(payout: Any, by: str) -> str:
    value = getattr(payout, by)
    if isinstance(value, Platform):
        return value.value
    return value


def group_payouts(payouts: Iterable[Any], by: str = "method") -> list[dict[str, Any]]:
    """
    Stable partition of payouts by method (or platform).
    Groups come out in first-seen order, members keep input order.
    """
    if by not in GROUP_KEYS:
        raise ValidationError(f"Cannot group payouts by {by!r}.")

    groups: dict[str, list[Any]] = {}
    for p in payouts:
        groups.setdefault(_group_key(p, by), []).append(p)

    return [
        {"key": key, "count": len(members), "payouts": members}
        for key, members in groups.items()
    ]


def ledger_entries(db: Session, platform: Platform) -> list[dict[str, Any]]:
    """Orders and payouts of one platform as a single feed, newest first."""
    platform = parse_platform(platform)

    entries = [
        {
            "kind": "order",
            "id": o.id,
            "date": o.order_date,
            "reference": o.order_number,
            "amount": o.settlement_total,
        }
        for o in list_orders(db, platform)
    ]
    entries += [
        {
            "kind": "payout",
            "id": p.id,
            "date": p.date,
            "reference": p.method,
            "amount": p.amount,
        }
        for p in list_payouts(db, platform)
    ]

    entries.sort(key=lambda e: e["date"], reverse=True)
    return entries
