from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from app import order_service, payout_service
from app.errors import NotFoundError, ValidationError
from models.enums import Platform
from models.payouts import Payout, PayoutAllocation


def _create(db, allocations, platform=Platform.EBAY, **kwargs):
    kwargs.setdefault("date", date(2024, 2, 1))
    kwargs.setdefault("method", "Direct Deposit")
    return payout_service.create_payout(db, platform=platform, allocations=allocations, **kwargs)


def _remaining(db, platform, order_id) -> Decimal:
    return order_service.get_order(db, platform, order_id).remaining_amount


# -----------------------------
# allocation
# -----------------------------

def test_payout_split_across_two_orders(db, make_ebay_order) -> None:
    first = make_ebay_order("A", item_subtotal="40.00")
    second = make_ebay_order("B", item_subtotal="50.00")

    payout = _create(
        db,
        [
            {"order_id": first.id, "amount": "40.00"},
            {"order_id": second.id, "amount": "20.00"},
        ],
        description="Weekly settlement",
    )

    assert payout.amount == Decimal("60.00")
    assert payout.platform == Platform.EBAY
    assert payout.description == "Weekly settlement"
    assert [(a.order_id, a.amount) for a in payout.allocations] == [
        (first.id, Decimal("40.00")),
        (second.id, Decimal("20.00")),
    ]

    first = order_service.get_order(db, Platform.EBAY, first.id)
    second = order_service.get_order(db, Platform.EBAY, second.id)
    assert (first.remaining_amount, first.is_paid) == (Decimal("0.00"), True)
    assert (second.remaining_amount, second.is_paid) == (Decimal("30.00"), False)


def test_amazon_payout_settles_amazon_orders(db, make_amazon_order) -> None:
    order = make_amazon_order("AMZ-7", subtotal="25.00")

    payout = _create(db, [{"order_id": order.id, "amount": 25}], platform="amazon", method="PayPal")

    allocation = payout.allocations[0]
    assert allocation.amazon_order_id == order.id
    assert allocation.ebay_order_id is None
    assert allocation.order_number == "AMZ-7"
    assert order_service.get_order(db, Platform.AMAZON, order.id).is_paid is True


def test_over_allocation_is_rejected_without_state_change(db, make_ebay_order) -> None:
    order = make_ebay_order("OVER", item_subtotal="40.00")

    with pytest.raises(ValidationError, match="exceeds the remaining balance"):
        _create(db, [{"order_id": order.id, "amount": "50.00"}])

    assert _remaining(db, Platform.EBAY, order.id) == Decimal("40.00")
    assert db.query(Payout).count() == 0


def test_failed_allocation_rolls_back_whole_payout(db, make_ebay_order) -> None:
    ok = make_ebay_order("OK", item_subtotal="40.00")
    short = make_ebay_order("SHORT", item_subtotal="10.00")

    with pytest.raises(ValidationError):
        _create(
            db,
            [
                {"order_id": ok.id, "amount": "40.00"},
                {"order_id": short.id, "amount": "15.00"},
            ],
        )

    assert _remaining(db, Platform.EBAY, ok.id) == Decimal("40.00")
    assert _remaining(db, Platform.EBAY, short.id) == Decimal("10.00")
    assert db.query(Payout).count() == 0
    assert db.query(PayoutAllocation).count() == 0


@pytest.mark.parametrize("amount", ["0", "0.00", "-5", None, ""])
def test_non_positive_allocation_is_rejected(db, make_ebay_order, amount) -> None:
    order = make_ebay_order("ZERO", item_subtotal="40.00")

    with pytest.raises(ValidationError, match="greater than zero"):
        _create(db, [{"order_id": order.id, "amount": amount}])

    assert _remaining(db, Platform.EBAY, order.id) == Decimal("40.00")


def test_empty_payout_is_rejected(db) -> None:
    with pytest.raises(ValidationError, match="at least one order"):
        _create(db, [])


def test_duplicate_order_in_payout_is_rejected(db, make_ebay_order) -> None:
    order = make_ebay_order("TWICE", item_subtotal="40.00")

    with pytest.raises(ValidationError, match="more than once"):
        _create(
            db,
            [
                {"order_id": order.id, "amount": "10"},
                {"order_id": order.id, "amount": "10"},
            ],
        )


def test_unknown_order_is_rejected(db, make_ebay_order) -> None:
    order = make_ebay_order("KNOWN", item_subtotal="40.00")

    with pytest.raises(ValidationError, match="Unknown EBAY order"):
        _create(
            db,
            [
                {"order_id": order.id, "amount": "10"},
                {"order_id": order.id + 100, "amount": "10"},
            ],
        )

    assert _remaining(db, Platform.EBAY, order.id) == Decimal("40.00")


def test_order_from_other_platform_is_unknown(db, make_amazon_order) -> None:
    order = make_amazon_order("AMZ-ONLY", subtotal="40.00")

    with pytest.raises(ValidationError, match="Unknown EBAY order"):
        _create(db, [{"order_id": order.id, "amount": "10"}], platform=Platform.EBAY)


def test_declared_amount_must_match_allocations(db, make_ebay_order) -> None:
    order = make_ebay_order("DECL", item_subtotal="40.00")

    with pytest.raises(ValidationError, match="does not match"):
        _create(db, [{"order_id": order.id, "amount": "10"}], amount="12.00")

    payout = _create(db, [{"order_id": order.id, "amount": "10"}], amount="10")
    assert payout.amount == Decimal("10.00")


@pytest.mark.parametrize("method", [None, "", "   "])
def test_method_is_required(db, make_ebay_order, method) -> None:
    order = make_ebay_order("M", item_subtotal="40.00")

    with pytest.raises(ValidationError, match="method is required"):
        _create(db, [{"order_id": order.id, "amount": "10"}], method=method)


def test_concurrent_payouts_cannot_overdraw_an_order(session_factory, make_ebay_order) -> None:
    order = make_ebay_order("RACE", item_subtotal="40.00")

    first = session_factory()
    second = session_factory()
    try:
        # Both sessions saw the full balance before either wrote
        assert order_service.get_order(first, Platform.EBAY, order.id).remaining_amount == Decimal("40.00")
        assert order_service.get_order(second, Platform.EBAY, order.id).remaining_amount == Decimal("40.00")

        _create(first, [{"order_id": order.id, "amount": "30"}])

        with pytest.raises(ValidationError, match="exceeds the remaining balance"):
            _create(second, [{"order_id": order.id, "amount": "30"}])

        assert _remaining(second, Platform.EBAY, order.id) == Decimal("10.00")
    finally:
        first.close()
        second.close()


# -----------------------------
# update / delete
# -----------------------------

def test_update_payout_metadata(db, make_ebay_order) -> None:
    order = make_ebay_order("UPD", item_subtotal="40.00")
    payout = _create(db, [{"order_id": order.id, "amount": "40"}])

    updated = payout_service.update_payout(
        db, payout.id, {"method": "  Wire  ", "description": "", "date": "2024-02-10"}
    )

    assert updated.method == "Wire"
    assert updated.description is None
    assert updated.date.date() == date(2024, 2, 10)
    assert updated.amount == Decimal("40.00")
    assert _remaining(db, Platform.EBAY, order.id) == Decimal("0.00")


@pytest.mark.parametrize("field, value", [("amount", "10"), ("allocations", []), ("platform", "AMAZON")])
def test_update_cannot_touch_allocations(db, make_ebay_order, field, value) -> None:
    order = make_ebay_order("LOCK", item_subtotal="40.00")
    payout = _create(db, [{"order_id": order.id, "amount": "40"}])

    with pytest.raises(ValidationError, match="cannot be edited"):
        payout_service.update_payout(db, payout.id, {field: value})


def test_update_blank_method_is_rejected(db, make_ebay_order) -> None:
    order = make_ebay_order("BLANK", item_subtotal="40.00")
    payout = _create(db, [{"order_id": order.id, "amount": "40"}])

    with pytest.raises(ValidationError):
        payout_service.update_payout(db, payout.id, {"method": " "})


def test_update_unknown_payout_is_not_found(db) -> None:
    with pytest.raises(NotFoundError):
        payout_service.update_payout(db, 77, {"method": "Check"})


def test_delete_payout_does_not_restore_balances(db, make_ebay_order) -> None:
    first = make_ebay_order("DEL-A", item_subtotal="40.00")
    second = make_ebay_order("DEL-B", item_subtotal="50.00")
    payout = _create(
        db,
        [
            {"order_id": first.id, "amount": "40.00"},
            {"order_id": second.id, "amount": "20.00"},
        ],
    )

    payout_service.delete_payout(db, payout.id)

    with pytest.raises(NotFoundError):
        payout_service.get_payout(db, payout.id)
    assert db.query(PayoutAllocation).count() == 0

    # Current behavior: the settled amounts stay settled
    first = order_service.get_order(db, Platform.EBAY, first.id)
    second = order_service.get_order(db, Platform.EBAY, second.id)
    assert (first.remaining_amount, first.is_paid) == (Decimal("0.00"), True)
    assert (second.remaining_amount, second.is_paid) == (Decimal("30.00"), False)


def test_delete_unknown_payout_is_not_found(db) -> None:
    with pytest.raises(NotFoundError):
        payout_service.delete_payout(db, 1)


def test_list_payouts_newest_first_and_by_platform(db, make_ebay_order, make_amazon_order) -> None:
    ebay = make_ebay_order("LP-E", item_subtotal="100")
    amazon = make_amazon_order("LP-A", subtotal="100")
    older = _create(db, [{"order_id": ebay.id, "amount": "10"}], date=date(2024, 1, 1))
    newer = _create(db, [{"order_id": ebay.id, "amount": "10"}], date=date(2024, 3, 1))
    other = _create(db, [{"order_id": amazon.id, "amount": "10"}], platform=Platform.AMAZON, date=date(2024, 2, 1))

    assert [p.id for p in payout_service.list_payouts(db)] == [newer.id, other.id, older.id]
    assert [p.id for p in payout_service.list_payouts(db, Platform.EBAY)] == [newer.id, older.id]


# -----------------------------
# input bounds / failed writes
# -----------------------------

def test_allocation_beyond_column_size_is_rejected(db, make_ebay_order) -> None:
    order = make_ebay_order("HUGE", item_subtotal="40.00")

    with pytest.raises(ValidationError, match="too large"):
        _create(db, [{"order_id": order.id, "amount": "1e30"}])

    assert _remaining(db, Platform.EBAY, order.id) == Decimal("40.00")
    assert db.query(Payout).count() == 0


def test_payout_total_beyond_column_size_is_rejected(db, make_ebay_order) -> None:
    first = make_ebay_order("BIG-A", item_subtotal="60000000")
    second = make_ebay_order("BIG-B", item_subtotal="60000000")

    with pytest.raises(ValidationError, match="Payout amount is too large"):
        _create(
            db,
            [
                {"order_id": first.id, "amount": "60000000"},
                {"order_id": second.id, "amount": "60000000"},
            ],
        )

    assert db.query(Payout).count() == 0


@pytest.mark.parametrize("field, limit", [("method", 100), ("description", 255)])
def test_overlong_payout_text_is_rejected(db, make_ebay_order, field, limit) -> None:
    order = make_ebay_order("TXT", item_subtotal="40.00")
    payout = _create(db, [{"order_id": order.id, "amount": "10"}])

    with pytest.raises(ValidationError, match=f"{field} must be at most {limit} characters"):
        payout_service.update_payout(db, payout.id, {field: "x" * (limit + 1)})

    kwargs = {"method": "Check", field: "x" * (limit + 1)}
    with pytest.raises(ValidationError, match=f"{field} must be at most {limit} characters"):
        _create(db, [{"order_id": order.id, "amount": "10"}], **kwargs)


def _failing_commit():
    raise OperationalError("COMMIT", {}, Exception("connection lost"))


def test_failed_update_is_rolled_back(db, make_ebay_order, monkeypatch) -> None:
    order = make_ebay_order("RB-U", item_subtotal="40.00")
    payout = _create(db, [{"order_id": order.id, "amount": "10"}])

    monkeypatch.setattr(db, "commit", _failing_commit)
    with pytest.raises(OperationalError):
        payout_service.update_payout(db, payout.id, {"method": "Wire"})
    monkeypatch.undo()

    assert not db.dirty
    assert payout_service.get_payout(db, payout.id).method == "Direct Deposit"


def test_failed_delete_is_rolled_back(db, make_ebay_order, monkeypatch) -> None:
    order = make_ebay_order("RB-D", item_subtotal="40.00")
    payout = _create(db, [{"order_id": order.id, "amount": "10"}])

    monkeypatch.setattr(db, "commit", _failing_commit)
    with pytest.raises(OperationalError):
        payout_service.delete_payout(db, payout.id)
    monkeypatch.undo()

    assert not db.deleted
    assert payout_service.get_payout(db, payout.id).amount == Decimal("10.00")
