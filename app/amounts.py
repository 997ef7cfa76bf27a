# app/amounts.py

from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from app.errors import ValidationError

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

# Numeric(10, 2) columns hold at most 99,999,999.99
MAX_AMOUNT = Decimal("100000000")


def money2(v: Decimal) -> Decimal:
    return v.quantize(CENT, rounding=ROUND_HALF_UP)


def check_storable(amount: Decimal, field: str) -> Decimal:
    if abs(amount) >= MAX_AMOUNT:
        raise ValidationError(f"{field} is too large.")
    return amount


def parse_amount(value: Any, field: str, *, allow_negative: bool = False) -> Decimal:
    """
    Validate one monetary input and return it rounded to cents.

    None and "" (empty form field) count as zero. Anything that is not a
    finite number is rejected, never coerced.
    """
    if value is None:
        return ZERO
    if isinstance(value, str) and not value.strip():
        return ZERO

    # bool is an int subclass: True must not become 1.00
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number.")

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number.") from None
    else:
        raise ValidationError(f"{field} must be a number.")

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number.")

    if amount < 0 and not allow_negative:
        raise ValidationError(f"{field} cannot be negative.")

    # checked before rounding too: quantize overflows on huge exponents
    check_storable(amount, field)
    return check_storable(money2(amount), field)


def to_utc_timestamp(value: Any, field: str) -> datetime:
    """
    Dates are stored as absolute timestamps.
    date -> midnight UTC, naive datetime -> UTC.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required.")

    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"{field} is not a valid date.") from None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)

    raise ValidationError(f"{field} is not a valid date.")
