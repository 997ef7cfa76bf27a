# app/order_totals.py

"""
Order total calculators.

One pure function per order type; every create/update path goes
through these so the stored totals never drift from their inputs.
"""

from decimal import Decimal
from typing import Any, Mapping, NamedTuple

from app.amounts import money2, parse_amount

# -------------------------------------------------
# FEE COMPONENTS (input columns per order type)
# -------------------------------------------------

AMAZON_FEE_FIELDS = (
    "subtotal",
    "additional_fee",
    "shipping_handling",
    "tax_collected",
    "gift_card_amount",
)

EBAY_FEE_FIELDS = (
    "item_subtotal",
    "transaction_fee",
    "ad_fees",
    "shipping_handling",
    "tax_collected",
)


class EbayAmounts(NamedTuple):
    net_amount: Decimal
    total_amount: Decimal


def _components(fields: Mapping[str, Any], names: tuple[str, ...]) -> dict[str, Decimal]:
    return {name: parse_amount(fields.get(name), name) for name in names}


def amazon_order_total(fields: Mapping[str, Any]) -> Decimal:
    """
    orderTotal = subtotal + additional_fee + shipping_handling
                 + tax_collected - gift_card_amount
    """
    c = _components(fields, AMAZON_FEE_FIELDS)
    return money2(
        c["subtotal"]
        + c["additional_fee"]
        + c["shipping_handling"]
        + c["tax_collected"]
        - c["gift_card_amount"]
    )


def ebay_order_amounts(fields: Mapping[str, Any]) -> EbayAmounts:
    """
    net_amount   = item_subtotal - transaction_fee - ad_fees
    total_amount = net_amount + shipping_handling + tax_collected
    """
    c = _components(fields, EBAY_FEE_FIELDS)
    net = money2(c["item_subtotal"] - c["transaction_fee"] - c["ad_fees"])
    total = money2(net + c["shipping_handling"] + c["tax_collected"])
    return EbayAmounts(net_amount=net, total_amount=total)
