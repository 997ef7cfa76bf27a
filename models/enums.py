import enum


class Platform(str, enum.Enum):
    AMAZON = "AMAZON"
    EBAY = "EBAY"


class RefundType(str, enum.Enum):
    FULL = "FULL"          # Whole order refunded
    PARTIAL = "PARTIAL"    # Part of the item price
    SHIPPING = "SHIPPING"  # Shipping & handling only
    TAX = "TAX"            # Tax collected only
