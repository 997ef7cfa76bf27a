from sqlalchemy.orm import declarative_base

Base = declarative_base()

# --------------------------------------------------
# Marketplace orders
# --------------------------------------------------
from .amazon_orders import AmazonOrder  # noqa: F401
from .ebay_orders import EbayOrder  # noqa: F401

# --------------------------------------------------
# Payouts & allocations
# --------------------------------------------------
from .payouts import Payout, PayoutAllocation  # noqa: F401
