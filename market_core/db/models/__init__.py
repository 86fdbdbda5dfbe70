# Importing the models registers them on Base.metadata.
from market_core.db.models.products import Product
from market_core.db.models.vendors import Branch, Vendor
from market_core.db.models.store_products import MatchStatus, StoreProduct
from market_core.db.models.price_history import PriceHistory

__all__ = [
    "Branch",
    "MatchStatus",
    "PriceHistory",
    "Product",
    "StoreProduct",
    "Vendor",
]
