# market_core/domain/cart/schemas.py
from decimal import Decimal, ROUND_HALF_UP
from pydantic import Field, field_serializer, field_validator
from uuid import UUID
from typing import List, Optional

from market_core.core.config import settings
from market_core.core.schemas import CamelModel
from market_core.db.models.store_products import MatchStatus

CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> Decimal:
    """Round a money amount for display. Calculations never call this."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


class BranchPriceRecord(CamelModel):
    """One visible price row as returned by the branch price index."""

    product_id: UUID
    branch_id: UUID
    vendor_id: UUID
    price: Decimal = Field(ge=0)
    in_stock: bool = True
    match_status: Optional[MatchStatus] = None
    store_product_id: Optional[UUID] = None
    product_name: Optional[str] = None
    branch_name: Optional[str] = None
    vendor_name: Optional[str] = None


class CartItem(CamelModel):
    product_id: UUID
    quantity: int = Field(default=1, ge=1)


class CartRequest(CamelModel):
    items: List[CartItem] = Field(default_factory=list)

    @field_validator("items")
    @classmethod
    def _bounded(cls, v: List[CartItem]) -> List[CartItem]:
        if len(v) > settings.MAX_CART_ITEMS:
            raise ValueError(f"Cart cannot hold more than {settings.MAX_CART_ITEMS} items")
        return v


class CartLine(CamelModel):
    product_id: UUID
    product_name: Optional[str] = None
    price: Decimal
    quantity: int
    line_total: Decimal

    @field_serializer("price", "line_total")
    def _money(self, v: Decimal) -> str:
        return str(to_cents(v))


class BranchCartResult(CamelModel):
    branch_id: UUID
    vendor_id: UUID
    branch_name: Optional[str] = None
    vendor_name: Optional[str] = None
    items: List[CartLine] = Field(default_factory=list)
    total: Decimal = Decimal("0")
    item_count: int = 0
    total_items_requested: int = 0
    has_all_items: bool = False

    @field_serializer("total")
    def _money(self, v: Decimal) -> str:
        return str(to_cents(v))


class CartCalculation(CamelModel):
    branches: List[BranchCartResult] = Field(default_factory=list, serialization_alias="stores")
    cheapest_branch_id: Optional[UUID] = Field(default=None, serialization_alias="cheapestStoreId")
    cheapest_total: Decimal = Decimal("0")
    max_savings: Decimal = Decimal("0")

    @field_serializer("cheapest_total", "max_savings")
    def _money(self, v: Decimal) -> str:
        return str(to_cents(v))
