# market_core/domain/compare/schemas.py
from decimal import Decimal
from pydantic import Field, field_serializer
from uuid import UUID
from typing import List, Optional

from market_core.core.schemas import CamelModel
from market_core.domain.cart.schemas import to_cents


class BranchPrice(CamelModel):
    branch_id: UUID
    branch_name: Optional[str] = None
    price: Decimal
    is_cheapest: bool = False
    difference: Decimal = Decimal("0")

    @field_serializer("price", "difference")
    def _money(self, v: Decimal) -> str:
        return str(to_cents(v))


class ProductComparison(CamelModel):
    product_id: UUID
    product_name: Optional[str] = None
    prices: List[BranchPrice] = Field(default_factory=list)


class CompareResult(CamelModel):
    results: List[ProductComparison] = Field(default_factory=list)
    total_products: int = 0
