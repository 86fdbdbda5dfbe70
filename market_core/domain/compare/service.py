# market_core/domain/compare/service.py
from typing import Dict, Iterable, List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from market_core.core.errors import BusinessError
from market_core.db.repositories.branch_prices import fetch_branch_prices
from market_core.domain.cart.schemas import BranchPriceRecord
from .schemas import BranchPrice, CompareResult, ProductComparison

MIN_BRANCHES = 2
MAX_BRANCHES = 3


def compare_prices(records: Iterable[BranchPriceRecord]) -> CompareResult:
    """Side-by-side prices for products stocked by at least two branches."""
    products: Dict[UUID, ProductComparison] = {}
    for record in records:
        comparison = products.get(record.product_id)
        if comparison is None:
            comparison = products[record.product_id] = ProductComparison(
                product_id=record.product_id,
                product_name=record.product_name,
            )
        if any(p.branch_id == record.branch_id for p in comparison.prices):
            continue
        comparison.prices.append(BranchPrice(
            branch_id=record.branch_id,
            branch_name=record.branch_name,
            price=record.price,
        ))

    results: List[ProductComparison] = []
    for comparison in products.values():
        if len(comparison.prices) < 2:
            continue
        lowest = min(p.price for p in comparison.prices)
        for p in comparison.prices:
            p.is_cheapest = p.price == lowest
            p.difference = p.price - lowest
        results.append(comparison)

    results.sort(key=lambda c: ((c.product_name or "").lower(), c.product_id))
    return CompareResult(results=results, total_products=len(results))


async def compare_branches(
    db: AsyncSession,
    branch_ids: List[UUID],
    *,
    search: Optional[str] = None,
    category_id: Optional[UUID] = None,
) -> CompareResult:
    branch_ids = list(dict.fromkeys(branch_ids))
    if not MIN_BRANCHES <= len(branch_ids) <= MAX_BRANCHES:
        raise BusinessError("Select 2 or 3 stores to compare")

    records = await fetch_branch_prices(db, branch_ids, search=search, category_id=category_id)
    return compare_prices(records)
