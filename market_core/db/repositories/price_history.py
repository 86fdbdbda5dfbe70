
from typing import List, Optional
from uuid import UUID
from sqlalchemy import RowMapping
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select, update

from market_core.db.models.price_history import PriceHistory
from market_core.db.models.products import Product
from market_core.db.models.store_products import StoreProduct
from market_core.db.models.vendors import Branch


async def get_listing_summary(
    db: AsyncSession,
    listing_id: UUID,
) -> Optional[RowMapping]:
    result = await db.execute(
        select(
            StoreProduct.id.label("listing_id"),
            StoreProduct.product_id,
            Product.name.label("product_name"),
            StoreProduct.branch_id,
            Branch.name.label("branch_name"),
            StoreProduct.price.label("current_price"),
        )
        .join(Product, StoreProduct.product_id == Product.id)
        .join(Branch, StoreProduct.branch_id == Branch.id)
        .where(StoreProduct.id == listing_id)
    )
    return result.mappings().one_or_none()


async def list_price_changes(
    db: AsyncSession,
    store_product_id: UUID,
    *,
    limit: int,
) -> List[PriceHistory]:
    """Newest changes first."""
    result = await db.execute(
        select(PriceHistory)
        .where(PriceHistory.store_product_id == store_product_id)
        .order_by(PriceHistory.changed_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def move_price_history(
    db: AsyncSession,
    from_listing_id: UUID,
    to_listing_id: UUID,
) -> None:
    await db.execute(
        update(PriceHistory)
        .where(PriceHistory.store_product_id == from_listing_id)
        .values(store_product_id=to_listing_id)
    )
