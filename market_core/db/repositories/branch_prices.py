
import logging
from typing import Iterable, List, Optional
from uuid import UUID
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import and_, select

from market_core.core.errors import StorageUnavailable
from market_core.db.models.products import Product
from market_core.db.models.store_products import StoreProduct
from market_core.db.models.vendors import Branch, Vendor
from market_core.domain.cart.schemas import BranchPriceRecord
from market_core.domain.catalog.normalize import normalize

logger = logging.getLogger(__name__)


def _visible_prices():
    """SELECT over store_products restricted to approved, active branches and vendors."""
    return (
        select(
            StoreProduct.id.label("store_product_id"),
            StoreProduct.product_id,
            StoreProduct.branch_id,
            Branch.vendor_id,
            StoreProduct.price,
            StoreProduct.in_stock,
            StoreProduct.match_status,
            Product.name.label("product_name"),
            Branch.name.label("branch_name"),
            Vendor.name.label("vendor_name"),
        )
        .join(Branch, and_(
            StoreProduct.branch_id == Branch.id,
            Branch.approved.is_(True),
            Branch.active.is_(True),
        ))
        .join(Vendor, and_(
            Branch.vendor_id == Vendor.id,
            Vendor.approved.is_(True),
            Vendor.active.is_(True),
        ))
        .join(Product, StoreProduct.product_id == Product.id)
    )


async def _fetch(db: AsyncSession, stmt) -> List[BranchPriceRecord]:
    try:
        result = await db.execute(stmt)
        rows = result.mappings().all()
    except SQLAlchemyError as exc:
        logger.exception("Branch price query failed")
        raise StorageUnavailable("Price data is temporarily unavailable") from exc
    return [BranchPriceRecord.model_validate(dict(row)) for row in rows]


async def fetch_prices(
    db: AsyncSession,
    product_ids: Iterable[UUID],
    *,
    in_stock_only: bool = True,
) -> List[BranchPriceRecord]:
    """All visible branch price rows for ``product_ids``, read in one statement."""
    ids = list(dict.fromkeys(product_ids))
    if not ids:
        return []

    stmt = _visible_prices().where(StoreProduct.product_id.in_(ids))
    if in_stock_only:
        stmt = stmt.where(StoreProduct.in_stock.is_(True))
    stmt = stmt.order_by(Branch.name, Product.name)
    return await _fetch(db, stmt)


async def fetch_branch_prices(
    db: AsyncSession,
    branch_ids: Iterable[UUID],
    *,
    search: Optional[str] = None,
    category_id: Optional[UUID] = None,
) -> List[BranchPriceRecord]:
    """In-stock visible prices of the given branches, for side-by-side comparison."""
    ids = list(dict.fromkeys(branch_ids))
    if not ids:
        return []

    stmt = _visible_prices().where(
        StoreProduct.branch_id.in_(ids),
        StoreProduct.in_stock.is_(True),
    )
    if search:
        stmt = stmt.where(Product.normalized_name.contains(normalize(search), autoescape=True))
    if category_id is not None:
        stmt = stmt.where(Product.category_id == category_id)
    stmt = stmt.order_by(Product.name, Branch.name)
    return await _fetch(db, stmt)


async def get_branch(db: AsyncSession, branch_id: UUID) -> Optional[Branch]:
    result = await db.execute(select(Branch).where(Branch.id == branch_id))
    return result.scalar_one_or_none()


async def get_store_product(
    db: AsyncSession,
    branch_id: UUID,
    product_id: UUID,
) -> Optional[StoreProduct]:
    result = await db.execute(
        select(StoreProduct).where(
            StoreProduct.branch_id == branch_id,
            StoreProduct.product_id == product_id,
        )
    )
    return result.scalar_one_or_none()


async def get_listing(
    db: AsyncSession,
    branch_id: UUID,
    listing_id: UUID,
) -> Optional[StoreProduct]:
    result = await db.execute(
        select(StoreProduct).where(
            StoreProduct.id == listing_id,
            StoreProduct.branch_id == branch_id,
        )
    )
    return result.scalar_one_or_none()


async def list_listings_for_product(
    db: AsyncSession,
    product_id: UUID,
) -> List[StoreProduct]:
    result = await db.execute(
        select(StoreProduct).where(StoreProduct.product_id == product_id)
    )
    return list(result.scalars().all())
