from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional
from uuid import UUID
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import func, select

from market_core.core.errors import CatalogConflict
from market_core.db.models.products import Product


async def get_product_by_id(
    db: AsyncSession,
    product_id: UUID
) -> Optional[Product]:
    result = await db.execute(
        select(Product).where(Product.id == product_id)
    )
    return result.scalar_one_or_none()


async def list_products(db: AsyncSession) -> List[Product]:
    result = await db.execute(
        select(Product).order_by(Product.created_at, Product.name)
    )
    return list(result.scalars().all())


class SqlCatalog:
    """CatalogLookup backed by the ``products`` table.

    Writes are flushed, not committed; the caller owns the transaction. A
    uniqueness violation rolls the session back and surfaces as
    CatalogConflict so the resolver can retry the lookup.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def claim(self, normalized_name: str) -> AsyncIterator[None]:
        # Postgres: transaction-scoped advisory lock, released by the caller's
        # commit or rollback. SQLite only runs behind one shared connection.
        if self.db.get_bind().dialect.name == "postgresql":
            await self.db.execute(
                select(func.pg_advisory_xact_lock(func.hashtextextended(normalized_name, 0)))
            )
        yield

    async def find_by_barcode(self, barcode: str) -> Optional[Product]:
        result = await self.db.execute(
            select(Product).where(Product.barcode == barcode).limit(1)
        )
        return result.scalar_one_or_none()

    async def find_by_normalized_name(self, normalized_name: str) -> List[Product]:
        result = await self.db.execute(
            select(Product)
            .where(Product.normalized_name == normalized_name)
            .order_by(Product.created_at)
        )
        return list(result.scalars().all())

    async def find_by_slug(self, slug: str) -> List[Product]:
        result = await self.db.execute(
            select(Product)
            .where(Product.slug == slug)
            .order_by(Product.created_at)
        )
        return list(result.scalars().all())

    async def insert(self, fields: Dict[str, Any]) -> Product:
        product = Product(**fields)
        self.db.add(product)
        await self._flush(product.name)
        return product

    async def update(self, product: Product, changes: Dict[str, Any]) -> Product:
        for name, value in changes.items():
            setattr(product, name, value)
        await self._flush(product.name)
        return product

    async def _flush(self, name: str) -> None:
        try:
            await self.db.flush()
        except IntegrityError as exc:
            await self.db.rollback()
            raise CatalogConflict(f"Product {name!r} conflicts with an existing row") from exc
