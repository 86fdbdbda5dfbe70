import asyncio
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import uuid4

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.pool import StaticPool

from market_core.core.errors import CatalogConflict
from market_core.db.base import Base, build_engine, get_db
from market_core.db.models import Branch, MatchStatus, Product, StoreProduct, Vendor
from market_core.main import app


class FakeCatalog:
    """In-memory CatalogLookup with the same uniqueness rules as the products table.

    Every method yields to the event loop first so concurrent resolutions
    interleave the way they would against a real database. ``claim`` holds a
    per-name lock the way the advisory lock does in Postgres.
    """

    def __init__(self, products: Optional[List[Product]] = None):
        self.products: List[Product] = list(products or [])
        self.inserts = 0
        self.updates = 0
        self._claims: Dict[str, asyncio.Lock] = {}

    @asynccontextmanager
    async def claim(self, normalized_name: str):
        lock = self._claims.setdefault(normalized_name, asyncio.Lock())
        async with lock:
            await asyncio.sleep(0)
            yield

    async def find_by_barcode(self, barcode: str) -> Optional[Product]:
        await asyncio.sleep(0)
        return next((p for p in self.products if p.barcode == barcode), None)

    async def find_by_normalized_name(self, normalized_name: str) -> List[Product]:
        await asyncio.sleep(0)
        return [p for p in self.products if p.normalized_name == normalized_name]

    async def find_by_slug(self, slug: str) -> List[Product]:
        await asyncio.sleep(0)
        return [p for p in self.products if p.slug == slug]

    async def insert(self, fields: Dict[str, Any]) -> Product:
        await asyncio.sleep(0)
        barcode = fields.get("barcode")
        for p in self.products:
            if barcode is not None and p.barcode == barcode:
                raise CatalogConflict("barcode taken")
            if barcode is None and p.barcode is None and p.normalized_name == fields["normalized_name"]:
                raise CatalogConflict("normalized name taken")
        product = Product(id=uuid4(), **fields)
        self.products.append(product)
        self.inserts += 1
        return product

    async def update(self, product: Product, changes: Dict[str, Any]) -> Product:
        await asyncio.sleep(0)
        for name, value in changes.items():
            setattr(product, name, value)
        self.updates += 1
        return product


def make_product(name: str, normalized_name: str, **fields) -> Product:
    return Product(id=uuid4(), name=name, normalized_name=normalized_name, **fields)


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
async def engine():
    engine = build_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def add_branch(
    db,
    name: str,
    *,
    approved: bool = True,
    active: bool = True,
    vendor_approved: bool = True,
    vendor_active: bool = True,
) -> Branch:
    vendor = Vendor(id=uuid4(), name=f"{name} Holdings", approved=vendor_approved, active=vendor_active)
    branch = Branch(id=uuid4(), vendor_id=vendor.id, name=name, approved=approved, active=active)
    db.add_all([vendor, branch])
    await db.commit()
    return branch


async def add_product(db, name: str, **fields) -> Product:
    from market_core.domain.catalog.normalize import normalize, slugify

    product = Product(id=uuid4(), name=name, normalized_name=normalize(name), slug=slugify(name), **fields)
    db.add(product)
    await db.commit()
    return product


async def add_price(
    db,
    branch: Branch,
    product: Product,
    price: str,
    *,
    in_stock: bool = True,
    match_status: MatchStatus = MatchStatus.LINKED,
) -> StoreProduct:
    listing = StoreProduct(
        id=uuid4(),
        branch_id=branch.id,
        product_id=product.id,
        price=Decimal(price),
        in_stock=in_stock,
        match_status=match_status,
    )
    db.add(listing)
    await db.commit()
    return listing
