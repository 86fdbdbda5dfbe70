# market_core/domain/catalog/service.py
import logging
from typing import Dict, Iterable, List
from uuid import UUID
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from market_core.core.errors import ConflictError, NotFoundError
from market_core.db.models.products import ENRICHMENT_FIELDS, Product
from market_core.db.repositories.branch_prices import get_store_product, list_listings_for_product
from market_core.db.repositories.price_history import move_price_history
from market_core.db.repositories.products import SqlCatalog, get_product_by_id, list_products
from .meta import MetaExtractor, default_extractor
from .normalize import normalize, slugify
from .resolver import ResolveResult, barcode_compatible, missing_field_changes, resolve
from .schemas import DuplicateGroup, DuplicateProduct, DuplicateReport, MergeSummary, ProductCandidate

logger = logging.getLogger(__name__)


async def create_or_resolve_product(
    db: AsyncSession,
    data: ProductCandidate,
) -> ResolveResult:
    result = await resolve(data, SqlCatalog(db))

    await db.commit()
    await db.refresh(result.product)
    return result


async def get_product(
    db: AsyncSession,
    product_id: UUID,
) -> Product:
    product = await get_product_by_id(db, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def _group_by_key(products: Iterable[Product]) -> Dict[str, List[Product]]:
    groups: Dict[str, List[Product]] = {}
    for product in products:
        groups.setdefault(normalize(product.name), []).append(product)
    return groups


def find_duplicate_groups(products: Iterable[Product]) -> DuplicateReport:
    """Group products that the current normalizer considers the same name.

    Rows only land in the same group when their stored ``normalized_name``
    was computed by an older normalizer or they differ by barcode, which is
    what an admin reviewing the catalog wants to see.
    """
    products = list(products)
    duplicate_groups = [
        DuplicateGroup(
            normalized_key=key,
            count=len(items),
            products=[DuplicateProduct.model_validate(p) for p in items],
        )
        for key, items in _group_by_key(products).items()
        if len(items) > 1
    ]
    return DuplicateReport(
        total_products=len(products),
        duplicate_groups=len(duplicate_groups),
        total_duplicates=sum(g.count - 1 for g in duplicate_groups),
        groups=duplicate_groups,
    )


async def preview_duplicates(db: AsyncSession) -> DuplicateReport:
    return find_duplicate_groups(await list_products(db))


def _completeness(product: Product) -> int:
    score = 4 if product.image_url else 0
    score += 2 if product.category_id else 0
    score += sum(1 for name in ("brand", "size", "barcode", "description") if getattr(product, name))
    return score


def pick_survivor(products: List[Product]) -> Product:
    """The most complete product of a group; earlier rows win ties."""
    survivor = products[0]
    for product in products[1:]:
        if _completeness(product) > _completeness(survivor):
            survivor = product
    return survivor


async def _absorb(
    db: AsyncSession,
    survivor: Product,
    duplicate: Product,
    summary: MergeSummary,
) -> None:
    for listing in await list_listings_for_product(db, duplicate.id):
        kept = await get_store_product(db, listing.branch_id, survivor.id)
        if kept is None:
            listing.product_id = survivor.id
            summary.moved_listings += 1
        else:
            # the branch already lists the survivor; its history moves over
            await move_price_history(db, listing.id, kept.id)
            await db.delete(listing)
            summary.dropped_listings += 1
    await db.flush()

    changes = missing_field_changes(survivor, {name: getattr(duplicate, name) for name in ENRICHMENT_FIELDS})
    if not survivor.slug and duplicate.slug:
        changes["slug"] = duplicate.slug

    # barcode is unique, so the duplicate has to be gone before it moves
    await db.delete(duplicate)
    await db.flush()
    for name, value in changes.items():
        setattr(survivor, name, value)
    await db.flush()


async def merge_duplicate_groups(
    db: AsyncSession,
    *,
    extractor: MetaExtractor = default_extractor,
) -> MergeSummary:
    """Fold every duplicate group into one surviving product.

    Listings move to the survivor; where a branch already lists it, the
    duplicate's listing is dropped and its price history kept. Survivors
    only gain values for empty fields. Members with a barcode that differs
    from the survivor's are separate products and stay.
    """
    products = await list_products(db)
    summary = MergeSummary()

    try:
        for key, items in _group_by_key(products).items():
            if len(items) < 2:
                continue

            survivor = pick_survivor(items)
            absorbed = 0
            for duplicate in items:
                if duplicate is survivor or not barcode_compatible(survivor, duplicate.barcode):
                    continue
                await _absorb(db, survivor, duplicate, summary)
                absorbed += 1
            if not absorbed:
                continue

            meta = extractor.extract(survivor.name)
            survivor.brand = survivor.brand or meta.brand
            survivor.size = survivor.size or meta.size
            survivor.slug = survivor.slug or slugify(survivor.name) or None
            survivor.normalized_name = key
            await db.flush()

            logger.info("Merged %d duplicates of %r into product %s", absorbed, key, survivor.id)
            summary.merged_groups += 1
            summary.deleted_products += absorbed

        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        logger.warning("Duplicate merge rolled back: %s", exc)
        raise ConflictError("Catalog changed while merging duplicates, try again") from exc

    summary.remaining_products = len(products) - summary.deleted_products
    return summary
