# market_core/domain/listings/service.py
"""Vendor listing flows that sit on top of the identity resolver.

``import_listings`` is the bulk matcher: each row is resolved to a catalog
product and priced at every selected branch, with ``match_status`` recording
how the product was found. ``relink_listing`` is the manual correction path.
``get_price_history`` reads back the changes the importer recorded.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from market_core.core.config import settings
from market_core.core.errors import ConflictError, MarketError, NotFoundError
from market_core.db.models.price_history import PriceHistory
from market_core.db.models.store_products import MatchStatus, StoreProduct
from market_core.db.repositories.branch_prices import get_branch, get_listing, get_store_product
from market_core.db.repositories.price_history import get_listing_summary, list_price_changes
from market_core.db.repositories.products import SqlCatalog, get_product_by_id
from market_core.domain.catalog.resolver import MATCHED_BY_BARCODE, resolve
from market_core.domain.catalog.normalize import normalize
from market_core.domain.catalog.schemas import ProductCandidate
from .schemas import (
    ImportRequest,
    ImportRow,
    ImportSummary,
    ListingPriceSummary,
    PriceChange,
    PriceHistoryReport,
    RelinkRequest,
    RowError,
)

logger = logging.getLogger(__name__)

# first data row in a spreadsheet with a header line
FIRST_ROW_NUMBER = 2


def match_status_for(created: bool, matched_by: Optional[str]) -> MatchStatus:
    if created:
        return MatchStatus.NOT_LINKED
    if matched_by == MATCHED_BY_BARCODE:
        return MatchStatus.LINKED
    return MatchStatus.AUTO_MATCHED


def _parse_price(value) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not price.is_finite() or price <= 0:
        return None
    return price


def _row_problem(row: ImportRow) -> Optional[str]:
    if not isinstance(row.product_name, str) or not row.product_name.strip():
        return "Missing product_name"
    if not normalize(row.product_name):
        return "Product name has no letters or digits"
    if _parse_price(row.price) is None:
        return "Invalid price"
    return None


async def _upsert_price(
    db: AsyncSession,
    branch_id: UUID,
    product_id: UUID,
    price: Decimal,
    row: ImportRow,
    match_status: MatchStatus,
) -> bool:
    """Create or update one branch price. Returns True when a row was created."""
    existing = await get_store_product(db, branch_id, product_id)

    if existing is None:
        db.add(StoreProduct(
            branch_id=branch_id,
            product_id=product_id,
            price=price,
            bundle_info=row.bundle_info,
            match_status=match_status,
        ))
        return True

    old_price = Decimal(existing.price)
    existing.price = price
    existing.bundle_info = row.bundle_info
    existing.match_status = match_status
    if old_price != price:
        db.add(PriceHistory(
            store_product_id=existing.id,
            old_price=old_price,
            new_price=price,
        ))
    return False


async def import_listings(
    db: AsyncSession,
    data: ImportRequest,
) -> ImportSummary:
    branch_ids = list(dict.fromkeys(data.branch_ids))
    for branch_id in branch_ids:
        if await get_branch(db, branch_id) is None:
            raise NotFoundError(f"Branch {branch_id} not found")

    summary = ImportSummary(total=len(data.rows), branches_processed=len(branch_ids))
    catalog = SqlCatalog(db)

    for offset, row in enumerate(data.rows):
        row_number = offset + FIRST_ROW_NUMBER

        problem = _row_problem(row)
        if problem:
            summary.errors.append(RowError(row=row_number, error=problem))
            continue

        price = _parse_price(row.price)
        try:
            candidate = ProductCandidate(
                name=row.product_name,
                barcode=row.barcode,
                brand=row.brand,
                size=row.size,
                unit=row.unit,
            )
            result = await resolve(candidate, catalog)
            product_id = result.product.id
            status = match_status_for(result.created, result.matched_by)

            created_rows = 0
            for branch_id in branch_ids:
                if await _upsert_price(db, branch_id, product_id, price, row, status):
                    created_rows += 1
            await db.commit()
        except (MarketError, IntegrityError, ValidationError) as exc:
            await db.rollback()
            logger.warning("Import row %d failed: %s", row_number, exc)
            summary.errors.append(RowError(row=row_number, error=f"Processing failed: {exc}"))
            continue

        if result.created:
            summary.new_products += 1
        else:
            summary.auto_matched += 1
        summary.created += created_rows
        summary.updated += len(branch_ids) - created_rows

    logger.info(
        "Imported %d rows into %d branches: %d new products, %d errors",
        summary.total,
        summary.branches_processed,
        summary.new_products,
        len(summary.errors),
    )
    return summary


async def relink_listing(
    db: AsyncSession,
    branch_id: UUID,
    listing_id: UUID,
    data: RelinkRequest,
) -> StoreProduct:
    listing = await get_listing(db, branch_id, listing_id)
    if listing is None:
        raise NotFoundError("Store product not found")

    if await get_product_by_id(db, data.product_id) is None:
        raise NotFoundError("Target product not found")

    if listing.product_id != data.product_id:
        if await get_store_product(db, branch_id, data.product_id) is not None:
            raise ConflictError("This branch already has the target product linked")

    listing.product_id = data.product_id
    listing.match_status = MatchStatus.LINKED

    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError("This branch already has the target product linked") from exc

    await db.refresh(listing)
    return listing


async def get_price_history(
    db: AsyncSession,
    listing_id: UUID,
) -> PriceHistoryReport:
    summary = await get_listing_summary(db, listing_id)
    if summary is None:
        raise NotFoundError("Store product not found")

    changes = await list_price_changes(db, listing_id, limit=settings.PRICE_HISTORY_LIMIT)
    latest = changes[0] if changes else None

    return PriceHistoryReport(
        listing=ListingPriceSummary.model_validate(dict(summary)),
        history=[PriceChange.model_validate(change) for change in reversed(changes)],
        price_dropped=latest is not None and latest.new_price < latest.old_price,
    )
