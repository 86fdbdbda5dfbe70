# market_core/api/v1/routes_listings.py
from fastapi import APIRouter, Depends
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession


from market_core.db.base import get_db
from market_core.domain.listings.schemas import (
    ImportRequest,
    ImportSummary,
    ListingOut,
    PriceHistoryReport,
    RelinkRequest,
)
from market_core.domain.listings.service import get_price_history, import_listings, relink_listing


router = APIRouter(prefix="/api/v1", tags=["listings"])


@router.post("/listings/import", response_model=ImportSummary)
async def import_listings_endpoint(
    payload: ImportRequest,
    db: AsyncSession = Depends(get_db),
):
    return await import_listings(db, payload)

@router.patch("/branches/{branch_id}/listings/{listing_id}/link", response_model=ListingOut)
async def relink_listing_endpoint(
    branch_id: UUID,
    listing_id: UUID,
    payload: RelinkRequest,
    db: AsyncSession = Depends(get_db),
):
    # ownership of the branch is checked by the gateway in front of us
    return await relink_listing(db, branch_id, listing_id, payload)

@router.get("/listings/{listing_id}/price-history", response_model=PriceHistoryReport)
async def price_history_endpoint(
    listing_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    return await get_price_history(db, listing_id)
