# market_core/api/v1/routes_products.py
from fastapi import APIRouter, Depends, Response, status
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession


from market_core.db.base import get_db
from market_core.domain.catalog.schemas import DuplicateReport, MergeSummary, ProductCandidate, ProductOut
from market_core.domain.catalog.service import (
    create_or_resolve_product,
    get_product,
    merge_duplicate_groups,
    preview_duplicates,
)


router = APIRouter(prefix="/api/v1/products", tags=["products"])


@router.post("", response_model=ProductOut)
async def create_product_endpoint(
    payload: ProductCandidate,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    result = await create_or_resolve_product(db, payload)
    response.status_code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
    return result.product

@router.get("/duplicates", response_model=DuplicateReport)
async def duplicates_endpoint(
    db: AsyncSession = Depends(get_db),
):
    return await preview_duplicates(db)

@router.post("/duplicates/merge", response_model=MergeSummary)
async def merge_duplicates_endpoint(
    db: AsyncSession = Depends(get_db),
):
    # admin only; enforced by the gateway like branch ownership
    return await merge_duplicate_groups(db)

@router.get("/{product_id}", response_model=ProductOut)
async def get_product_endpoint(
    product_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    return await get_product(db, product_id)
