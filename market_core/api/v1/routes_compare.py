# market_core/api/v1/routes_compare.py
from fastapi import APIRouter, Depends, Query
from uuid import UUID
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession


from market_core.core.errors import BusinessError
from market_core.db.base import get_db
from market_core.domain.compare.schemas import CompareResult
from market_core.domain.compare.service import compare_branches


router = APIRouter(prefix="/api/v1/compare", tags=["compare"])


def _parse_ids(raw: str) -> List[UUID]:
    ids = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            ids.append(UUID(part))
        except ValueError:
            raise BusinessError(f"Invalid branch id: {part}") from None
    return ids


@router.get("", response_model=CompareResult)
async def compare_endpoint(
    branch_ids: str = Query("", alias="branchIds"),
    search: Optional[str] = None,
    category_id: Optional[UUID] = Query(None, alias="categoryId"),
    db: AsyncSession = Depends(get_db),
):
    return await compare_branches(
        db,
        _parse_ids(branch_ids),
        search=search or None,
        category_id=category_id,
    )
