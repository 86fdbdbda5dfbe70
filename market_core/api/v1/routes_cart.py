# market_core/api/v1/routes_cart.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession


from market_core.db.base import get_db
from market_core.domain.cart.schemas import CartCalculation, CartRequest
from market_core.domain.cart.service import calculate_cart


router = APIRouter(prefix="/api/v1/cart", tags=["cart"])


@router.post("/calculate", response_model=CartCalculation)
async def calculate_cart_endpoint(
    payload: CartRequest,
    db: AsyncSession = Depends(get_db),
):
    return await calculate_cart(db, payload)
