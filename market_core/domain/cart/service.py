# market_core/domain/cart/service.py
import logging
import time
from sqlalchemy.ext.asyncio import AsyncSession

from market_core.db.repositories.branch_prices import fetch_prices
from .optimizer import merge_cart, optimize
from .schemas import CartCalculation, CartRequest

logger = logging.getLogger(__name__)


async def calculate_cart(
    db: AsyncSession,
    data: CartRequest,
) -> CartCalculation:
    started = time.perf_counter()

    product_ids = list(merge_cart(data.items))
    # One read, then compute on that snapshot: a price update landing midway
    # cannot mix old and new prices for a branch.
    records = await fetch_prices(db, product_ids)
    calculation = optimize(data.items, records)

    logger.info(
        "Cart of %d products priced at %d branches in %.1f ms",
        len(product_ids),
        len(calculation.branches),
        (time.perf_counter() - started) * 1000,
    )
    return calculation
