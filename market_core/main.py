from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from market_core.core.config import settings
from market_core.core.errors import MarketError
from market_core.core.logging import configure_logging
from market_core.api.v1.routes_cart import router as cart_router
from market_core.api.v1.routes_compare import router as compare_router
from market_core.api.v1.routes_listings import router as listings_router
from market_core.api.v1.routes_products import router as products_router
import market_core.db.models  # registers models on Base

logger = configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("%s starting", settings.APP_NAME)
    yield
    logger.info("%s stopped", settings.APP_NAME)


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.include_router(products_router)
app.include_router(cart_router)
app.include_router(listings_router)
app.include_router(compare_router)


@app.exception_handler(MarketError)
async def market_error_handler(request: Request, exc: MarketError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

@app.get("/health")
async def health():
    return {"status": "ok"}
