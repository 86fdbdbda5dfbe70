# market_core/domain/listings/schemas.py
from datetime import datetime
from decimal import Decimal
from pydantic import ConfigDict, Field, field_serializer, field_validator
from uuid import UUID
from typing import Any, List, Optional

from market_core.core.config import settings
from market_core.core.schemas import CamelModel
from market_core.domain.cart.schemas import to_cents
from market_core.db.models.store_products import MatchStatus


class ImportRow(CamelModel):
    # Rows are checked one by one in the service so a bad row is reported
    # instead of failing the whole upload.
    product_name: Optional[Any] = None
    price: Optional[Any] = None
    barcode: Optional[str] = None
    brand: Optional[str] = None
    size: Optional[str] = None
    unit: Optional[str] = None
    bundle_info: Optional[str] = None

    @field_validator("barcode", mode="before")
    @classmethod
    def _barcode_as_text(cls, v):
        return None if v is None else str(v)


class ImportRequest(CamelModel):
    branch_ids: List[UUID] = Field(min_length=1)
    rows: List[ImportRow]

    @field_validator("rows")
    @classmethod
    def _row_limits(cls, v: List[ImportRow]) -> List[ImportRow]:
        if not v:
            raise ValueError("No rows to import")
        if len(v) > settings.BULK_IMPORT_MAX_ROWS:
            raise ValueError(f"Maximum {settings.BULK_IMPORT_MAX_ROWS} rows per upload")
        return v


class RowError(CamelModel):
    row: int
    error: str


class ImportSummary(CamelModel):
    total: int = 0
    created: int = 0
    updated: int = 0
    auto_matched: int = 0
    new_products: int = 0
    branches_processed: int = 0
    errors: List[RowError] = Field(default_factory=list)


class RelinkRequest(CamelModel):
    product_id: UUID


class ListingOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    branch_id: UUID
    product_id: UUID
    price: Decimal
    in_stock: bool
    match_status: MatchStatus
    bundle_info: Optional[str]


class PriceChange(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    old_price: Decimal
    new_price: Decimal
    changed_at: datetime

    @field_serializer("old_price", "new_price")
    def _money(self, v: Decimal) -> str:
        return str(to_cents(v))


class ListingPriceSummary(CamelModel):
    listing_id: UUID
    product_id: UUID
    product_name: str
    branch_id: UUID
    branch_name: str
    current_price: Decimal

    @field_serializer("current_price")
    def _money(self, v: Decimal) -> str:
        return str(to_cents(v))


class PriceHistoryReport(CamelModel):
    listing: ListingPriceSummary
    # oldest first, ready for charting
    history: List[PriceChange] = Field(default_factory=list)
    price_dropped: bool = False
