# market_core/domain/catalog/schemas.py
from datetime import datetime
from pydantic import ConfigDict, field_validator
from uuid import UUID
from typing import List, Optional

from market_core.core.schemas import CamelModel
from .normalize import normalize


class ProductCandidate(CamelModel):
    name: str
    barcode: Optional[str] = None
    brand: Optional[str] = None
    size: Optional[str] = None
    unit: Optional[str] = None
    image_url: Optional[str] = None
    category_id: Optional[UUID] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        if not normalize(v):
            raise ValueError("name must contain letters or digits")
        return v

    @field_validator("barcode", "brand", "size", "unit", "image_url", "description", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        # spreadsheets hand us barcodes as numbers
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class ProductOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    normalized_name: str
    slug: Optional[str]
    brand: Optional[str]
    size: Optional[str]
    barcode: Optional[str]
    unit: Optional[str]
    category_id: Optional[UUID]
    image_url: Optional[str]
    description: Optional[str]
    created_at: Optional[datetime] = None


class DuplicateProduct(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    normalized_name: str
    barcode: Optional[str]
    image_url: Optional[str]


class DuplicateGroup(CamelModel):
    normalized_key: str
    count: int
    products: List[DuplicateProduct]


class DuplicateReport(CamelModel):
    total_products: int
    duplicate_groups: int
    total_duplicates: int
    groups: List[DuplicateGroup]


class MergeSummary(CamelModel):
    merged_groups: int = 0
    deleted_products: int = 0
    moved_listings: int = 0
    dropped_listings: int = 0
    remaining_products: int = 0
