# market_core/db/models/products.py
from sqlalchemy import Column, DateTime, Index, String, Text, Uuid, text
from sqlalchemy.sql import func
import uuid

from market_core.db.base import Base


class Product(Base):
    __tablename__ = "products"

    """One canonical real-world catalog item shared by every vendor.

    ``name`` keeps the spelling of the first submission. ``normalized_name``
    and ``slug`` are the match keys used by the identity resolver; the
    remaining descriptive columns are enrichment that later submissions may
    fill in but never overwrite.
    """

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name = Column(String, nullable=False)
    normalized_name = Column(String, nullable=False)
    slug = Column(String, nullable=True, index=True)

    brand = Column(String, nullable=True)
    size = Column(String, nullable=True)
    barcode = Column(String, nullable=True, unique=True)
    unit = Column(String, nullable=True)  # e.g. "kg", "litre", "pack"
    category_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    image_url = Column(Text, nullable=True)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_products_normalized_name", "normalized_name"),
        # Same normalized name is allowed only when barcodes tell the rows apart.
        Index(
            "uq_products_normalized_name_no_barcode",
            "normalized_name",
            unique=True,
            postgresql_where=text("barcode IS NULL"),
            sqlite_where=text("barcode IS NULL"),
        ),
    )


ENRICHMENT_FIELDS = (
    "brand",
    "size",
    "barcode",
    "unit",
    "category_id",
    "image_url",
    "description",
)
