# market_core/db/models/price_history.py
from sqlalchemy import Column, DateTime, ForeignKey, Numeric, Uuid
from sqlalchemy.sql import func
import uuid

from market_core.db.base import Base


class PriceHistory(Base):
    __tablename__ = "price_history"

    """Append-only log of branch price changes made through bulk import."""

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    store_product_id = Column(Uuid(as_uuid=True), ForeignKey("store_products.id"), nullable=False, index=True)

    old_price = Column(Numeric(10, 2), nullable=False)
    new_price = Column(Numeric(10, 2), nullable=False)

    changed_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
