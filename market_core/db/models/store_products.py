# market_core/db/models/store_products.py
import enum
from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Numeric, Text, UniqueConstraint, Uuid
from sqlalchemy.sql import func
import uuid

from market_core.db.base import Base


class MatchStatus(str, enum.Enum):
    LINKED = "linked"
    AUTO_MATCHED = "auto_matched"
    NOT_LINKED = "not_linked"


class StoreProduct(Base):
    __tablename__ = "store_products"

    """A branch's price for one catalog product.

    ``match_status`` records how confident we are that the vendor's listing
    really is ``product_id``: barcode hits and manual confirmations are
    ``linked``, name heuristics are ``auto_matched`` and listings that created
    a fresh product are ``not_linked`` until someone reviews them.
    """

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    branch_id = Column(Uuid(as_uuid=True), ForeignKey("branches.id"), nullable=False, index=True)
    product_id = Column(Uuid(as_uuid=True), ForeignKey("products.id"), nullable=False, index=True)

    price = Column(Numeric(10, 2), nullable=False)
    in_stock = Column(Boolean, nullable=False, default=True)
    match_status = Column(
        Enum(MatchStatus, name="match_status_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=MatchStatus.AUTO_MATCHED,
    )
    bundle_info = Column(Text, nullable=True)

    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("branch_id", "product_id", name="uq_store_products_branch_product"),
    )
