# market_core/db/models/vendors.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Uuid
from sqlalchemy.sql import func
import uuid

from market_core.db.base import Base


class Vendor(Base):
    __tablename__ = "vendors"

    """A retailer selling through the marketplace.

    Vendors are onboarded and approved elsewhere; this service only reads
    ``approved``/``active`` to decide whether their prices are visible.
    """

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=True, unique=True)

    approved = Column(Boolean, nullable=False, default=False)
    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Branch(Base):
    __tablename__ = "branches"

    """A physical or online location of a vendor, carrying its own prices."""

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    vendor_id = Column(Uuid(as_uuid=True), ForeignKey("vendors.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=True, unique=True)

    approved = Column(Boolean, nullable=False, default=False)
    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
