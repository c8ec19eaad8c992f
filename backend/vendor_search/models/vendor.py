# backend/vendor_search/models/vendor.py
"""
Vendor read model.

Vendors are written by the registration/admin flows; the search core only
reads active, approved rows. `attributes` holds service-specific key/values
whose schema is validated at write time and treated as opaque here.
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Index, Integer, String
import ulid

from ..core.constants import APPROVAL_PENDING
from ..database import Base


class Vendor(Base):
    __tablename__ = "vendors"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(150), nullable=False)
    business_name = Column(String(200), nullable=True)
    service_type = Column(String(100), nullable=False, index=True)

    city = Column(String(100), nullable=True, index=True)
    area = Column(String(150), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    price_min = Column(Float, nullable=True)
    price_max = Column(Float, nullable=True)

    rating = Column(Float, nullable=False, default=0.0)
    review_count = Column(Integer, nullable=False, default=0)
    verified = Column(Boolean, nullable=False, default=False)
    is_featured = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    approval_status = Column(String(20), nullable=False, default=APPROVAL_PENDING)

    attributes = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_vendors_active_city", "is_active", "approval_status", "city"),
        Index("ix_vendors_lat_lng", "latitude", "longitude"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Vendor {self.name} [{self.service_type}] {self.area}, {self.city}>"
