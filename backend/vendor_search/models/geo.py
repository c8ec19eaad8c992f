# backend/vendor_search/models/geo.py
"""
Geo store models: cities and the areas (localities) inside them.

Both carry a point location as plain latitude/longitude columns. Proximity
lookups use a bounding-box prefilter in SQL followed by an exact haversine
check, which keeps the models portable between PostgreSQL and SQLite.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Index, String
from sqlalchemy.orm import relationship
import ulid

from ..database import Base


class City(Base):
    __tablename__ = "cities"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(100), nullable=False, index=True)
    state = Column(String(100), nullable=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    areas = relationship("Area", back_populates="city", lazy="noload")

    __table_args__ = (Index("ix_cities_lat_lng", "latitude", "longitude"),)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<City {self.name}, {self.state}>"


class Area(Base):
    __tablename__ = "areas"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(150), nullable=False)
    normalized_name = Column(String(150), nullable=False, index=True)
    city_id = Column(String(26), ForeignKey("cities.id"), nullable=False, index=True)
    # Denormalized for read paths that never join back to cities
    city_name = Column(String(100), nullable=False)
    pincode = Column(String(12), nullable=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    city = relationship("City", back_populates="areas", lazy="noload")

    __table_args__ = (
        Index("ix_areas_city_normalized", "city_id", "normalized_name"),
        Index("ix_areas_lat_lng", "latitude", "longitude"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Area {self.name} ({self.city_name})>"
