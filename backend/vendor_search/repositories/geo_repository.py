# backend/vendor_search/repositories/geo_repository.py
"""
Geo store: read-only lookups over cities and areas.

Proximity queries use a lat/lng bounding box in SQL and an exact haversine
check in Python, so they behave identically on PostgreSQL and SQLite.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException
from ..models.geo import Area, City
from ..services.search.geo import GeoPoint, bounding_box, haversine_km
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9 ]+")
_SPACES = re.compile(r"\s+")


def normalize_area_name(text: Optional[str]) -> str:
    """Lowercase, drop everything outside [a-z0-9 ], collapse whitespace."""
    if not text:
        return ""
    lowered = _NON_ALNUM.sub(" ", text.lower())
    return _SPACES.sub(" ", lowered).strip()


def within_box(query: Query, model: type, center: GeoPoint, radius_km: float) -> Query:
    """Bounding-box prefilter on `model`; a box across the antimeridian ORs two ranges."""
    box = bounding_box(center, radius_km)
    return query.filter(
        model.latitude.between(box.min_lat, box.max_lat),  # type: ignore[attr-defined]
        or_(
            *(
                model.longitude.between(low, high)  # type: ignore[attr-defined]
                for low, high in box.longitude_ranges()
            )
        ),
    )


def _nearest(rows: List, center: GeoPoint, max_km: float) -> Optional[Tuple[object, float]]:
    best: Optional[Tuple[object, float]] = None
    for row in rows:
        point = GeoPoint.from_row(row)
        if point is None:
            continue
        distance = haversine_km(center, point)
        if distance > max_km:
            continue
        # Ties resolve on id so repeated lookups return the same row
        if best is None or (distance, str(row.id)) < (best[1], str(best[0].id)):  # type: ignore[attr-defined]
            best = (row, distance)
    return best


class CityRepository(BaseRepository[City]):
    """Repository for City lookups."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, City)

    def find_by_name(self, name: str) -> Optional[City]:
        """Case-insensitive exact name match over active cities."""
        cleaned = (name or "").strip().lower()
        if not cleaned:
            return None
        try:
            return (
                self.active().filter(func.lower(City.name) == cleaned).order_by(City.id).first()
            )
        except SQLAlchemyError as e:
            self.logger.error("Error finding city by name %r: %s", name, e)
            raise RepositoryException(f"Failed to find city: {e}") from e

    def find_near(self, point: GeoPoint, max_km: float) -> Optional[Tuple[City, float]]:
        """Nearest active city within `max_km`, with its distance."""
        try:
            rows = within_box(self.active(), City, point, max_km).all()
        except SQLAlchemyError as e:
            self.logger.error("Error finding city near %s: %s", point, e)
            raise RepositoryException(f"Failed to find nearby city: {e}") from e
        return _nearest(rows, point, max_km)  # type: ignore[return-value]


class AreaRepository(BaseRepository[Area]):
    """Repository for Area lookups."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, Area)

    def find_by_city_and_name(self, city_id: str, name: str) -> Optional[Area]:
        """
        Match an area name inside one city.

        Order: case-insensitive exact name, then normalized-name match, then
        substring match on the normalized name (shortest name wins).
        """
        raw = (name or "").strip().lower()
        normalized = normalize_area_name(name)
        if not raw or not normalized:
            return None

        try:
            base = self.db.query(Area).filter(Area.city_id == city_id)

            exact = base.filter(func.lower(Area.name) == raw).order_by(Area.id).first()
            if exact is not None:
                return exact

            by_normalized = (
                base.filter(Area.normalized_name == normalized).order_by(Area.id).first()
            )
            if by_normalized is not None:
                return by_normalized

            candidates = base.filter(Area.normalized_name.contains(normalized)).all()
        except SQLAlchemyError as e:
            self.logger.error("Error finding area %r in city %s: %s", name, city_id, e)
            raise RepositoryException(f"Failed to find area: {e}") from e

        if not candidates:
            return None
        return min(candidates, key=lambda a: (len(a.normalized_name), str(a.id)))

    def find_near(
        self, point: GeoPoint, max_km: float, city_id: Optional[str] = None
    ) -> Optional[Tuple[Area, float]]:
        """Nearest area within `max_km` (optionally restricted to one city)."""
        try:
            query = self.db.query(Area)
            if city_id:
                query = query.filter(Area.city_id == city_id)
            rows = within_box(query, Area, point, max_km).all()
        except SQLAlchemyError as e:
            self.logger.error("Error finding area near %s: %s", point, e)
            raise RepositoryException(f"Failed to find nearby area: {e}") from e
        return _nearest(rows, point, max_km)  # type: ignore[return-value]
