# backend/vendor_search/services/search/geo.py
"""
Geospatial helpers for vendor search.

All distances are great-circle distances in kilometres, computed with the
haversine formula and rounded to 2 decimals.
"""
from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Optional, Tuple

from vendor_search.core.constants import EARTH_RADIUS_KM, KM_PER_DEGREE_LAT


@dataclass(frozen=True)
class GeoPoint:
    """A WGS84 point. Ranges are validated on construction."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not is_valid_coordinate(self.latitude, self.longitude):
            raise ValueError(
                f"Invalid coordinates: latitude={self.latitude}, longitude={self.longitude}"
            )

    @classmethod
    def from_row(cls, row: object) -> Optional["GeoPoint"]:
        """Build from any object exposing latitude/longitude; None if missing."""
        lat = getattr(row, "latitude", None)
        lng = getattr(row, "longitude", None)
        if lat is None or lng is None:
            return None
        return cls(latitude=float(lat), longitude=float(lng))

    def as_lng_lat(self) -> Tuple[float, float]:
        """GeoJSON ordering: (lng, lat)."""
        return (self.longitude, self.latitude)


@dataclass(frozen=True)
class BoundingBox:
    """
    Lat/lng envelope. Longitudes are not wrapped, so a box that crosses the
    antimeridian has min_lng < -180 or max_lng > 180; use longitude_ranges()
    to get the in-range intervals for a query.
    """

    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def longitude_ranges(self) -> Tuple[Tuple[float, float], ...]:
        if self.max_lng - self.min_lng >= 360.0:
            return ((-180.0, 180.0),)
        if self.min_lng < -180.0:
            return ((self.min_lng + 360.0, 180.0), (-180.0, self.max_lng))
        if self.max_lng > 180.0:
            return ((self.min_lng, 180.0), (-180.0, self.max_lng - 360.0))
        return ((self.min_lng, self.max_lng),)


def is_valid_coordinate(latitude: Optional[float], longitude: Optional[float]) -> bool:
    if latitude is None or longitude is None:
        return False
    try:
        lat = float(latitude)
        lng = float(longitude)
    except (TypeError, ValueError):
        return False
    if math.isnan(lat) or math.isnan(lng):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """d = 2R·asin(√(sin²(Δlat/2) + cos(lat1)·cos(lat2)·sin²(Δlon/2)))"""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    d_lat = lat2 - lat1
    d_lng = math.radians(b.longitude - a.longitude)

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    # Clamp float drift so asin never sees h > 1
    h = min(1.0, max(0.0, h))
    return round(2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h)), 2)


def bounding_box(center: GeoPoint, radius_km: float) -> BoundingBox:
    """
    Lat/lng envelope that contains every point within `radius_km` of `center`.

    Used as a cheap SQL prefilter; callers must still apply haversine_km.
    """
    lat_delta = radius_km / KM_PER_DEGREE_LAT
    cos_lat = math.cos(math.radians(center.latitude))
    if cos_lat < 1e-6:
        lng_delta = 180.0
    else:
        lng_delta = min(180.0, radius_km / (KM_PER_DEGREE_LAT * cos_lat))

    return BoundingBox(
        min_lat=max(-90.0, center.latitude - lat_delta),
        max_lat=min(90.0, center.latitude + lat_delta),
        min_lng=center.longitude - lng_delta,
        max_lng=center.longitude + lng_delta,
    )


def format_distance(distance_km: float) -> str:
    if distance_km < 1:
        return f"{round(distance_km * 1000)}m"
    return f"{distance_km:.1f}km"
