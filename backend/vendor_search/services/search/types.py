# backend/vendor_search/services/search/types.py
"""
Value objects shared by the vendor search pipeline.

Everything here is request-scoped and immutable: constructed per search,
discarded once the response is assembled.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from vendor_search.services.search.geo import GeoPoint

if TYPE_CHECKING:
    from vendor_search.models import Area, City, Vendor


class LocationSource(str, Enum):
    DIRECT_COORDINATES = "direct-coordinates"
    AREA_ID = "area-id"
    CITY_AREA_NAME = "city-area-name"
    CITY_ONLY = "city-only"


class MatchTier(str, Enum):
    EXACT_AREA = "exact_area"
    NEARBY = "nearby"
    SAME_CITY = "same_city"
    ADJACENT_CITY = "adjacent_city"

    @property
    def priority(self) -> int:
        return _TIER_PRIORITY[self]


_TIER_PRIORITY = {
    MatchTier.EXACT_AREA: 1,
    MatchTier.NEARBY: 2,
    MatchTier.SAME_CITY: 3,
    MatchTier.ADJACENT_CITY: 4,
}


class SortMode(str, Enum):
    RELEVANCE = "relevance"
    RATING = "rating"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"
    DISTANCE = "distance"


@dataclass(frozen=True)
class AreaRef:
    id: str
    name: str
    normalized_name: str
    city_id: str
    city_name: str
    location: GeoPoint

    @classmethod
    def from_model(cls, area: "Area") -> "AreaRef":
        return cls(
            id=str(area.id),
            name=str(area.name),
            normalized_name=str(area.normalized_name),
            city_id=str(area.city_id),
            city_name=str(area.city_name),
            location=GeoPoint(float(area.latitude), float(area.longitude)),
        )


@dataclass(frozen=True)
class CityRef:
    id: str
    name: str
    state: Optional[str]
    location: GeoPoint

    @classmethod
    def from_model(cls, city: "City") -> "CityRef":
        return cls(
            id=str(city.id),
            name=str(city.name),
            state=city.state,
            location=GeoPoint(float(city.latitude), float(city.longitude)),
        )


@dataclass(frozen=True)
class ResolvedLocation:
    """Canonical coordinate plus the area/city identity it was resolved from."""

    coordinates: GeoPoint
    source: LocationSource
    area: Optional[AreaRef] = None
    city: Optional[CityRef] = None
    # True when a named area could not be matched and the city centroid was used
    fallback: bool = False

    @property
    def area_name(self) -> Optional[str]:
        return self.area.name if self.area else None

    @property
    def city_name(self) -> Optional[str]:
        if self.city:
            return self.city.name
        if self.area:
            return self.area.city_name
        return None


@dataclass(frozen=True)
class BudgetRange:
    min: Optional[float] = None
    max: Optional[float] = None

    @property
    def is_set(self) -> bool:
        return self.min is not None or self.max is not None

    def relaxed(self, flexibility_percent: float) -> "BudgetRange":
        """Widen to [min × (1 - f), max × (1 + f)]."""
        factor = flexibility_percent / 100.0
        return BudgetRange(
            min=self.min * (1 - factor) if self.min is not None else None,
            max=self.max * (1 + factor) if self.max is not None else None,
        )

    def overlaps(self, price_min: Optional[float], price_max: Optional[float]) -> bool:
        """Closed-interval overlap; unpriced vendors never match a set budget."""
        if not self.is_set:
            return True
        if price_min is None and price_max is None:
            return False
        low = price_min if price_min is not None else price_max
        high = price_max if price_max is not None else price_min
        if self.max is not None and low > self.max:
            return False
        if self.min is not None and high < self.min:
            return False
        return True

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class VendorRecord:
    """Read projection of a vendor row; the search core never mutates vendors."""

    id: str
    name: str
    service_type: str
    business_name: Optional[str] = None
    city: Optional[str] = None
    area: Optional[str] = None
    location: Optional[GeoPoint] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    rating: float = 0.0
    review_count: int = 0
    verified: bool = False
    is_featured: bool = False
    is_active: bool = True
    attributes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_model(cls, vendor: "Vendor") -> "VendorRecord":
        return cls(
            id=str(vendor.id),
            name=str(vendor.name),
            service_type=str(vendor.service_type),
            business_name=vendor.business_name,
            city=vendor.city,
            area=vendor.area,
            location=GeoPoint.from_row(vendor),
            price_min=float(vendor.price_min) if vendor.price_min is not None else None,
            price_max=float(vendor.price_max) if vendor.price_max is not None else None,
            rating=float(vendor.rating or 0.0),
            review_count=int(vendor.review_count or 0),
            verified=bool(vendor.verified),
            is_featured=bool(vendor.is_featured),
            is_active=bool(vendor.is_active),
            attributes=dict(vendor.attributes or {}),
        )

    @property
    def price_range(self) -> Tuple[Optional[float], Optional[float]]:
        return (self.price_min, self.price_max)


@dataclass(frozen=True)
class TierResult:
    vendor: VendorRecord
    match_tier: MatchTier
    distance_km: Optional[float] = None

    @property
    def tier_priority(self) -> int:
        return self.match_tier.priority


@dataclass(frozen=True)
class LocationSpec:
    """Heterogeneous location input as supplied by the caller."""

    city: Optional[str] = None
    area: Optional[str] = None
    area_id: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius_km: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def is_empty(self) -> bool:
        return not (
            self.has_coordinates
            or (self.area_id or "").strip()
            or (self.city or "").strip()
        )
