# backend/vendor_search/schemas/vendor_search.py
"""
Pydantic schemas for the tiered vendor search API.

Wire names are camelCase (`serviceId`, `radiusKm`, `matchTier` ...); Python
code uses the snake_case field names, which are also accepted on input.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator

from ..services.search.types import SortMode
from ._strict_base import CamelModel, StrictRequestModel

# =============================================================================
# Request
# =============================================================================


class LocationInput(StrictRequestModel):
    """Heterogeneous location input; any one usable form is enough."""

    city: Optional[str] = Field(None, max_length=100, description="City name")
    area: Optional[str] = Field(None, max_length=150, description="Area / locality name")
    area_id: Optional[str] = Field(None, alias="areaId", max_length=64, description="Area id")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    radius_km: Optional[float] = Field(
        None, alias="radiusKm", gt=0, description="Search radius in km (clamped server-side)"
    )

    @model_validator(mode="after")
    def _coordinates_together(self) -> "LocationInput":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        return self


class BudgetInput(StrictRequestModel):
    min: Optional[float] = Field(None, ge=0)
    max: Optional[float] = Field(None, ge=0)


class SearchRequest(StrictRequestModel):
    """Body of POST /api/v1/search/vendors."""

    query: Optional[str] = Field(None, max_length=200, description="Free-text query")
    service_id: Optional[str] = Field(
        None, alias="serviceId", max_length=100, description="Explicit taxonomy override"
    )
    location: Optional[LocationInput] = None
    budget: Optional[BudgetInput] = None
    verified: Optional[bool] = Field(None, description="True restricts to verified vendors")
    rating: Optional[float] = Field(None, ge=0, le=5, description="Minimum rating")
    sort: SortMode = SortMode.RELEVANCE
    page: int = Field(1, ge=1)
    limit: Optional[int] = Field(None, ge=1, description="Page size (capped server-side)")


# =============================================================================
# Response
# =============================================================================


class VendorResult(CamelModel):
    id: str
    name: str
    business_name: Optional[str] = Field(None, alias="businessName")
    service_type: str = Field(..., alias="serviceType")
    city: Optional[str] = None
    area: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    price_min: Optional[float] = Field(None, alias="priceMin")
    price_max: Optional[float] = Field(None, alias="priceMax")
    rating: float = 0.0
    review_count: int = Field(0, alias="reviewCount")
    verified: bool = False
    is_featured: bool = Field(False, alias="isFeatured")
    attributes: Dict[str, Any] = Field(default_factory=dict)

    match_tier: str = Field(..., alias="matchTier")
    tier_priority: int = Field(..., alias="tierPriority", ge=1, le=4)
    distance_km: Optional[float] = Field(None, alias="distanceKm")
    distance_text: Optional[str] = Field(None, alias="distanceText")


class BudgetBucketOut(CamelModel):
    label: str
    min: int
    max: int
    count: int


class CountFacetOut(CamelModel):
    name: str
    count: int


class ServiceFacetOut(CamelModel):
    taxonomy_id: str = Field(..., alias="taxonomyId")
    name: str
    icon: str
    count: int


class SubcategoryFacetOut(ServiceFacetOut):
    services: List[ServiceFacetOut] = Field(default_factory=list)


class CategoryFacetOut(ServiceFacetOut):
    subcategories: List[SubcategoryFacetOut] = Field(default_factory=list)


class RatingFacetOut(CamelModel):
    rating: float
    label: str
    count: int


class AvailableFilters(CamelModel):
    budget: List[BudgetBucketOut] = Field(default_factory=list)
    budget_min: Optional[float] = Field(None, alias="budgetMin")
    budget_max: Optional[float] = Field(None, alias="budgetMax")
    cities: List[CountFacetOut] = Field(default_factory=list)
    areas: List[CountFacetOut] = Field(default_factory=list)
    services: List[ServiceFacetOut] = Field(default_factory=list)
    subcategories: List[SubcategoryFacetOut] = Field(default_factory=list)
    categories: List[CategoryFacetOut] = Field(default_factory=list)
    ratings: List[RatingFacetOut] = Field(default_factory=list)
    verified_count: int = Field(0, alias="verifiedCount")
    attributes: Dict[str, List[CountFacetOut]] = Field(default_factory=dict)


class QuickFilterOut(CamelModel):
    type: str
    label: str
    options: List[Dict[str, Any]] = Field(default_factory=list)


class SearchLocationOut(CamelModel):
    latitude: float
    longitude: float
    city: Optional[str] = None
    area: Optional[str] = None
    area_id: Optional[str] = Field(None, alias="areaId")
    source: str
    radius_km: float = Field(..., alias="radiusKm")
    fallback: bool = False


class TierBreakdownOut(CamelModel):
    exact_area: int = Field(0, alias="exactArea")
    nearby: int = 0
    same_city: int = Field(0, alias="sameCity")
    adjacent_city: int = Field(0, alias="adjacentCity")


class TaxonomyMatchOut(CamelModel):
    taxonomy_id: str = Field(..., alias="taxonomyId")
    name: str
    type: str
    score: int
    parent_id: Optional[str] = Field(None, alias="parentId")
    icon: Optional[str] = None


class NormalizationOut(CamelModel):
    original_query: Optional[str] = Field(None, alias="originalQuery")
    normalized_query: Optional[str] = Field(None, alias="normalizedQuery")
    best_match: Optional[TaxonomyMatchOut] = Field(None, alias="bestMatch")
    confidence: float = 0.0
    match_type: str = Field("none", alias="matchType")
    broadened: bool = Field(False, description="Vendor name/business-name matching added")
    service_override: Optional[str] = Field(None, alias="serviceOverride")


class SearchMetadata(CamelModel):
    search_location: SearchLocationOut = Field(..., alias="searchLocation")
    tier_breakdown: TierBreakdownOut = Field(..., alias="tierBreakdown")
    radius_used_km: float = Field(..., alias="radiusUsedKm")
    adjacent_triggered: bool = Field(False, alias="adjacentTriggered")
    adjacent_radius_km: Optional[float] = Field(None, alias="adjacentRadiusKm")
    normalization: NormalizationOut
    degradations: List[str] = Field(default_factory=list)
    degraded_tiers: Dict[str, str] = Field(default_factory=dict, alias="degradedTiers")
    applied_filters: Dict[str, Any] = Field(default_factory=dict, alias="appliedFilters")
    quick_filters: List[QuickFilterOut] = Field(default_factory=list, alias="quickFilters")
    latency_ms: int = Field(0, alias="latencyMs")
    timestamp: str


class SearchResponse(CamelModel):
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total_pages: int = Field(..., alias="totalPages", ge=0)
    results: List[VendorResult] = Field(default_factory=list)
    available_filters: AvailableFilters = Field(..., alias="availableFilters")
    metadata: SearchMetadata


class SuggestionItem(CamelModel):
    type: str
    id: str
    taxonomy_id: str = Field(..., alias="taxonomyId")
    label: str
    icon: str
    score: int
    matched_keyword: Optional[str] = Field(None, alias="matchedKeyword")
    parent_id: Optional[str] = Field(None, alias="parentId")


class SuggestionsResponse(CamelModel):
    query: str
    suggestions: List[SuggestionItem] = Field(default_factory=list)
