# backend/vendor_search/services/search/facet_service.py
"""
Facet generation for vendor search.

Facets are derived from the already-fetched result page only: no store
queries, cost proportional to the page size. Given the same page (and the
same taxonomy snapshot) the output is identical, so every list below is
sorted explicitly rather than relying on insertion order.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from vendor_search.services.search.taxonomy_normalizer import DEFAULT_ICON, TaxonomyIndex
from vendor_search.services.search.types import TierResult, VendorRecord

logger = logging.getLogger(__name__)

BUDGET_BUCKETS = 5
RATING_THRESHOLDS: Tuple[float, ...] = (4.5, 4.0, 3.5, 3.0)
DEFAULT_MAX_AREA_FACETS = 20

SUBCATEGORY_ICON = "📋"
CATEGORY_ICON = "🏷️"


# ── Facet types ───────────────────────────────────────────────────


@dataclass(frozen=True)
class BudgetBucket:
    label: str
    min: int
    max: int
    count: int


@dataclass(frozen=True)
class CountFacet:
    name: str
    count: int


@dataclass(frozen=True)
class ServiceFacet:
    taxonomy_id: str
    name: str
    icon: str
    count: int


@dataclass(frozen=True)
class SubcategoryFacet:
    taxonomy_id: str
    name: str
    icon: str
    count: int
    services: Tuple[ServiceFacet, ...] = ()


@dataclass(frozen=True)
class CategoryFacet:
    taxonomy_id: str
    name: str
    icon: str
    count: int
    subcategories: Tuple[SubcategoryFacet, ...] = ()


@dataclass(frozen=True)
class RatingFacet:
    rating: float
    label: str
    count: int


@dataclass(frozen=True)
class FacetSet:
    budget: Tuple[BudgetBucket, ...] = ()
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    cities: Tuple[CountFacet, ...] = ()
    areas: Tuple[CountFacet, ...] = ()
    services: Tuple[ServiceFacet, ...] = ()
    subcategories: Tuple[SubcategoryFacet, ...] = ()
    categories: Tuple[CategoryFacet, ...] = ()
    ratings: Tuple[RatingFacet, ...] = ()
    verified_count: int = 0
    attributes: Dict[str, Tuple[CountFacet, ...]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class QuickFilter:
    type: str
    label: str
    options: Tuple[Dict[str, Any], ...]


# ── Helpers ───────────────────────────────────────────────────────


def format_price(price: float) -> str:
    """Rupee short form: ₹1.5L at or above one lakh, ₹20K at or above a thousand."""
    if price >= 100000:
        return f"₹{price / 100000:.1f}L"
    if price >= 1000:
        return f"₹{price / 1000:.0f}K"
    return f"₹{int(round(price))}"


def format_budget_range(low: float, high: float) -> str:
    return f"{format_price(low)} - {format_price(high)}"


def _price_bounds(vendor: VendorRecord) -> Optional[Tuple[float, float]]:
    low = vendor.price_min if vendor.price_min is not None else vendor.price_max
    high = vendor.price_max if vendor.price_max is not None else vendor.price_min
    if low is None or high is None:
        return None
    return (low, high)


def _by_count_then_name(items: Iterable[Any]) -> Tuple[Any, ...]:
    return tuple(sorted(items, key=lambda item: (-item.count, item.name)))


def _budget_buckets(vendors: Sequence[VendorRecord]) -> Tuple[BudgetBucket, ...]:
    bounds = [b for b in (_price_bounds(v) for v in vendors) if b is not None]
    if not bounds:
        return ()

    points = [p for low, high in bounds for p in (low, high)]
    lowest, highest = min(points), max(points)
    if lowest == highest:
        return (
            BudgetBucket(
                label=format_budget_range(lowest, highest),
                min=math.floor(lowest),
                max=math.ceil(highest),
                count=len(bounds),
            ),
        )

    width = (highest - lowest) / BUDGET_BUCKETS
    buckets: List[BudgetBucket] = []
    for i in range(BUDGET_BUCKETS):
        bucket_lo = lowest + width * i
        last = i == BUDGET_BUCKETS - 1
        bucket_hi = highest if last else lowest + width * (i + 1)

        # [lo, hi) overlap, closed on the last bucket so the maximum is counted
        count = sum(
            1
            for low, high in bounds
            if high >= bucket_lo and (low <= bucket_hi if last else low < bucket_hi)
        )
        if count:
            buckets.append(
                BudgetBucket(
                    label=format_budget_range(bucket_lo, bucket_hi),
                    min=math.floor(bucket_lo),
                    max=math.ceil(bucket_hi),
                    count=count,
                )
            )
    return tuple(buckets)


def _rating_facets(vendors: Sequence[VendorRecord]) -> Tuple[RatingFacet, ...]:
    facets: List[RatingFacet] = []
    for threshold in RATING_THRESHOLDS:
        count = sum(1 for v in vendors if v.rating >= threshold)
        if count:
            facets.append(
                RatingFacet(rating=threshold, label=f"{threshold:g}★ & above", count=count)
            )
    return tuple(facets)


def _attribute_value(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        text = str(value).strip()
        return text or None
    return None


def _attribute_facets(vendors: Sequence[VendorRecord]) -> Dict[str, Tuple[CountFacet, ...]]:
    counters: Dict[str, Counter] = {}
    for vendor in vendors:
        for key, raw in (vendor.attributes or {}).items():
            values = raw if isinstance(raw, list) else [raw]
            # Count each vendor once per distinct value
            distinct = {v for v in (_attribute_value(item) for item in values) if v is not None}
            if distinct:
                counters.setdefault(str(key), Counter()).update(distinct)
    return {
        key: _by_count_then_name(CountFacet(name=name, count=n) for name, n in counter.items())
        for key, counter in sorted(counters.items())
    }


def _taxonomy_facets(
    vendors: Sequence[VendorRecord], index: Optional[TaxonomyIndex]
) -> Tuple[Tuple[ServiceFacet, ...], Tuple[SubcategoryFacet, ...], Tuple[CategoryFacet, ...]]:
    service_counts = Counter(v.service_type for v in vendors if v.service_type)

    services: List[ServiceFacet] = []
    by_subcategory: Dict[str, List[ServiceFacet]] = {}
    for service_id, count in service_counts.items():
        node = index.get(service_id) if index else None
        facet = ServiceFacet(
            taxonomy_id=service_id,
            name=node.name if node else service_id,
            icon=(node.icon if node else None) or DEFAULT_ICON,
            count=count,
        )
        services.append(facet)
        if index is None or node is None:
            continue
        subcategory, _ = index.ancestors(service_id)
        if subcategory is not None:
            by_subcategory.setdefault(subcategory.taxonomy_id, []).append(facet)

    subcategories: List[SubcategoryFacet] = []
    by_category: Dict[str, List[SubcategoryFacet]] = {}
    for subcategory_id, members in by_subcategory.items():
        node = index.get(subcategory_id)  # type: ignore[union-attr]
        facet = SubcategoryFacet(
            taxonomy_id=subcategory_id,
            name=node.name,  # type: ignore[union-attr]
            icon=node.icon or SUBCATEGORY_ICON,  # type: ignore[union-attr]
            count=sum(s.count for s in members),
            services=_by_count_then_name(members),
        )
        subcategories.append(facet)
        category = index.get(node.parent_id)  # type: ignore[union-attr]
        if category is not None:
            by_category.setdefault(category.taxonomy_id, []).append(facet)

    categories: List[CategoryFacet] = []
    for category_id, members in by_category.items():
        node = index.get(category_id)  # type: ignore[union-attr]
        categories.append(
            CategoryFacet(
                taxonomy_id=category_id,
                name=node.name,  # type: ignore[union-attr]
                icon=node.icon or CATEGORY_ICON,  # type: ignore[union-attr]
                count=sum(s.count for s in members),
                subcategories=_by_count_then_name(members),
            )
        )

    return (
        _by_count_then_name(services),
        _by_count_then_name(subcategories),
        _by_count_then_name(categories),
    )


# ── Public API ────────────────────────────────────────────────────


def derive_facets(
    results: Sequence[TierResult],
    taxonomy_index: Optional[TaxonomyIndex] = None,
    *,
    max_area_facets: int = DEFAULT_MAX_AREA_FACETS,
) -> FacetSet:
    """Build the FacetSet for one result page. Pure; zero-count entries are omitted."""
    vendors = [r.vendor for r in results]
    if not vendors:
        return FacetSet()

    prices = [p for v in vendors for p in (v.price_min, v.price_max) if p is not None]
    cities = Counter(v.city for v in vendors if v.city)
    areas = Counter(v.area for v in vendors if v.area)
    services, subcategories, categories = _taxonomy_facets(vendors, taxonomy_index)

    return FacetSet(
        budget=_budget_buckets(vendors),
        budget_min=min(prices) if prices else None,
        budget_max=max(prices) if prices else None,
        cities=_by_count_then_name(CountFacet(name=c, count=n) for c, n in cities.items()),
        areas=_by_count_then_name(CountFacet(name=a, count=n) for a, n in areas.items())[
            :max_area_facets
        ],
        services=services,
        subcategories=subcategories,
        categories=categories,
        ratings=_rating_facets(vendors),
        verified_count=sum(1 for v in vendors if v.verified),
        attributes=_attribute_facets(vendors),
    )


def build_quick_filters(facets: FacetSet, city_searched: bool) -> List[QuickFilter]:
    """Prioritised refinement shortcuts derived from the facet set."""
    quick: List[QuickFilter] = []

    if len(facets.services) > 1:
        quick.append(
            QuickFilter(
                type="service",
                label="Service Type",
                options=tuple(asdict(s) for s in facets.services[:5]),
            )
        )
    if facets.budget:
        quick.append(
            QuickFilter(
                type="budget",
                label="Budget Range",
                options=tuple(asdict(b) for b in facets.budget[:4]),
            )
        )
    if facets.ratings:
        quick.append(
            QuickFilter(
                type="rating",
                label="Customer Rating",
                options=tuple(asdict(r) for r in facets.ratings[:3]),
            )
        )
    if not city_searched and len(facets.cities) > 1:
        quick.append(
            QuickFilter(
                type="location",
                label="Location",
                options=tuple(asdict(c) for c in facets.cities[:5]),
            )
        )
    return quick
