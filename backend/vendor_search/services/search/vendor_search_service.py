# backend/vendor_search/services/search/vendor_search_service.py
"""
Vendor search façade.

Orchestrates one search request:
1. Validate input into SearchParams (rejected before any store access)
2. Resolve location and normalize the query concurrently
3. Build vendor predicates (explicit serviceId wins over the normalizer)
4. Rank across the four tiers, derive facets from the returned page
5. Assemble the response and record metrics

Degraded paths (area fallback, low-confidence broadening, failed tiers,
taxonomy unavailable) never fail the request; they are reported in
`metadata.degradations`.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import Executor
from dataclasses import dataclass
from datetime import datetime, timezone
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from vendor_search.core.exceptions import (
    DomainException,
    InvalidBudgetRangeException,
    LocationRequiredException,
    RepositoryException,
)
from vendor_search.database import get_db_session
from vendor_search.repositories.taxonomy_repository import TaxonomyRepository
from vendor_search.repositories.vendor_repository import VendorPredicates
from vendor_search.schemas.vendor_search import (
    AvailableFilters,
    NormalizationOut,
    QuickFilterOut,
    SearchLocationOut,
    SearchMetadata,
    SearchRequest,
    SearchResponse,
    SuggestionItem,
    SuggestionsResponse,
    TaxonomyMatchOut,
    TierBreakdownOut,
    VendorResult,
)
from vendor_search.services.search.config import SearchConfig, get_search_config
from vendor_search.services.search.executors import SEARCH_EXECUTOR
from vendor_search.services.search.facet_service import build_quick_filters, derive_facets
from vendor_search.services.search.geo import format_distance
from vendor_search.services.search.location_resolver import LocationResolver
from vendor_search.services.search.metrics import record_search_error, record_search_metrics
from vendor_search.services.search.taxonomy_normalizer import (
    NormalizationResult,
    TaxonomyIndex,
    TaxonomyNormalizer,
)
from vendor_search.services.search.tier_ranker import (
    RankedPage,
    SessionFactory,
    TieredVendorRanker,
)
from vendor_search.services.search.types import (
    BudgetRange,
    LocationSpec,
    MatchTier,
    ResolvedLocation,
    SortMode,
    TierResult,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchParams:
    """Validated, immutable search input."""

    query: Optional[str]
    service_id: Optional[str]
    location: LocationSpec
    budget: BudgetRange
    verified_only: bool
    min_rating: Optional[float]
    sort: SortMode
    page: int
    page_size: int
    radius_km: float

    @classmethod
    def from_request(cls, request: SearchRequest, config: SearchConfig) -> "SearchParams":
        """
        Raises:
            InvalidBudgetRangeException: budget.min > budget.max
            LocationRequiredException: no usable location input
        """
        budget = BudgetRange()
        if request.budget is not None:
            low, high = request.budget.min, request.budget.max
            if low is not None and high is not None and low > high:
                raise InvalidBudgetRangeException(low, high)
            budget = BudgetRange(min=low, max=high)

        loc = request.location
        spec = LocationSpec()
        if loc is not None:
            spec = LocationSpec(
                city=loc.city,
                area=loc.area,
                area_id=loc.area_id,
                latitude=loc.latitude,
                longitude=loc.longitude,
                radius_km=loc.radius_km,
            )
        if spec.is_empty:
            raise LocationRequiredException()

        query = (request.query or "").strip() or None
        service_id = (request.service_id or "").strip() or None
        page_size = min(request.limit or config.default_page_size, config.max_page_size)

        return cls(
            query=query,
            service_id=service_id,
            location=spec,
            budget=budget,
            verified_only=request.verified is True,
            min_rating=request.rating,
            sort=SortMode(request.sort),
            page=request.page,
            page_size=page_size,
            radius_km=config.clamp_radius(spec.radius_km),
        )


class VendorSearchService:
    """Entry point for tiered vendor search and taxonomy suggestions."""

    def __init__(
        self,
        *,
        session_factory: SessionFactory = get_db_session,
        config: Optional[SearchConfig] = None,
        executor: Optional[Executor] = None,
        ranker: Optional[TieredVendorRanker] = None,
    ) -> None:
        self.config = config or get_search_config()
        self._session_factory = session_factory
        self._executor = executor or SEARCH_EXECUTOR
        self.ranker = ranker or TieredVendorRanker(
            session_factory=session_factory, config=self.config, executor=self._executor
        )

    # ── Search ────────────────────────────────────────────────────

    async def search(self, request: SearchRequest) -> SearchResponse:
        started = time.perf_counter()
        cfg = self.config

        try:
            params = SearchParams.from_request(request, cfg)
        except DomainException:
            record_search_error("invalid_request")
            raise

        loop = asyncio.get_running_loop()
        stage_start = time.perf_counter()
        try:
            location, (index, normalization, taxonomy_ok) = await asyncio.gather(
                loop.run_in_executor(self._executor, self._resolve_location, params.location),
                loop.run_in_executor(self._executor, self._normalize, params.query),
            )
        except DomainException as exc:
            record_search_error(exc.code.lower())
            raise
        resolve_ms = int((time.perf_counter() - stage_start) * 1000)

        degradations: List[str] = []
        if location.fallback:
            degradations.append("area_not_found")
        if not taxonomy_ok:
            degradations.append("taxonomy_unavailable")

        predicates, broadened = self._build_predicates(params, index, normalization)
        if broadened:
            degradations.append("low_confidence_query")
            logger.info(
                "Low-confidence query %r (%.2f); broadening to vendor name matching",
                params.query,
                normalization.confidence,
            )

        stage_start = time.perf_counter()
        ranked = await self.ranker.rank(
            location,
            predicates,
            radius_km=params.radius_km,
            sort=params.sort,
            page=params.page,
            page_size=params.page_size,
        )
        rank_ms = int((time.perf_counter() - stage_start) * 1000)
        for tier, reason in sorted(ranked.degraded_tiers.items()):
            degradations.append(f"{tier}_{reason}")

        stage_start = time.perf_counter()
        facets = derive_facets(ranked.results, index, max_area_facets=cfg.max_area_facets)
        quick_filters = build_quick_filters(facets, city_searched=location.city_name is not None)
        facets_ms = int((time.perf_counter() - stage_start) * 1000)

        total_ms = int((time.perf_counter() - started) * 1000)
        record_search_metrics(
            total_latency_ms=total_ms,
            stage_latencies={
                "resolve_normalize": resolve_ms,
                "rank": rank_ms,
                "facets": facets_ms,
                **{f"tier_{k}": v for k, v in ranked.tier_latencies_ms.items()},
            },
            total_results=ranked.total,
            tier_breakdown={tier.value: n for tier, n in ranked.tier_breakdown.items()},
            has_query=params.query is not None,
            adjacent_triggered=ranked.adjacent_triggered,
            degradations=degradations,
        )
        logger.info(
            "Vendor search q=%r source=%s total=%s page=%s/%s in %sms",
            params.query,
            location.source.value,
            ranked.total,
            ranked.page,
            ranked.total_pages,
            total_ms,
            extra={"degradations": degradations},
        )

        return SearchResponse(
            total=ranked.total,
            page=ranked.page,
            limit=ranked.page_size,
            total_pages=ranked.total_pages,
            results=[_vendor_result(r) for r in ranked.results],
            available_filters=AvailableFilters.model_validate(facets.to_dict()),
            metadata=SearchMetadata(
                search_location=_search_location(location, ranked.radius_used_km),
                tier_breakdown=_tier_breakdown(ranked),
                radius_used_km=ranked.radius_used_km,
                adjacent_triggered=ranked.adjacent_triggered,
                adjacent_radius_km=ranked.adjacent_radius_km,
                normalization=_normalization_out(
                    normalization, broadened=broadened, service_override=params.service_id
                ),
                degradations=degradations,
                degraded_tiers=ranked.degraded_tiers,
                applied_filters=self._applied_filters(params, predicates),
                quick_filters=[
                    QuickFilterOut(type=q.type, label=q.label, options=list(q.options))
                    for q in quick_filters
                ],
                latency_ms=total_ms,
                timestamp=datetime.now(timezone.utc).isoformat(),
            ),
        )

    # ── Suggestions ───────────────────────────────────────────────

    async def suggest(self, query: str, limit: Optional[int] = None) -> SuggestionsResponse:
        """Taxonomy autocomplete for a partial query."""
        size = limit or self.config.suggestion_limit
        loop = asyncio.get_running_loop()
        index, _, _ = await loop.run_in_executor(self._executor, self._normalize, None)
        suggestions = TaxonomyNormalizer(index).suggest(query, size)
        return SuggestionsResponse(
            query=query,
            suggestions=[
                SuggestionItem(
                    type=s.type,
                    id=s.taxonomy_id,
                    taxonomy_id=s.taxonomy_id,
                    label=s.label,
                    icon=s.icon,
                    score=s.score,
                    matched_keyword=s.matched_keyword,
                    parent_id=s.parent_id,
                )
                for s in suggestions
            ],
        )

    # ── Blocking units (run on the executor) ──────────────────────

    def _resolve_location(self, spec: LocationSpec) -> ResolvedLocation:
        with self._session_factory() as db:
            return LocationResolver(db, config=self.config).resolve(spec)

    def _normalize(
        self, query: Optional[str]
    ) -> Tuple[TaxonomyIndex, NormalizationResult, bool]:
        """Load the taxonomy snapshot and score `query`; a load failure yields an empty index."""
        try:
            with self._session_factory() as db:
                index = TaxonomyIndex.from_rows(TaxonomyRepository(db).list_active())
        except RepositoryException as exc:
            logger.warning("Taxonomy unavailable, searching without category filter: %s", exc)
            index = TaxonomyIndex(())
            return index, NormalizationResult.empty(query), False
        return index, TaxonomyNormalizer(index).normalize(query), True

    # ── Helpers ───────────────────────────────────────────────────

    def _build_predicates(
        self,
        params: SearchParams,
        index: TaxonomyIndex,
        normalization: NormalizationResult,
    ) -> Tuple[VendorPredicates, bool]:
        broadened = False
        text_query: Optional[str] = None

        if params.service_id:
            category_ids = index.expand_to_services(params.service_id)
        else:
            category_ids = normalization.category_ids(index)
            if params.query and normalization.is_low_confidence(
                self.config.low_confidence_threshold
            ):
                broadened = True
                text_query = params.query

        predicates = VendorPredicates(
            category_ids=tuple(category_ids),
            text_query=text_query,
            verified_only=params.verified_only,
            min_rating=params.min_rating,
            budget=params.budget,
        )
        return predicates, broadened

    def _applied_filters(
        self, params: SearchParams, predicates: VendorPredicates
    ) -> Dict[str, Any]:
        applied: Dict[str, Any] = {
            "sort": params.sort.value,
            "radiusKm": params.radius_km,
            "verifiedOnly": params.verified_only,
        }
        if params.query:
            applied["query"] = params.query
        if params.service_id:
            applied["serviceId"] = params.service_id
        if predicates.category_ids:
            applied["categoryIds"] = list(predicates.category_ids)
        if params.min_rating is not None:
            applied["minRating"] = params.min_rating
        if params.budget.is_set:
            applied["budget"] = params.budget.to_dict()
            applied["relaxedBudget"] = params.budget.relaxed(
                self.config.budget_flexibility_percent
            ).to_dict()
        return applied


def _vendor_result(result: TierResult) -> VendorResult:
    v = result.vendor
    return VendorResult(
        id=v.id,
        name=v.name,
        business_name=v.business_name,
        service_type=v.service_type,
        city=v.city,
        area=v.area,
        latitude=v.location.latitude if v.location else None,
        longitude=v.location.longitude if v.location else None,
        price_min=v.price_min,
        price_max=v.price_max,
        rating=v.rating,
        review_count=v.review_count,
        verified=v.verified,
        is_featured=v.is_featured,
        attributes=v.attributes,
        match_tier=result.match_tier.value,
        tier_priority=result.tier_priority,
        distance_km=result.distance_km,
        distance_text=(
            format_distance(result.distance_km) if result.distance_km is not None else None
        ),
    )


def _search_location(location: ResolvedLocation, radius_km: float) -> SearchLocationOut:
    return SearchLocationOut(
        latitude=location.coordinates.latitude,
        longitude=location.coordinates.longitude,
        city=location.city_name,
        area=location.area_name,
        area_id=location.area.id if location.area else None,
        source=location.source.value,
        radius_km=radius_km,
        fallback=location.fallback,
    )


def _tier_breakdown(ranked: RankedPage) -> TierBreakdownOut:
    counts = ranked.tier_breakdown
    return TierBreakdownOut(
        exact_area=counts.get(MatchTier.EXACT_AREA, 0),
        nearby=counts.get(MatchTier.NEARBY, 0),
        same_city=counts.get(MatchTier.SAME_CITY, 0),
        adjacent_city=counts.get(MatchTier.ADJACENT_CITY, 0),
    )


def _normalization_out(
    normalization: NormalizationResult, *, broadened: bool, service_override: Optional[str]
) -> NormalizationOut:
    best = normalization.best_match
    return NormalizationOut(
        original_query=normalization.original_query,
        normalized_query=normalization.normalized_query,
        best_match=TaxonomyMatchOut(**best.to_dict()) if best else None,
        confidence=normalization.confidence,
        match_type=normalization.match_type,
        broadened=broadened,
        service_override=service_override,
    )
