# backend/vendor_search/services/search/tier_ranker.py
"""
Tiered vendor ranker.

Vendors are bucketed into four strictly ordered proximity tiers and merged by
tier priority, never by blended score:

1. exact_area    - vendor city and area match the resolved location (strict filters)
2. nearby        - within the search radius, nearest first (strict filters)
3. same_city     - same city, outside the radius (relaxed budget)
4. adjacent_city - other cities, expanding radius; only when Tiers 1-3 come up
                   short of `min_results_threshold` (relaxed budget)

Tiers 1-3 run concurrently on the search executor, each with its own DB
session and timeout. A tier that times out or fails degrades to an empty tier.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import Executor
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
import logging
import math
import time
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from vendor_search.core.exceptions import NoLocationContextException
from vendor_search.database import get_db_session
from vendor_search.repositories.vendor_repository import VendorPredicates, VendorRepository
from vendor_search.services.search.config import SearchConfig, get_search_config
from vendor_search.services.search.executors import SEARCH_EXECUTOR
from vendor_search.services.search.metrics import record_tier_failure
from vendor_search.services.search.types import (
    MatchTier,
    ResolvedLocation,
    SortMode,
    TierResult,
    VendorRecord,
)

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractContextManager]
RepositoryFactory = Callable[[Session], Any]


@dataclass
class RankedPage:
    results: List[TierResult]
    total: int
    page: int
    page_size: int
    tier_breakdown: Dict[MatchTier, int]
    radius_used_km: float
    adjacent_triggered: bool = False
    adjacent_radius_km: Optional[float] = None
    degraded_tiers: Dict[str, str] = field(default_factory=dict)
    tier_latencies_ms: Dict[str, int] = field(default_factory=dict)

    @property
    def total_pages(self) -> int:
        if self.total == 0:
            return 0
        return math.ceil(self.total / self.page_size)


# ── In-tier ordering ──────────────────────────────────────────────


def _by_rating(result: TierResult) -> Tuple[Any, ...]:
    v = result.vendor
    return (-v.rating, -v.review_count, v.id)


def _by_distance(result: TierResult) -> Tuple[Any, ...]:
    missing = result.distance_km is None
    return (missing, result.distance_km or 0.0, result.vendor.id)


def _by_price_low(result: TierResult) -> Tuple[Any, ...]:
    v = result.vendor
    return (v.price_min is None, v.price_min or 0.0, v.id)


def _by_price_high(result: TierResult) -> Tuple[Any, ...]:
    v = result.vendor
    return (v.price_max is None, -(v.price_max or 0.0), v.id)


def sort_tier(results: Sequence[TierResult], tier: MatchTier, sort: SortMode) -> List[TierResult]:
    """Order one tier's results; sort modes never reorder across tiers."""
    if sort == SortMode.RATING:
        key = _by_rating
    elif sort == SortMode.PRICE_LOW:
        key = _by_price_low
    elif sort == SortMode.PRICE_HIGH:
        key = _by_price_high
    elif sort == SortMode.DISTANCE:
        key = _by_distance
    elif tier == MatchTier.NEARBY:
        key = _by_distance
    else:
        key = _by_rating
    return sorted(results, key=key)


class TieredVendorRanker:
    """Runs the four tier queries and merges them into one paginated list."""

    def __init__(
        self,
        *,
        session_factory: SessionFactory = get_db_session,
        repository_factory: RepositoryFactory = VendorRepository,
        config: Optional[SearchConfig] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self._session_factory = session_factory
        self._repository_factory = repository_factory
        self.config = config or get_search_config()
        self._executor = executor or SEARCH_EXECUTOR

    async def rank(
        self,
        location: Optional[ResolvedLocation],
        predicates: VendorPredicates,
        *,
        radius_km: Optional[float] = None,
        sort: SortMode = SortMode.RELEVANCE,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> RankedPage:
        """
        Rank vendors around `location` and return one page of the merged list.

        Raises:
            NoLocationContextException: location resolution did not happen upstream
        """
        if location is None:
            raise NoLocationContextException()

        cfg = self.config
        radius = cfg.clamp_radius(radius_km)
        size = page_size or cfg.default_page_size
        relaxed = predicates.with_budget(predicates.budget.relaxed(cfg.budget_flexibility_percent))

        degraded: Dict[str, str] = {}
        latencies: Dict[str, int] = {}

        exact, nearby, same_city = await asyncio.gather(
            self._run_tier(
                MatchTier.EXACT_AREA,
                lambda: self._exact_area(location, predicates),
                degraded,
                latencies,
            ),
            self._run_tier(
                MatchTier.NEARBY,
                lambda: self._nearby(location, predicates, radius),
                degraded,
                latencies,
            ),
            self._run_tier(
                MatchTier.SAME_CITY,
                lambda: self._same_city(location, relaxed, radius),
                degraded,
                latencies,
            ),
        )

        # Tiers 2 and 3 over-fetch; their caps apply after cross-tier dedupe
        seen: set = set()
        tiers: Dict[MatchTier, List[TierResult]] = {}
        for tier, results, cap in (
            (MatchTier.EXACT_AREA, exact, cfg.max_exact_area),
            (MatchTier.NEARBY, nearby, cfg.max_nearby),
            (MatchTier.SAME_CITY, same_city, cfg.max_same_city),
        ):
            tiers[tier] = _dedupe(results, seen, cap)

        combined = sum(len(r) for r in tiers.values())
        adjacent_radius: Optional[float] = None
        adjacent_triggered = combined < cfg.min_results_threshold
        if adjacent_triggered:
            logger.info(
                "Tiers 1-3 returned %s vendors (< %s); expanding to adjacent cities",
                combined,
                cfg.min_results_threshold,
            )
            outcome = await self._run_tier(
                MatchTier.ADJACENT_CITY,
                lambda: self._adjacent_city(location, relaxed, radius, combined, frozenset(seen)),
                degraded,
                latencies,
            )
            adjacent_results, adjacent_radius = outcome if outcome else ([], None)
            tiers[MatchTier.ADJACENT_CITY] = _dedupe(
                adjacent_results, seen, cfg.max_adjacent_city
            )
        else:
            logger.debug("Tiers 1-3 returned %s vendors; adjacent-city tier skipped", combined)
            tiers[MatchTier.ADJACENT_CITY] = []

        merged: List[TierResult] = []
        for tier in MatchTier:
            merged.extend(sort_tier(tiers[tier], tier, sort))

        start = (page - 1) * size
        breakdown = {tier: len(tiers[tier]) for tier in MatchTier}
        logger.info(
            "Ranked %s vendors (exact=%s nearby=%s same_city=%s adjacent=%s) radius=%skm",
            len(merged),
            breakdown[MatchTier.EXACT_AREA],
            breakdown[MatchTier.NEARBY],
            breakdown[MatchTier.SAME_CITY],
            breakdown[MatchTier.ADJACENT_CITY],
            radius,
        )
        return RankedPage(
            results=merged[start : start + size],
            total=len(merged),
            page=page,
            page_size=size,
            tier_breakdown=breakdown,
            radius_used_km=radius,
            adjacent_triggered=adjacent_triggered,
            adjacent_radius_km=adjacent_radius,
            degraded_tiers=degraded,
            tier_latencies_ms=latencies,
        )

    # ── Execution ─────────────────────────────────────────────────

    async def _run_tier(
        self,
        tier: MatchTier,
        fn: Callable[[], Any],
        degraded: Dict[str, str],
        latencies: Dict[str, int],
    ) -> Any:
        """Run one blocking tier query with its own timeout; failures yield an empty tier."""
        loop = asyncio.get_running_loop()
        timeout_s = max(self.config.tier_timeout_ms, 1) / 1000.0
        started = time.perf_counter()
        try:
            return await asyncio.wait_for(loop.run_in_executor(self._executor, fn), timeout_s)
        except asyncio.TimeoutError:
            logger.warning("Tier %s timed out after %sms", tier.value, self.config.tier_timeout_ms)
            degraded[tier.value] = "timeout"
            record_tier_failure(tier.value, "timeout")
        except Exception as exc:
            logger.warning("Tier %s failed: %s", tier.value, exc, exc_info=True)
            degraded[tier.value] = "error"
            record_tier_failure(tier.value, "error")
        finally:
            latencies[tier.value] = int((time.perf_counter() - started) * 1000)
        return [] if tier != MatchTier.ADJACENT_CITY else None

    # ── Tier queries (run on the executor) ────────────────────────

    def _exact_area(
        self, location: ResolvedLocation, predicates: VendorPredicates
    ) -> List[TierResult]:
        if not location.area_name or not location.city_name:
            return []
        with self._session_factory() as db:
            repo = self._repository_factory(db)
            hits = repo.find_by_area(
                location.city_name,
                location.area_name,
                predicates,
                self.config.max_exact_area,
                origin=location.coordinates,
            )
            return _to_results(hits, MatchTier.EXACT_AREA)

    def _nearby(
        self, location: ResolvedLocation, predicates: VendorPredicates, radius_km: float
    ) -> List[TierResult]:
        with self._session_factory() as db:
            repo = self._repository_factory(db)
            hits = repo.find_near(
                location.coordinates,
                radius_km,
                predicates,
                self.config.max_nearby + self.config.max_exact_area,
            )
            return _to_results(hits, MatchTier.NEARBY)

    def _same_city(
        self, location: ResolvedLocation, predicates: VendorPredicates, radius_km: float
    ) -> List[TierResult]:
        if not location.city_name:
            return []
        with self._session_factory() as db:
            repo = self._repository_factory(db)
            hits = repo.find_by_city(
                location.city_name,
                predicates,
                self.config.max_same_city + self.config.max_exact_area,
                origin=location.coordinates,
                exclude_within_km=radius_km,
            )
            return _to_results(hits, MatchTier.SAME_CITY)

    def _adjacent_city(
        self,
        location: ResolvedLocation,
        predicates: VendorPredicates,
        radius_km: float,
        already_found: int,
        exclude_ids: frozenset,
    ) -> Tuple[List[TierResult], float]:
        """Expand from radius × multiplier, doubling until enough vendors or the cap."""
        cfg = self.config
        max_radius = cfg.max_adjacent_radius_km
        current = min(radius_km * cfg.adjacent_radius_multiplier, max_radius)
        results: List[TierResult] = []

        with self._session_factory() as db:
            repo = self._repository_factory(db)
            while True:
                hits = repo.find_near(
                    location.coordinates,
                    current,
                    predicates,
                    cfg.max_adjacent_city,
                    exclude_city=location.city_name,
                    exclude_ids=exclude_ids,
                )
                results = _to_results(hits, MatchTier.ADJACENT_CITY)
                enough = already_found + len(results) >= cfg.min_results_threshold
                if enough or current >= max_radius:
                    break
                current = min(current * 2, max_radius)

        logger.info("Adjacent-city tier found %s vendors within %skm", len(results), current)
        return results, current


def _to_results(hits: Sequence[Tuple[Any, Optional[float]]], tier: MatchTier) -> List[TierResult]:
    return [
        TierResult(vendor=VendorRecord.from_model(vendor), match_tier=tier, distance_km=distance)
        for vendor, distance in hits
    ]


def _dedupe(
    results: Sequence[TierResult], seen: set, limit: Optional[int] = None
) -> List[TierResult]:
    """
    Keep the first (highest-priority) occurrence of each vendor, up to `limit`.

    Vendors cut by the limit are not marked as seen.
    """
    kept: List[TierResult] = []
    for result in results:
        if limit is not None and len(kept) >= limit:
            break
        if result.vendor.id in seen:
            continue
        seen.add(result.vendor.id)
        kept.append(result)
    return kept
