# backend/vendor_search/repositories/vendor_repository.py
"""
Vendor store: the three tier queries used by the ranker.

Every query is restricted to active, approved vendors and ANDs the caller's
VendorPredicates on top. Each method returns `(Vendor, distance_km)` pairs;
distance is None when no origin is given or the vendor has no coordinates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Collection, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.constants import APPROVAL_APPROVED
from ..core.exceptions import RepositoryException
from ..models.vendor import Vendor
from ..services.search.geo import GeoPoint, haversine_km
from ..services.search.types import BudgetRange
from .base_repository import BaseRepository
from .geo_repository import normalize_area_name, within_box

logger = logging.getLogger(__name__)

VendorHit = Tuple[Vendor, Optional[float]]


@dataclass(frozen=True)
class VendorPredicates:
    """Filters ANDed onto every tier query."""

    category_ids: Tuple[str, ...] = ()
    # Low-confidence broadening: also match name/business_name substrings
    text_query: Optional[str] = None
    verified_only: bool = False
    min_rating: Optional[float] = None
    budget: BudgetRange = field(default_factory=BudgetRange)

    def with_budget(self, budget: BudgetRange) -> "VendorPredicates":
        return VendorPredicates(
            category_ids=self.category_ids,
            text_query=self.text_query,
            verified_only=self.verified_only,
            min_rating=self.min_rating,
            budget=budget,
        )


def _distance(origin: Optional[GeoPoint], vendor: Vendor) -> Optional[float]:
    if origin is None:
        return None
    point = GeoPoint.from_row(vendor)
    if point is None:
        return None
    return haversine_km(origin, point)


class VendorRepository(BaseRepository[Vendor]):
    """Repository for tiered vendor lookups."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, Vendor)

    # ── Query building ────────────────────────────────────────────

    def _base_query(self, predicates: VendorPredicates) -> Query:
        query = self.db.query(Vendor).filter(
            Vendor.is_active.is_(True),
            Vendor.approval_status == APPROVAL_APPROVED,
        )

        category_ids = list(predicates.category_ids)
        text = (predicates.text_query or "").strip()
        if text:
            pattern = f"%{text}%"
            clauses = [Vendor.name.ilike(pattern), Vendor.business_name.ilike(pattern)]
            if category_ids:
                clauses.append(Vendor.service_type.in_(category_ids))
            query = query.filter(or_(*clauses))
        elif category_ids:
            query = query.filter(Vendor.service_type.in_(category_ids))

        if predicates.verified_only:
            query = query.filter(Vendor.verified.is_(True))

        if predicates.min_rating is not None:
            query = query.filter(Vendor.rating >= predicates.min_rating)

        budget = predicates.budget
        # Closed overlap; a vendor with one price bound is treated as a point.
        # NULL comparisons drop unpriced vendors whenever a bound is given.
        if budget.max is not None:
            query = query.filter(func.coalesce(Vendor.price_min, Vendor.price_max) <= budget.max)
        if budget.min is not None:
            query = query.filter(func.coalesce(Vendor.price_max, Vendor.price_min) >= budget.min)

        return query

    @staticmethod
    def _ranked(query: Query) -> Query:
        return query.order_by(
            Vendor.is_featured.desc(),
            Vendor.rating.desc(),
            Vendor.review_count.desc(),
            Vendor.id,
        )

    # ── Tier queries ──────────────────────────────────────────────

    def find_by_area(
        self,
        city: str,
        area: str,
        predicates: VendorPredicates,
        limit: int,
        origin: Optional[GeoPoint] = None,
    ) -> List[VendorHit]:
        """
        Vendors whose city matches case-insensitively and whose area has the
        same normalized name ("Vijay-Nagar" and "vijay  nagar" both match
        "Vijay Nagar"). The limit applies after the area match.
        """
        target = normalize_area_name(area)
        if not target:
            return []
        try:
            query = self._base_query(predicates).filter(
                func.lower(Vendor.city) == city.strip().lower(),
                Vendor.area.isnot(None),
            )
            rows = self._ranked(query).all()
        except SQLAlchemyError as e:
            self.logger.error("Error finding vendors in %s/%s: %s", area, city, e)
            raise RepositoryException(f"Failed to find vendors by area: {e}") from e

        matched = [row for row in rows if normalize_area_name(row.area) == target]
        return [(row, _distance(origin, row)) for row in matched[:limit]]

    def find_near(
        self,
        point: GeoPoint,
        radius_km: float,
        predicates: VendorPredicates,
        limit: int,
        exclude_city: Optional[str] = None,
        exclude_ids: Collection[str] = (),
    ) -> List[VendorHit]:
        """
        Vendors within `radius_km` of `point`, nearest first.

        `exclude_city` and `exclude_ids` are applied before the limit.
        """
        try:
            query = within_box(self._base_query(predicates), Vendor, point, radius_km)
            if exclude_city:
                query = query.filter(func.lower(Vendor.city) != exclude_city.strip().lower())
            if exclude_ids:
                query = query.filter(Vendor.id.notin_(list(exclude_ids)))
            rows = query.all()
        except SQLAlchemyError as e:
            self.logger.error("Error finding vendors near %s: %s", point, e)
            raise RepositoryException(f"Failed to find nearby vendors: {e}") from e

        hits: List[Tuple[Vendor, float]] = []
        for row in rows:
            distance = _distance(point, row)
            if distance is not None and distance <= radius_km:
                hits.append((row, distance))
        hits.sort(key=lambda hit: (hit[1], str(hit[0].id)))
        return list(hits[:limit])

    def find_by_city(
        self,
        city: str,
        predicates: VendorPredicates,
        limit: int,
        origin: Optional[GeoPoint] = None,
        exclude_within_km: Optional[float] = None,
    ) -> List[VendorHit]:
        """
        Vendors in `city`, case-insensitive.

        With `origin` and `exclude_within_km`, vendors inside that radius are
        skipped before the limit is applied.
        """
        try:
            query = self._base_query(predicates).filter(
                func.lower(Vendor.city) == city.strip().lower()
            )
            query = self._ranked(query)
            if exclude_within_km is None or origin is None:
                rows: Sequence[Vendor] = query.limit(limit).all()
                return [(row, _distance(origin, row)) for row in rows]
            rows = query.all()
        except SQLAlchemyError as e:
            self.logger.error("Error finding vendors in city %s: %s", city, e)
            raise RepositoryException(f"Failed to find vendors by city: {e}") from e

        hits: List[VendorHit] = []
        for row in rows:
            distance = _distance(origin, row)
            if distance is not None and distance <= exclude_within_km:
                continue
            hits.append((row, distance))
            if len(hits) >= limit:
                break
        return hits
