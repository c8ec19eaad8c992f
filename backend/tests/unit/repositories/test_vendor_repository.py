# backend/tests/unit/repositories/test_vendor_repository.py
"""
Unit tests for VendorRepository tier queries against in-memory SQLite.

Covers the shared predicate set (approval, activity, taxonomy, broadening,
verified, rating, budget overlap) and the distance handling of each tier.
"""

from __future__ import annotations

from typing import Callable, List

import pytest
from sqlalchemy.orm import Session

from vendor_search.core.constants import APPROVAL_PENDING
from vendor_search.models import Vendor
from vendor_search.repositories.vendor_repository import VendorPredicates, VendorRepository
from vendor_search.services.search.geo import GeoPoint
from vendor_search.services.search.types import BudgetRange

VIJAY_NAGAR = GeoPoint(22.7533, 75.8937)

# ── Helpers ────────────────────────────────────────────────────


def _ids(hits: List[tuple]) -> List[str]:
    return [vendor.id for vendor, _ in hits]


@pytest.fixture
def repo(unit_db: Session, add_vendor: Callable[..., Vendor]) -> VendorRepository:
    add_vendor(id="VN_TOP", rating=4.8, review_count=40, price_min=8000, price_max=14000)
    add_vendor(id="VN_FEAT", rating=3.9, is_featured=True, verified=True, price_min=16000)
    add_vendor(
        id="VN_CATER",
        name="Annapurna",
        business_name="Annapurna Caterers",
        service_type="caterer",
        area="VIJAY NAGAR",
        price_min=300,
        price_max=800,
    )
    add_vendor(id="VN_PENDING", approval_status=APPROVAL_PENDING)
    add_vendor(id="VN_INACTIVE", is_active=False)
    add_vendor(id="PALASIA", area="Palasia", latitude=22.7244, longitude=75.8839)
    add_vendor(id="RAU", area="Rau", latitude=22.6350, longitude=75.8110)
    add_vendor(id="NO_COORDS", area="Rajwada", latitude=None, longitude=None)
    add_vendor(id="DEWAS", city="Dewas", area="Civil Lines", latitude=22.9660, longitude=76.0550)
    unit_db.flush()
    return VendorRepository(unit_db)


class TestFindByArea:
    def test_area_match_and_ranking(self, repo: VendorRepository) -> None:
        hits = repo.find_by_area(
            "indore", "Vijay Nagar", VendorPredicates(), 10, origin=VIJAY_NAGAR
        )

        # featured first, then rating; area match ignores case
        assert _ids(hits) == ["VN_FEAT", "VN_TOP", "VN_CATER"]
        assert all(distance == 0.0 for _, distance in hits)

    def test_without_origin_has_no_distance(self, repo: VendorRepository) -> None:
        hits = repo.find_by_area("Indore", "Vijay Nagar", VendorPredicates(), 1)
        assert hits[0][1] is None
        assert len(hits) == 1

    def test_vendor_area_spellings_normalized(
        self, repo: VendorRepository, unit_db: Session, add_vendor: Callable[..., Vendor]
    ) -> None:
        add_vendor(id="VN_HYPHEN", area="Vijay-Nagar", rating=3.0)
        add_vendor(id="VN_SPACES", area="Vijay  Nagar", rating=2.0)
        add_vendor(id="VN_SCHEME", area="Vijay Nagar Scheme 54")
        unit_db.flush()

        hits = repo.find_by_area("Indore", "vijay nagar", VendorPredicates(), 10)
        assert _ids(hits) == ["VN_FEAT", "VN_TOP", "VN_CATER", "VN_HYPHEN", "VN_SPACES"]

    def test_blank_area_matches_nothing(self, repo: VendorRepository) -> None:
        assert repo.find_by_area("Indore", " - ", VendorPredicates(), 10) == []

    def test_taxonomy_filter(self, repo: VendorRepository) -> None:
        predicates = VendorPredicates(category_ids=("caterer",))
        assert _ids(repo.find_by_area("Indore", "Vijay Nagar", predicates, 10)) == ["VN_CATER"]

    def test_broadening_ors_vendor_names(self, repo: VendorRepository) -> None:
        predicates = VendorPredicates(category_ids=("dj",), text_query="caterers")
        assert _ids(repo.find_by_area("Indore", "Vijay Nagar", predicates, 10)) == ["VN_CATER"]


class TestPredicates:
    def test_verified_and_rating(self, repo: VendorRepository) -> None:
        verified = VendorPredicates(verified_only=True)
        assert _ids(repo.find_by_area("Indore", "Vijay Nagar", verified, 10)) == ["VN_FEAT"]

        rated = VendorPredicates(min_rating=4.5)
        assert _ids(repo.find_by_area("Indore", "Vijay Nagar", rated, 10)) == ["VN_TOP"]

    def test_budget_overlap_drops_unpriced(self, repo: VendorRepository) -> None:
        predicates = VendorPredicates(budget=BudgetRange(min=5000, max=15000))
        hits = repo.find_by_area("Indore", "Vijay Nagar", predicates, 10)
        assert _ids(hits) == ["VN_TOP"]

    def test_single_bound_vendor_treated_as_point(self, repo: VendorRepository) -> None:
        predicates = VendorPredicates(budget=BudgetRange(min=15000, max=20000))
        hits = repo.find_by_area("Indore", "Vijay Nagar", predicates, 10)
        assert _ids(hits) == ["VN_FEAT"]


class TestFindNear:
    def test_within_radius_nearest_first(self, repo: VendorRepository) -> None:
        predicates = VendorPredicates(category_ids=("photographer",))
        hits = repo.find_near(VIJAY_NAGAR, 10, predicates, 10)

        assert _ids(hits) == ["VN_FEAT", "VN_TOP", "PALASIA"]
        distances = [d for _, d in hits]
        assert distances == sorted(distances)
        assert all(d <= 10 for d in distances)

    def test_exclude_city(self, repo: VendorRepository) -> None:
        hits = repo.find_near(VIJAY_NAGAR, 40, VendorPredicates(), 10, exclude_city="INDORE")
        assert _ids(hits) == ["DEWAS"]
        assert 20 < hits[0][1] < 40

    def test_limit(self, repo: VendorRepository) -> None:
        assert len(repo.find_near(VIJAY_NAGAR, 10, VendorPredicates(), 2)) == 2

    def test_exclude_ids_applied_before_limit(self, repo: VendorRepository) -> None:
        predicates = VendorPredicates(category_ids=("photographer",))
        hits = repo.find_near(
            VIJAY_NAGAR, 10, predicates, 1, exclude_ids=frozenset({"VN_FEAT", "VN_TOP"})
        )
        assert _ids(hits) == ["PALASIA"]

    def test_radius_across_antimeridian(
        self, unit_db: Session, add_vendor: Callable[..., Vendor]
    ) -> None:
        add_vendor(id="TAVEUNI", city="Suva", area="Taveuni", latitude=-17.0, longitude=-179.98)
        unit_db.flush()

        hits = VendorRepository(unit_db).find_near(
            GeoPoint(-17.0, 179.98), 10, VendorPredicates(), 5
        )
        assert _ids(hits) == ["TAVEUNI"]
        assert hits[0][1] < 5


class TestFindByCity:
    def test_excludes_vendors_inside_radius(self, repo: VendorRepository) -> None:
        hits = repo.find_by_city(
            "Indore", VendorPredicates(), 10, origin=VIJAY_NAGAR, exclude_within_km=10
        )
        # No coordinates means the distance is unknown, so the vendor stays
        assert set(_ids(hits)) == {"RAU", "NO_COORDS"}
        assert dict((v.id, d) for v, d in hits)["NO_COORDS"] is None

    def test_plain_city_listing(self, repo: VendorRepository) -> None:
        hits = repo.find_by_city("dewas", VendorPredicates(), 10)
        assert _ids(hits) == ["DEWAS"]
        assert hits[0][1] is None
