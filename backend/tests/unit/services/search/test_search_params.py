# backend/tests/unit/services/search/test_search_params.py
"""
Unit tests for request validation: the SearchRequest schema and the
SearchParams it is turned into before any store access.
"""

from __future__ import annotations

from typing import Any, Dict

from pydantic import ValidationError
import pytest

from vendor_search.core.exceptions import InvalidBudgetRangeException, LocationRequiredException
from vendor_search.schemas.vendor_search import SearchRequest
from vendor_search.services.search.config import SearchConfig
from vendor_search.services.search.types import BudgetRange, SortMode
from vendor_search.services.search.vendor_search_service import SearchParams


def _request(**kw: Any) -> SearchRequest:
    payload: Dict[str, Any] = {"location": {"city": "Indore", "area": "Vijay Nagar"}}
    payload.update(kw)
    return SearchRequest.model_validate(payload)


class TestSearchRequestSchema:
    def test_accepts_camel_case(self) -> None:
        request = SearchRequest.model_validate(
            {"serviceId": "photographer", "location": {"areaId": "AREA01", "radiusKm": 5}}
        )
        assert request.service_id == "photographer"
        assert request.location.area_id == "AREA01"
        assert request.location.radius_km == 5

    def test_latitude_requires_longitude(self) -> None:
        with pytest.raises(ValidationError):
            SearchRequest.model_validate({"location": {"latitude": 22.7}})

    def test_rejects_unknown_fields(self) -> None:
        with pytest.raises(ValidationError):
            _request(colour="blue")

    @pytest.mark.parametrize(
        "field,value",
        [("page", 0), ("rating", 6), ("limit", 0), ("sort", "cheapest")],
    )
    def test_rejects_out_of_range(self, field: str, value: Any) -> None:
        with pytest.raises(ValidationError):
            _request(**{field: value})


class TestSearchParams:
    def test_defaults(self) -> None:
        params = SearchParams.from_request(_request(), SearchConfig())

        assert params.query is None
        assert params.page == 1
        assert params.page_size == 20
        assert params.radius_km == 10.0
        assert params.sort == SortMode.RELEVANCE
        assert params.verified_only is False
        assert params.budget == BudgetRange()

    def test_budget_min_above_max_rejected(self) -> None:
        with pytest.raises(InvalidBudgetRangeException) as exc_info:
            SearchParams.from_request(
                _request(budget={"min": 20000, "max": 10000}), SearchConfig()
            )

        assert exc_info.value.status_code == 400
        assert exc_info.value.details == {"min": 20000, "max": 10000}

    def test_equal_budget_bounds_allowed(self) -> None:
        params = SearchParams.from_request(
            _request(budget={"min": 10000, "max": 10000}), SearchConfig()
        )
        assert params.budget == BudgetRange(min=10000, max=10000)

    @pytest.mark.parametrize(
        "location",
        [None, {}, {"radiusKm": 5}, {"city": "   "}, {"area": "Vijay Nagar"}],
    )
    def test_location_required(self, location: Any) -> None:
        with pytest.raises(LocationRequiredException):
            SearchParams.from_request(_request(location=location), SearchConfig())

    def test_limit_and_radius_are_clamped(self) -> None:
        params = SearchParams.from_request(
            _request(limit=500, location={"city": "Indore", "radiusKm": 500}), SearchConfig()
        )
        assert params.page_size == 100
        assert params.radius_km == 50.0

    def test_text_is_stripped(self) -> None:
        params = SearchParams.from_request(
            _request(query="  wedding photographer ", serviceId="   "), SearchConfig()
        )
        assert params.query == "wedding photographer"
        assert params.service_id is None

    def test_sort_and_filters(self) -> None:
        params = SearchParams.from_request(
            _request(sort="price-low", verified=True, rating=4), SearchConfig()
        )
        assert params.sort == SortMode.PRICE_LOW
        assert params.verified_only is True
        assert params.min_rating == 4
