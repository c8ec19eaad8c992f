# backend/tests/integration/test_search_routes.py
"""HTTP tests for the v1 search routes, /health and /metrics."""

from __future__ import annotations

from fastapi import status
from fastapi.testclient import TestClient
import pytest

from vendor_search.main import create_app
from vendor_search.routes.v1.search import get_vendor_search_service
from vendor_search.services.search.config import SearchConfig
from vendor_search.services.search.vendor_search_service import VendorSearchService

SEARCH_URL = "/api/v1/search/vendors"
PROBLEM_JSON = "application/problem+json"


@pytest.fixture
def client(seeded):
    app = create_app()
    app.dependency_overrides[get_vendor_search_service] = lambda: VendorSearchService(
        session_factory=seeded.session_factory, config=SearchConfig()
    )
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ── POST /api/v1/search/vendors ────────────────────────────────


class TestSearchVendors:
    def test_search_returns_camel_case_page(self, client: TestClient) -> None:
        resp = client.post(
            SEARCH_URL,
            json={
                "query": "photographer",
                "location": {"city": "Indore", "area": "Vijay Nagar", "radiusKm": 10},
            },
        )

        assert resp.status_code == status.HTTP_200_OK
        body = resp.json()
        assert body["total"] == 5
        assert body["totalPages"] == 1
        assert [r["matchTier"] for r in body["results"]] == [
            "exact_area",
            "exact_area",
            "nearby",
            "nearby",
            "adjacent_city",
        ]
        assert body["metadata"]["tierBreakdown"] == {
            "exactArea": 2,
            "nearby": 2,
            "sameCity": 0,
            "adjacentCity": 1,
        }
        assert body["metadata"]["searchLocation"]["source"] == "city-area-name"
        assert body["availableFilters"]["verifiedCount"] == 1

    def test_snake_case_input_accepted(self, client: TestClient) -> None:
        resp = client.post(
            SEARCH_URL,
            json={"service_id": "videographer", "location": {"city": "Indore"}},
        )

        assert resp.status_code == status.HTTP_200_OK
        assert [r["id"] for r in resp.json()["results"]] == ["V_RAU_FILMS"]

    def test_unknown_city_is_problem_404(self, client: TestClient) -> None:
        resp = client.post(SEARCH_URL, json={"location": {"city": "Gotham"}})

        assert resp.status_code == status.HTTP_404_NOT_FOUND
        assert resp.headers["content-type"].startswith(PROBLEM_JSON)
        problem = resp.json()
        assert problem["code"] == "CITY_NOT_FOUND"
        assert problem["errors"] == {"city": "Gotham"}
        assert problem["instance"] == SEARCH_URL

    def test_unknown_area_id_is_problem_404(self, client: TestClient) -> None:
        resp = client.post(SEARCH_URL, json={"location": {"areaId": "AREA_NOPE"}})

        assert resp.status_code == status.HTTP_404_NOT_FOUND
        assert resp.json()["code"] == "AREA_NOT_FOUND"

    def test_inverted_budget_is_problem_400(self, client: TestClient) -> None:
        resp = client.post(
            SEARCH_URL,
            json={"location": {"city": "Indore"}, "budget": {"min": 20000, "max": 10000}},
        )

        assert resp.status_code == status.HTTP_400_BAD_REQUEST
        assert resp.json()["code"] == "INVALID_BUDGET_RANGE"

    def test_missing_location_is_problem_400(self, client: TestClient) -> None:
        resp = client.post(SEARCH_URL, json={"query": "photographer"})

        assert resp.status_code == status.HTTP_400_BAD_REQUEST
        assert resp.json()["code"] == "LOCATION_REQUIRED"

    def test_half_coordinates_fail_validation(self, client: TestClient) -> None:
        resp = client.post(SEARCH_URL, json={"location": {"latitude": 22.75}})

        assert resp.status_code == 422
        assert resp.headers["content-type"].startswith(PROBLEM_JSON)
        assert resp.json()["code"] == "validation_error"

    def test_unknown_field_fails_validation(self, client: TestClient) -> None:
        resp = client.post(SEARCH_URL, json={"location": {"city": "Indore"}, "colour": "red"})
        assert resp.status_code == 422


# ── GET /api/v1/search/suggestions ─────────────────────────────


class TestSuggestions:
    def test_suggestions(self, client: TestClient) -> None:
        resp = client.get("/api/v1/search/suggestions", params={"q": "photo"})

        assert resp.status_code == status.HTTP_200_OK
        body = resp.json()
        assert body["query"] == "photo"
        assert body["suggestions"][0]["taxonomyId"] == "photographer"

    def test_empty_query_rejected(self, client: TestClient) -> None:
        resp = client.get("/api/v1/search/suggestions", params={"q": ""})
        assert resp.status_code == 422


# ── Health and metrics ─────────────────────────────────────────


class TestOperationalEndpoints:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/health")

        assert resp.status_code == status.HTTP_200_OK
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["checks"] == {"database": True}

    def test_metrics_exposition(self, client: TestClient) -> None:
        resp = client.get("/metrics")

        assert resp.status_code == status.HTTP_200_OK
        assert resp.headers["content-type"].startswith("text/plain")
        assert b"vendor_search_http_requests_total" in resp.content
