# backend/vendor_search/routes/v1/search.py
"""
Search routes - API v1

Versioned search endpoints under /api/v1/search.

Endpoints:
    POST /vendors       → Tiered vendor search (location, taxonomy, budget, facets)
    GET  /suggestions   → Taxonomy autocomplete for a partial query
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...core.exceptions import DomainException
from ...schemas.vendor_search import SearchRequest, SearchResponse, SuggestionsResponse
from ...services.search.vendor_search_service import VendorSearchService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["search-v1"])


def get_vendor_search_service() -> VendorSearchService:
    return VendorSearchService()


@router.post("/vendors", response_model=SearchResponse)
async def search_vendors(
    request: SearchRequest,
    service: VendorSearchService = Depends(get_vendor_search_service),
) -> SearchResponse:
    """
    Tiered vendor search.

    Results are ordered exact area → nearby → same city → adjacent city;
    `availableFilters` is derived from the returned page only.
    """
    try:
        return await service.search(request)
    except DomainException as exc:
        raise exc.to_http_exception()


@router.get("/suggestions", response_model=SuggestionsResponse)
async def search_suggestions(
    q: str = Query(..., min_length=1, max_length=100, description="Partial search text"),
    limit: Optional[int] = Query(None, ge=1, le=50, description="Maximum suggestions"),
    service: VendorSearchService = Depends(get_vendor_search_service),
) -> SuggestionsResponse:
    return await service.suggest(q, limit)
