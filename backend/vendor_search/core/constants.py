"""Application-wide constants for the vendor search backend."""

from __future__ import annotations

API_TITLE = "Vendor Search API"
API_VERSION = "1.0.0"
API_DESCRIPTION = (
    "Tiered vendor search: location resolution, taxonomy normalization, "
    "proximity-tier ranking and result facets."
)
API_PREFIX = "/api/v1"

# Vendor moderation states
APPROVAL_APPROVED = "approved"
APPROVAL_PENDING = "pending"
APPROVAL_REJECTED = "rejected"

# Taxonomy levels, highest matching priority first
TAXONOMY_SERVICE = "service"
TAXONOMY_SUBCATEGORY = "subcategory"
TAXONOMY_CATEGORY = "category"
TAXONOMY_LEVELS = (TAXONOMY_SERVICE, TAXONOMY_SUBCATEGORY, TAXONOMY_CATEGORY)

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE_LAT = 111.0
