# backend/tests/conftest.py
"""
Shared pytest configuration for the vendor search backend.

Sets test-mode environment before any application import so the module-level
engine never points at a developer database, and provides a small taxonomy
snapshot reused by the normalizer, facet and façade tests.
"""

import os

# Set BEFORE any vendor_search imports
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("CI", "true")

from types import SimpleNamespace
from typing import Any, Dict, List

import pytest

from vendor_search.services.search.config import reset_search_config
from vendor_search.services.search.taxonomy_normalizer import TaxonomyIndex

# Three-level taxonomy: Wedding → {Photography, Catering} → services
TAXONOMY_ROWS: List[Dict[str, Any]] = [
    {
        "taxonomy_id": "wedding",
        "entry_type": "category",
        "name": "Wedding",
        "parent_id": None,
        "keywords": ["wedding", "shaadi", "marriage"],
        "icon": "💍",
        "sort_order": 0,
    },
    {
        "taxonomy_id": "photography",
        "entry_type": "subcategory",
        "name": "Photography",
        "parent_id": "wedding",
        "keywords": ["photography", "photos", "camera"],
        "icon": "📷",
        "sort_order": 0,
    },
    {
        "taxonomy_id": "catering",
        "entry_type": "subcategory",
        "name": "Catering",
        "parent_id": "wedding",
        "keywords": ["catering", "food"],
        "icon": None,
        "sort_order": 0,
    },
    {
        "taxonomy_id": "photographer",
        "entry_type": "service",
        "name": "Photographer",
        "parent_id": "photography",
        "keywords": ["photographer", "wedding photographer", "photo"],
        "icon": "📸",
        "sort_order": 0,
    },
    {
        "taxonomy_id": "videographer",
        "entry_type": "service",
        "name": "Videographer",
        "parent_id": "photography",
        "keywords": ["videographer", "video", "cinematography"],
        "icon": "🎥",
        "sort_order": 0,
    },
    {
        "taxonomy_id": "caterer",
        "entry_type": "service",
        "name": "Caterer",
        "parent_id": "catering",
        "keywords": ["caterer", "food", "buffet"],
        "icon": None,
        "sort_order": 0,
    },
]


@pytest.fixture(autouse=True)
def _fresh_search_config():
    """Every test starts from environment defaults."""
    reset_search_config()
    yield
    reset_search_config()


@pytest.fixture
def taxonomy_rows() -> List[Dict[str, Any]]:
    return [dict(row) for row in TAXONOMY_ROWS]


@pytest.fixture
def taxonomy_index() -> TaxonomyIndex:
    return TaxonomyIndex.from_rows(SimpleNamespace(**row) for row in TAXONOMY_ROWS)
