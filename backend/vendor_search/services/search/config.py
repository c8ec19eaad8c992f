# backend/vendor_search/services/search/config.py
"""
Configuration for tiered vendor search.

Provides runtime-configurable settings for:
- Search radius bounds and the Tier 4 (adjacent city) expansion
- Budget tolerance for relaxed tiers
- Per-tier result caps and timeouts
- Pagination bounds and the low-confidence taxonomy threshold

Settings are loaded from environment variables at startup and can be
temporarily overridden (tests, admin tooling) without touching the env.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, fields
import os
from threading import Lock
from typing import Any, Dict, Optional


@dataclass
class SearchConfig:
    """Configuration for tiered vendor search."""

    # Radius (km)
    default_radius_km: float = 10.0
    min_radius_km: float = 1.0
    max_radius_km: float = 50.0

    # Tier 4 runs only when Tiers 1-3 return fewer than this many vendors
    min_results_threshold: int = 5
    adjacent_radius_multiplier: float = 2.0
    max_adjacent_radius_km: float = 100.0

    # Relaxed tiers widen the requested budget by this percentage on both sides
    budget_flexibility_percent: float = 20.0

    # Per-tier result caps
    max_exact_area: int = 50
    max_nearby: int = 50
    max_same_city: int = 30
    max_adjacent_city: int = 20

    # Independent timeout for each tier query
    tier_timeout_ms: int = 2000

    # Pagination
    default_page_size: int = 20
    max_page_size: int = 100

    # Taxonomy
    low_confidence_threshold: float = 0.5
    suggestion_limit: int = 12

    # Reverse lookup for direct coordinates
    nearest_area_max_km: float = 1.5
    nearest_city_max_km: float = 50.0

    # Facets
    max_area_facets: int = 20

    @classmethod
    def from_env(cls) -> "SearchConfig":
        """Load configuration from environment variables."""
        return cls(
            default_radius_km=float(os.getenv("SEARCH_DEFAULT_RADIUS_KM", "10")),
            min_radius_km=float(os.getenv("SEARCH_MIN_RADIUS_KM", "1")),
            max_radius_km=float(os.getenv("SEARCH_MAX_RADIUS_KM", "50")),
            min_results_threshold=int(os.getenv("SEARCH_MIN_RESULTS_THRESHOLD", "5")),
            adjacent_radius_multiplier=float(os.getenv("SEARCH_ADJACENT_RADIUS_MULTIPLIER", "2")),
            max_adjacent_radius_km=float(os.getenv("SEARCH_MAX_ADJACENT_RADIUS_KM", "100")),
            budget_flexibility_percent=float(os.getenv("SEARCH_BUDGET_FLEXIBILITY_PERCENT", "20")),
            max_exact_area=int(os.getenv("SEARCH_MAX_EXACT_AREA", "50")),
            max_nearby=int(os.getenv("SEARCH_MAX_NEARBY", "50")),
            max_same_city=int(os.getenv("SEARCH_MAX_SAME_CITY", "30")),
            max_adjacent_city=int(os.getenv("SEARCH_MAX_ADJACENT_CITY", "20")),
            tier_timeout_ms=int(os.getenv("SEARCH_TIER_TIMEOUT_MS", "2000")),
            default_page_size=int(os.getenv("SEARCH_DEFAULT_PAGE_SIZE", "20")),
            max_page_size=int(os.getenv("SEARCH_MAX_PAGE_SIZE", "100")),
            low_confidence_threshold=float(os.getenv("SEARCH_LOW_CONFIDENCE_THRESHOLD", "0.5")),
            suggestion_limit=int(os.getenv("SEARCH_SUGGESTION_LIMIT", "12")),
            nearest_area_max_km=float(os.getenv("SEARCH_NEAREST_AREA_MAX_KM", "1.5")),
            nearest_city_max_km=float(os.getenv("SEARCH_NEAREST_CITY_MAX_KM", "50")),
            max_area_facets=int(os.getenv("SEARCH_MAX_AREA_FACETS", "20")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for diagnostics."""
        return asdict(self)

    def clamp_radius(self, radius_km: Optional[float]) -> float:
        if radius_km is None:
            return self.default_radius_km
        return min(max(float(radius_km), self.min_radius_km), self.max_radius_km)


# Thread-safe singleton pattern for config
_config: Optional[SearchConfig] = None
_config_lock = Lock()


def get_search_config() -> SearchConfig:
    """
    Get the search configuration singleton.

    Loads from environment on first access.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:
                _config = SearchConfig.from_env()
    return _config


def update_search_config(**overrides: Any) -> SearchConfig:
    """
    Update search configuration at runtime.

    Changes are NOT persisted to environment - they reset on server restart.
    Unknown keys raise ValueError.
    """
    global _config
    known = {f.name for f in fields(SearchConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise ValueError(f"Unknown search config keys: {sorted(unknown)}")

    with _config_lock:
        if _config is None:
            _config = SearchConfig.from_env()
        for key, value in overrides.items():
            if value is not None:
                setattr(_config, key, value)
        return _config


def reset_search_config() -> SearchConfig:
    """Reset configuration to environment defaults."""
    global _config
    with _config_lock:
        _config = SearchConfig.from_env()
        return _config
