# backend/tests/unit/services/search/test_search_config.py
"""Unit tests for the runtime search configuration singleton."""

from __future__ import annotations

import pytest

from vendor_search.services.search.config import (
    SearchConfig,
    get_search_config,
    reset_search_config,
    update_search_config,
)


class TestSearchConfigDefaults:
    def test_defaults(self) -> None:
        cfg = SearchConfig()
        assert cfg.default_radius_km == 10.0
        assert (cfg.min_radius_km, cfg.max_radius_km) == (1.0, 50.0)
        assert cfg.min_results_threshold == 5
        assert cfg.budget_flexibility_percent == 20.0
        assert cfg.max_page_size == 100

    def test_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("SEARCH_DEFAULT_RADIUS_KM", "15")
        monkeypatch.setenv("SEARCH_TIER_TIMEOUT_MS", "500")
        cfg = SearchConfig.from_env()
        assert cfg.default_radius_km == 15.0
        assert cfg.tier_timeout_ms == 500

    def test_to_dict_lists_every_field(self) -> None:
        data = SearchConfig().to_dict()
        assert data["max_adjacent_radius_km"] == 100.0
        assert data["suggestion_limit"] == 12


class TestClampRadius:
    @pytest.mark.parametrize(
        "requested,expected",
        [(None, 10.0), (0.2, 1.0), (5, 5.0), (500, 50.0)],
    )
    def test_clamp(self, requested, expected) -> None:
        assert SearchConfig().clamp_radius(requested) == expected


class TestRuntimeOverrides:
    def test_update_then_reset(self) -> None:
        update_search_config(tier_timeout_ms=100, min_results_threshold=2)
        cfg = get_search_config()
        assert cfg.tier_timeout_ms == 100
        assert cfg.min_results_threshold == 2

        reset_search_config()
        assert get_search_config().tier_timeout_ms == 2000

    def test_none_values_are_ignored(self) -> None:
        update_search_config(default_radius_km=None)
        assert get_search_config().default_radius_km == 10.0

    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown search config keys"):
            update_search_config(not_a_setting=1)
