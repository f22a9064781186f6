"""Tests for portal.routing.tier_catalog — YAML catalogue with fallback."""
from unittest.mock import patch

import pytest

from portal.routing import tier_catalog


@pytest.fixture(autouse=True)
def _clear_cache():
    tier_catalog._tier_config = None
    yield
    tier_catalog._tier_config = None


class TestTierCatalog:

    def test_names(self):
        assert tier_catalog.tier_name(1) == 'The Concept'
        assert tier_catalog.tier_name(4) == 'KAA White Glove'

    def test_prices_in_minor_units(self):
        assert tier_catalog.tier_price(1) == 29900
        assert tier_catalog.tier_price(3) == 499900

    def test_tier_4_has_no_checkout_price(self):
        assert tier_catalog.tier_price(4) is None

    def test_unknown_tier(self):
        assert tier_catalog.get_tier(9) == {}
        assert tier_catalog.tier_name(9) == 'Tier 9'

    def test_config_is_cached(self):
        assert tier_catalog.load_tier_config() is tier_catalog.load_tier_config()

    def test_falls_back_when_yaml_missing(self):
        with patch('portal.routing.tier_catalog.open', side_effect=FileNotFoundError('gone'), create=True):
            config = tier_catalog.load_tier_config()
        assert config['version'] == 'default'
        assert tier_catalog.tier_price(2) == 149900
