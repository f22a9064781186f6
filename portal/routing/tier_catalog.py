"""
Tier catalogue loader — names, taglines and checkout prices per tier.

Follows the same pattern as the other YAML configs: file next to the module,
in-memory cache, hardcoded fallback if the file is missing.
"""
import logging
import os
from typing import Optional

import yaml

logger = logging.getLogger('routing.tiers')


_tier_config = None


def _default_config():
    """Hardcoded fallback if YAML is missing."""
    return {
        'version': 'default',
        'currency': 'usd',
        'tiers': {
            1: {'name': 'The Concept', 'tagline': 'No-Touch, Fully Automated', 'price': 29900},
            2: {'name': 'The Builder', 'tagline': 'Low-Touch, Systematized with Checkpoints', 'price': 149900},
            3: {'name': 'The Concierge', 'tagline': 'Site Visits, Hybrid Tech + Boots on Ground', 'price': 499900},
            4: {'name': 'KAA White Glove', 'tagline': 'High-Touch, We Choose the Client', 'price': None},
        },
    }


def load_tier_config() -> dict:
    """Load tier config from YAML, with in-memory cache and hardcoded fallback."""
    global _tier_config
    if _tier_config is not None:
        return _tier_config

    config_path = os.path.join(os.path.dirname(__file__), 'tiers.yaml')
    try:
        with open(config_path, 'r') as f:
            _tier_config = yaml.safe_load(f)
        logger.info("Config loaded from YAML (version=%s)", _tier_config.get('version', '?'))
    except Exception as e:
        logger.warning("YAML config not found (%s), using defaults", e)
        _tier_config = _default_config()

    return _tier_config


def get_tier(tier: int) -> dict:
    """Catalogue entry for a tier, or {} if the tier is unknown."""
    return load_tier_config().get('tiers', {}).get(int(tier), {})


def tier_name(tier: int) -> str:
    return get_tier(tier).get('name') or f'Tier {tier}'


def tier_price(tier: int) -> Optional[int]:
    """Checkout price in minor units; None for custom-priced or unknown tiers."""
    return get_tier(tier).get('price')


def catalogue_currency() -> str:
    return load_tier_config().get('currency', 'usd')
