"""Upstream market-data access and caching."""

from evcalc.ingestion.base import OfferProvider
from evcalc.ingestion.cache import RedisCache, generate_ev_cache_key, generate_offer_hash
from evcalc.ingestion.oddsshopper import OddsShopperClient

__all__ = [
    "OfferProvider",
    "RedisCache",
    "generate_ev_cache_key",
    "generate_offer_hash",
    "OddsShopperClient",
]
