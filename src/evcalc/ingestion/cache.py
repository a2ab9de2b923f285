"""Redis-backed cache for upstream offers and computed EV results.

Two layers share one connection:
- offers, keyed per offer id and participant, with a content hash used to
  detect changes and invalidate dependent EV results;
- EV results, keyed by the full request signature.

Cache failures never propagate: they are logged and treated as a miss or a
no-op store.
"""

import asyncio
import hashlib
import logging
from typing import Optional

import redis.asyncio as redis
from pydantic import ValidationError
from redis.exceptions import RedisError

from evcalc.models import CalculateEVRequest, CalculateEVResponse, Offer

logger = logging.getLogger(__name__)

API_CACHE_PREFIX = "oddsshopper:offers:"
API_HASH_PREFIX = "oddsshopper:hash:"
EV_CACHE_PREFIX = "ev:calc:"

CACHE_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


def _format_line(line: float) -> str:
    """Render a line the way it appears in keys: 25.5 -> '25.5', 25.0 -> '25'."""
    line = float(line)
    return str(int(line)) if line.is_integer() else repr(line)


def generate_ev_cache_key(request: CalculateEVRequest) -> str:
    """
    Build a deterministic key from the EV request signature.

    Format: ev:calc:{offer}:{player}:{line}:{side}:{target}:{sharps}:{method},
    with sharps sorted and deduplicated so their order never matters.
    """
    sharps = ",".join(sorted(set(request.sharps)))
    parts = [
        request.offer_id,
        request.player_id,
        _format_line(request.line),
        request.side,
        request.target_book,
        sharps,
        request.devig_method,
    ]
    return EV_CACHE_PREFIX + ":".join(parts)


def generate_offer_hash(offer: Offer) -> str:
    """Hash an offer's canonical JSON for change detection."""
    payload = offer.model_dump_json(by_alias=True)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class RedisCache:
    """Explicitly constructed cache client; call ``connect`` before use."""

    def __init__(
        self,
        redis_url: Optional[str] = None,
        api_ttl: int = 60,
        ev_ttl: int = 300,
        client: Optional[redis.Redis] = None,
    ):
        self.redis_url = redis_url
        self.api_ttl = api_ttl
        self.ev_ttl = ev_ttl
        self._client = client

    @property
    def available(self) -> bool:
        return self._client is not None

    async def connect(self) -> bool:
        """
        Create the Redis client once and verify it with PING.

        Returns:
            True if caching is enabled, False if unconfigured or unreachable
        """
        if self._client is not None:
            return True

        if not self.redis_url:
            logger.warning("REDIS_URL not configured - caching disabled")
            return False

        client = redis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)
        try:
            await client.ping()
        except CACHE_ERRORS as e:
            logger.warning(f"Redis unavailable at {self.redis_url}: {e} - caching disabled")
            await client.aclose()
            return False

        self._client = client
        logger.info("Redis cache connected")
        return True

    async def close(self) -> None:
        """Release the Redis connection if one was opened."""
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    # Offer layer
    async def get_offer(self, offer_id: str, participant_id: str) -> Offer | None:
        if self._client is None:
            return None

        key = f"{API_CACHE_PREFIX}{offer_id}:{participant_id}"
        try:
            cached = await self._client.get(key)
        except CACHE_ERRORS as e:
            logger.error(f"Redis get error (offer) for {key}: {e}")
            return None

        if cached is None:
            return None
        try:
            return Offer.model_validate_json(cached)
        except ValidationError:
            logger.warning(f"Cache validation failed for offer data at {key}")
            return None

    async def set_offer(self, offer_id: str, participant_id: str, offer: Offer) -> None:
        """Store an offer, invalidating dependent EV results if its content changed."""
        if self._client is None:
            return

        cache_key = f"{API_CACHE_PREFIX}{offer_id}:{participant_id}"
        hash_key = f"{API_HASH_PREFIX}{offer_id}:{participant_id}"
        new_hash = generate_offer_hash(offer)

        try:
            old_hash = await self._client.get(hash_key)
            if old_hash and old_hash != new_hash:
                await self.invalidate_ev_results(offer_id, participant_id)

            await self._client.set(cache_key, offer.model_dump_json(by_alias=True), ex=self.api_ttl)
            await self._client.set(hash_key, new_hash, ex=self.api_ttl)
        except CACHE_ERRORS as e:
            logger.error(f"Redis set error (offer) for {cache_key}: {e}")

    async def set_offers(self, offer_id: str, offers: list[Offer]) -> None:
        """Cache each offer under its first participant's id."""
        for offer in offers:
            if offer.participants:
                await self.set_offer(offer_id, offer.participants[0].id, offer)

    # EV result layer
    async def get_ev_result(self, request: CalculateEVRequest) -> CalculateEVResponse | None:
        if self._client is None:
            return None

        key = generate_ev_cache_key(request)
        try:
            cached = await self._client.get(key)
        except CACHE_ERRORS as e:
            logger.error(f"Redis get error (EV) for {key}: {e}")
            return None

        if cached is None:
            return None
        try:
            return CalculateEVResponse.model_validate_json(cached)
        except ValidationError:
            logger.warning(f"Cache validation failed for EV result at {key}")
            return None

    async def set_ev_result(
        self,
        request: CalculateEVRequest,
        result: CalculateEVResponse,
    ) -> None:
        if self._client is None:
            return

        key = generate_ev_cache_key(request)
        try:
            await self._client.set(key, result.model_dump_json(by_alias=True), ex=self.ev_ttl)
        except CACHE_ERRORS as e:
            logger.error(f"Redis set error (EV) for {key}: {e}")

    async def invalidate_ev_results(self, offer_id: str, participant_id: str) -> int:
        """
        Delete every cached EV result for an offer and participant.

        Returns:
            Number of keys deleted
        """
        if self._client is None:
            return 0

        pattern = f"{EV_CACHE_PREFIX}{offer_id}:{participant_id}:*"
        deleted = 0
        try:
            async for key in self._client.scan_iter(match=pattern, count=100):
                deleted += await self._client.delete(key)
        except CACHE_ERRORS as e:
            logger.error(f"Redis invalidation error for {pattern}: {e}")

        if deleted:
            logger.info(
                f"Invalidated {deleted} EV cache entries for offer {offer_id}, "
                f"participant {participant_id}"
            )
        return deleted
