"""OddsShopper live-outcomes client with offer caching."""

import asyncio
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import aiohttp
from pydantic import ValidationError

from evcalc.config import AppConfig
from evcalc.errors import ApiError, OfferNotFoundError, ParticipantNotFoundError
from evcalc.ingestion.base import OfferProvider
from evcalc.ingestion.cache import RedisCache
from evcalc.models import Offer, OfferList
from evcalc.odds.market import find_offer_for_participant
from evcalc.result import Err, Ok, Result

logger = logging.getLogger(__name__)

LIVE_WINDOW = timedelta(hours=24)


def _iso_utc(ts: datetime) -> str:
    """Format like JavaScript's toISOString(): millisecond precision, 'Z' suffix."""
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


class OddsShopperClient(OfferProvider):
    """
    Fetches live outcomes for an offer from the OddsShopper API.

    Every successfully fetched offer is written to the offer cache (unless the
    caller bypasses the cache), keyed by its first participant.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        cache: Optional[RedisCache] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.cache = cache

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        cache: Optional[RedisCache] = None,
    ) -> "OddsShopperClient":
        return cls(
            base_url=config.api_base_url,
            timeout_seconds=config.request_timeout_seconds,
            cache=cache,
        )

    async def fetch_offer_data(
        self,
        offer_id: str,
        skip_cache: bool = False,
    ) -> Result[list[Offer], ApiError | OfferNotFoundError]:
        result = await self.fetch_from_api(offer_id)

        if isinstance(result, Ok) and self.cache is not None and not skip_cache:
            await self.cache.set_offers(offer_id, result.value)

        return result

    async def fetch_offer_for_participant(
        self,
        offer_id: str,
        participant_id: str,
        skip_cache: bool = False,
    ) -> Result[Offer, ApiError | OfferNotFoundError | ParticipantNotFoundError]:
        if self.cache is not None and not skip_cache:
            cached = await self.cache.get_offer(offer_id, participant_id)
            if cached is not None:
                logger.debug(f"Offer cache hit for {offer_id}:{participant_id}")
                return Ok(cached)

        result = await self.fetch_from_api(offer_id)
        if isinstance(result, Err):
            return result

        if self.cache is not None:
            await self.cache.set_offers(offer_id, result.value)

        return find_offer_for_participant(result.value, participant_id)

    async def fetch_from_api(
        self,
        offer_id: str,
    ) -> Result[list[Offer], ApiError | OfferNotFoundError]:
        """
        Fetch and validate all offers for an offer id, bypassing any cache.

        Args:
            offer_id: Upstream offer identifier

        Returns:
            Ok(list of offers), Err(OfferNotFoundError) on 404 or a non-list
            body, Err(ApiError) on any other status, schema mismatch, or
            network/timeout/decode failure
        """
        now = datetime.now(timezone.utc)
        url = f"{self.base_url}/api/offers/{offer_id}/outcomes/live"
        params = {
            "startDate": _iso_utc(now),
            "endDate": _iso_utc(now + LIVE_WINDOW),
            "sortBy": "Time",
        }

        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url, params=params) as resp:
                    if resp.status == 404:
                        logger.info(f"Offer {offer_id} not found upstream")
                        return Err(OfferNotFoundError(offer_id))
                    if resp.status != 200:
                        logger.warning(
                            f"OddsShopper returned status {resp.status} for offer {offer_id}"
                        )
                        return Err(ApiError(f"Upstream error: {resp.reason}", resp.status))

                    response_text = await resp.text()

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"OddsShopper request failed for offer {offer_id}: {e}")
            return Err(ApiError(f"Network or parsing failure: {str(e) or type(e).__name__}"))

        try:
            raw = json.loads(response_text)
        except json.JSONDecodeError as e:
            logger.warning(f"OddsShopper returned invalid JSON for offer {offer_id}: {e}")
            return Err(ApiError(f"Network or parsing failure: {e}"))

        if not isinstance(raw, list):
            return Err(OfferNotFoundError(offer_id))

        try:
            offers = OfferList.validate_python(raw)
        except ValidationError as e:
            logger.warning(f"OddsShopper payload failed validation for offer {offer_id}")
            return Err(ApiError(f"Upstream error: {e}"))

        logger.info(f"Fetched {len(offers)} offers for offer {offer_id}")
        return Ok(offers)
