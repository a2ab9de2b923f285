"""Batch EV calculation: one upstream fetch shared by every item of an offer."""

import logging
from typing import Optional

from evcalc.engine.ev import apply_bankroll, calculate_ev_from_offer
from evcalc.errors import CalculationError, OfferNotFoundError
from evcalc.ingestion.base import OfferProvider
from evcalc.ingestion.cache import RedisCache
from evcalc.models import (
    BatchCalculateEVRequest,
    BatchCalculateEVResponse,
    BatchEVItem,
    BatchItemError,
    BatchItemFailure,
    BatchItemResult,
    BatchItemSuccess,
    CalculateEVRequest,
    Offer,
)
from evcalc.odds.market import find_offer_for_participant
from evcalc.result import Err

logger = logging.getLogger(__name__)


def _failure(index: int, error: CalculationError) -> BatchItemFailure:
    return BatchItemFailure(index=index, error=BatchItemError(**error.to_dict()))


def _all_failed(request: BatchCalculateEVRequest, error: CalculationError) -> BatchCalculateEVResponse:
    """Envelope for a shared failure: every item carries the same error."""
    count = len(request.items)
    return BatchCalculateEVResponse(
        offer_id=request.offer_id,
        total_items=count,
        success_count=0,
        error_count=count,
        results=[_failure(i, error) for i in range(count)],
    )


async def _calculate_item(
    index: int,
    item: BatchEVItem,
    offer_id: str,
    offers: list[Offer],
    cache: Optional[RedisCache],
    *,
    skip_cache: bool,
) -> BatchItemResult:
    full_request = CalculateEVRequest.from_batch_item(offer_id, item)

    if cache is not None and not skip_cache:
        cached = await cache.get_ev_result(full_request)
        if cached is not None:
            return BatchItemSuccess(index=index, result=apply_bankroll(cached, item.bankroll))

    offer_result = find_offer_for_participant(offers, item.player_id)
    if isinstance(offer_result, Err):
        return _failure(index, offer_result.error)

    ev_result = calculate_ev_from_offer(offer_result.value, item)
    if isinstance(ev_result, Err):
        return _failure(index, ev_result.error)

    if cache is not None:
        await cache.set_ev_result(full_request, ev_result.value)

    return BatchItemSuccess(index=index, result=ev_result.value)


async def calculate_ev_batch(
    request: BatchCalculateEVRequest,
    provider: OfferProvider,
    cache: Optional[RedisCache] = None,
    *,
    skip_cache: bool = False,
) -> BatchCalculateEVResponse:
    """
    Calculate EV for several bets on the same offer.

    The offer is fetched once. Items are then processed in order, each one
    independently: a failing item never affects its neighbours.

    Args:
        request: Batch request with a shared offer id
        provider: Source of offer data
        cache: EV result cache; None disables result caching
        skip_cache: Bypass cached offers and results and recompute

    Returns:
        Batch envelope with one result per item, in request order
    """
    offers_result = await provider.fetch_offer_data(request.offer_id, skip_cache=skip_cache)

    if isinstance(offers_result, Err):
        logger.warning(
            f"Batch fetch failed for offer {request.offer_id}: {offers_result.error.code}"
        )
        return _all_failed(request, offers_result.error)

    offers = offers_result.value
    if not offers:
        return _all_failed(request, OfferNotFoundError(request.offer_id))

    results: list[BatchItemResult] = []
    success_count = 0
    error_count = 0

    for index, item in enumerate(request.items):
        try:
            result = await _calculate_item(
                index, item, request.offer_id, offers, cache, skip_cache=skip_cache
            )
        except Exception as e:
            logger.exception(f"Batch item {index} for offer {request.offer_id} failed")
            result = _failure(
                index, CalculationError(str(e) or type(e).__name__, "INTERNAL_ERROR")
            )

        results.append(result)
        if result.success:
            success_count += 1
        else:
            error_count += 1

    logger.info(
        f"Batch for offer {request.offer_id}: {success_count} succeeded, {error_count} failed"
    )

    return BatchCalculateEVResponse(
        offer_id=request.offer_id,
        total_items=len(request.items),
        success_count=success_count,
        error_count=error_count,
        results=results,
    )
