"""EV calculation: sharp-book aggregation, target devig, EV and Kelly sizing.

Implements the single-request pipeline:
1. Return a cached result for an identical request signature (unless bypassed)
2. Fetch the participant's offer (offer cache, then upstream)
3. Resolve reference books with a complete two-sided market
4. Resolve the target book's Over/Under pair at the requested line
5. Average devigged probabilities across reference books (true probability)
6. Devig the target book's own pair (implied probability)
7. Compute EV, optional Kelly sizing, and the best available line
8. Cache the successful result
"""

import logging
from typing import Optional, Sequence

from evcalc.errors import CalculationError, DevigError
from evcalc.ingestion.base import OfferProvider
from evcalc.ingestion.cache import RedisCache
from evcalc.models import (
    BatchEVItem,
    BestAvailableOdds,
    CalculateEVRequest,
    CalculateEVResponse,
    DevigMethod,
    KellyBetSizing,
    Offer,
    Outcome,
    SideLabel,
)
from evcalc.odds.conversions import (
    american_to_decimal,
    calculate_ev_percentage,
    calculate_kelly_fraction,
)
from evcalc.odds.devig import devig_odds
from evcalc.odds.market import (
    all_outcomes,
    extract_american_odds,
    find_available_sharp_books,
    find_best_odds_across_books,
    find_target_outcomes,
    outcomes_for_book,
)
from evcalc.result import Err, Ok, Result

logger = logging.getLogger(__name__)

QUARTER_KELLY = 0.25


async def calculate_ev(
    request: CalculateEVRequest,
    provider: OfferProvider,
    cache: Optional[RedisCache] = None,
    *,
    skip_cache: bool = False,
) -> Result[CalculateEVResponse, CalculationError]:
    """
    Calculate the EV of a bet against aggregated sharp-book probabilities.

    Args:
        request: Single EV request
        provider: Source of offer data (handles its own offer cache)
        cache: EV result cache; None disables result caching
        skip_cache: Bypass cached offers and results and recompute

    Returns:
        Ok(CalculateEVResponse) or Err with the failing step's error
    """
    if cache is not None and not skip_cache:
        cached = await cache.get_ev_result(request)
        if cached is not None:
            logger.debug(f"EV cache hit for offer {request.offer_id}, player {request.player_id}")
            return Ok(apply_bankroll(cached, request.bankroll))

    offer_result = await provider.fetch_offer_for_participant(
        request.offer_id,
        request.player_id,
        skip_cache=skip_cache,
    )
    if isinstance(offer_result, Err):
        return offer_result

    ev_result = calculate_ev_from_offer(offer_result.value, request)

    if isinstance(ev_result, Ok) and cache is not None:
        await cache.set_ev_result(request, ev_result.value)

    return ev_result


def calculate_ev_from_offer(
    offer: Offer,
    request: CalculateEVRequest | BatchEVItem,
) -> Result[CalculateEVResponse, CalculationError]:
    """Run the EV pipeline against an already-resolved participant offer.

    Pure and synchronous; shared by the single and batch entry points.
    """
    outcomes = all_outcomes(offer)

    sharps_result = find_available_sharp_books(outcomes, request.sharps)
    if isinstance(sharps_result, Err):
        return sharps_result
    sharp_codes = sharps_result.value

    target_result = find_target_outcomes(outcomes, request.target_book, request.line)
    if isinstance(target_result, Err):
        return target_result
    target_outcomes = target_result.value

    odds_result = extract_american_odds(target_outcomes, request.side)
    if isinstance(odds_result, Err):
        return odds_result
    target_odds = odds_result.value

    true_prob_result = calculate_average_true_probability(
        outcomes,
        sharp_codes,
        request.side,
        request.devig_method,
        line=request.line,
    )
    if isinstance(true_prob_result, Err):
        return true_prob_result
    true_probability, sharps_used = true_prob_result.value

    # Same method as the sharps, applied to the target book's own vigged pair
    implied_result = devig_odds(target_outcomes, request.side, request.devig_method)
    if isinstance(implied_result, Err):
        return implied_result
    implied_probability = implied_result.value

    decimal_odds = american_to_decimal(target_odds)
    expected_value = calculate_ev_percentage(true_probability, decimal_odds)

    kelly = None
    if request.bankroll is not None:
        kelly = build_kelly_sizing(
            true_probability,
            decimal_odds,
            expected_value,
            request.bankroll,
        )

    best_result = find_best_odds_across_books(outcomes, request.line, request.side)
    if isinstance(best_result, Err):
        return best_result
    best = best_result.value

    player = offer.participants[0].name if offer.participants else "Unknown Player"

    return Ok(
        CalculateEVResponse(
            player=player,
            market=offer.offer_name,
            line=request.line,
            side=request.side,
            target_book=request.target_book,
            target_odds=target_odds,
            true_probability=true_probability,
            implied_probability=implied_probability,
            expected_value=expected_value,
            sharps_used=sharps_used,
            best_available_odds=BestAvailableOdds(
                sportsbook_code=best.book,
                american_odds=best.american_odds,
            ),
            kelly=kelly,
        )
    )


def calculate_average_true_probability(
    outcomes: Sequence[Outcome],
    sharp_codes: Sequence[str],
    side: SideLabel,
    method: DevigMethod,
    line: float | None = None,
) -> Result[tuple[float, list[str]], DevigError]:
    """
    Average the devigged probability of ``side`` across reference books.

    Books whose own pair fails to devig are skipped; only when every book
    fails is an error returned.

    Args:
        outcomes: Every outcome of the offer
        sharp_codes: Reference books that passed the completeness filter
        side: Side to price
        method: Devig method token
        line: Restrict each book's pair to this line when given

    Returns:
        Ok((mean fair probability, books that contributed)) or Err(DevigError)
    """
    total = 0.0
    used: list[str] = []

    for code in sharp_codes:
        book_outcomes = outcomes_for_book(outcomes, code, line)
        devig_result = devig_odds(book_outcomes, side, method)

        if isinstance(devig_result, Err):
            logger.debug(f"Skipping sharp {code}: {devig_result.error.message}")
            continue

        total += devig_result.value
        used.append(code)

    if not used:
        return Err(DevigError("No sharp books provided valid two-sided probability data."))

    return Ok((total / len(used), used))


def apply_bankroll(
    response: CalculateEVResponse,
    bankroll: float | None,
) -> CalculateEVResponse:
    """Re-size the Kelly block of a cached result for the current bankroll.

    Cached results are shared by requests that differ only in bankroll, so the
    stored block may belong to another bankroll or be missing.
    """
    if bankroll is None:
        return response.model_copy(update={"kelly": None})

    kelly = build_kelly_sizing(
        response.true_probability,
        american_to_decimal(response.target_odds),
        response.expected_value,
        bankroll,
    )
    return response.model_copy(update={"kelly": kelly})


def build_kelly_sizing(
    true_probability: float,
    decimal_odds: float,
    expected_value: float,
    bankroll: float,
) -> KellyBetSizing:
    """Size a bet at quarter Kelly and project its profit from the EV percentage."""
    full = calculate_kelly_fraction(true_probability, decimal_odds)
    quarter = full * QUARTER_KELLY
    recommended_bet = bankroll * quarter

    return KellyBetSizing(
        full=full,
        quarter=quarter,
        recommended_bet=recommended_bet,
        expected_profit=recommended_bet * (expected_value / 100),
        bankroll=bankroll,
    )
