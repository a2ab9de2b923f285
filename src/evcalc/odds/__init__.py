"""Odds conversion, devigging, and market resolution."""

from evcalc.odds.conversions import (
    american_to_decimal,
    american_to_probability,
    calculate_ev_percentage,
    calculate_kelly_fraction,
)
from evcalc.odds.devig import DEVIG_METHODS, devig_odds
from evcalc.odds.market import (
    BestLine,
    extract_american_odds,
    find_available_sharp_books,
    find_best_odds_across_books,
    find_offer_for_participant,
    find_target_outcomes,
    has_complete_market,
)

__all__ = [
    "american_to_decimal",
    "american_to_probability",
    "calculate_ev_percentage",
    "calculate_kelly_fraction",
    "DEVIG_METHODS",
    "devig_odds",
    "BestLine",
    "extract_american_odds",
    "find_available_sharp_books",
    "find_best_odds_across_books",
    "find_offer_for_participant",
    "find_target_outcomes",
    "has_complete_market",
]
