"""Market resolution: locate offers, reference books, target pairs, and best lines.

Assumes each offer concerns exactly one participant; only ``participants[0]``
is matched.
"""

import math
from dataclasses import dataclass
from typing import Sequence

from evcalc.errors import (
    CalculationError,
    InvalidOddsError,
    NoSharpOutcomesError,
    ParticipantNotFoundError,
    TargetOutcomeNotCompleteError,
    TargetOutcomeNotFoundError,
)
from evcalc.models import Offer, Outcome, SideLabel
from evcalc.result import Err, Ok, Result


@dataclass
class BestLine:
    """Most favorable quote across all books for one line and side."""

    book: str
    american_odds: float


def all_outcomes(offer: Offer) -> list[Outcome]:
    """Flatten the outcomes of every side of an offer."""
    return [outcome for side in offer.sides for outcome in side.outcomes]


def line_matches(outcome: Outcome, line: float) -> bool:
    """Compare an outcome's string line numerically; unparseable lines never match."""
    try:
        return float(outcome.line) == line
    except ValueError:
        return False


def outcomes_for_book(
    outcomes: Sequence[Outcome],
    sportsbook_code: str,
    line: float | None = None,
) -> list[Outcome]:
    return [
        o
        for o in outcomes
        if o.sportsbook_code == sportsbook_code and (line is None or line_matches(o, line))
    ]


def find_offer_for_participant(
    offers: Sequence[Offer],
    participant_id: str,
) -> Result[Offer, ParticipantNotFoundError]:
    """Return the first offer whose first participant has ``participant_id``."""
    for offer in offers:
        if offer.participants and offer.participants[0].id == participant_id:
            return Ok(offer)
    return Err(ParticipantNotFoundError(participant_id))


def has_complete_market(outcomes: Sequence[Outcome], sportsbook_code: str) -> bool:
    """Check whether a book quotes at least one Over and one Under."""
    labels = {o.label for o in outcomes if o.sportsbook_code == sportsbook_code}
    return "Over" in labels and "Under" in labels


def find_available_sharp_books(
    outcomes: Sequence[Outcome],
    sharps: Sequence[str],
) -> Result[list[str], NoSharpOutcomesError]:
    """
    Filter candidate reference books to those with a complete two-sided market.

    Args:
        outcomes: Every outcome of the offer
        sharps: Candidate reference book codes (may contain duplicates)

    Returns:
        Ok(deduplicated codes in first-seen order) or Err(NoSharpOutcomesError)
        when none qualify, including when ``sharps`` is empty
    """
    present = {o.sportsbook_code for o in outcomes}
    available: list[str] = []
    for code in sharps:
        if code in available or code not in present:
            continue
        if has_complete_market(outcomes, code):
            available.append(code)

    if not available:
        return Err(NoSharpOutcomesError(list(sharps)))
    return Ok(available)


def find_target_outcomes(
    outcomes: Sequence[Outcome],
    target_book: str,
    line: float | None = None,
) -> Result[list[Outcome], TargetOutcomeNotFoundError | TargetOutcomeNotCompleteError]:
    """
    Extract the target book's Over/Under pair, optionally at a specific line.

    Only books quoting exactly one Over and one Under are supported; any other
    count (1, 3+) is rejected as incomplete.
    """
    target_outcomes = outcomes_for_book(outcomes, target_book, line)
    if not target_outcomes:
        return Err(TargetOutcomeNotFoundError(target_book))

    if len(target_outcomes) != 2 or not has_complete_market(target_outcomes, target_book):
        return Err(TargetOutcomeNotCompleteError(target_book))

    return Ok(target_outcomes)


def extract_american_odds(
    outcomes: Sequence[Outcome],
    side: SideLabel,
) -> Result[int, CalculationError]:
    """Parse the integer American odds quoted for ``side``."""
    outcome = next((o for o in outcomes if o.label == side), None)
    if outcome is None:
        return Err(CalculationError("Target Book side missing", "TARGET_BOOK_SIDE_MISSING", 409))

    try:
        american = int(outcome.american_odds)
    except ValueError:
        return Err(InvalidOddsError(outcome.american_odds))

    # Zero has no decimal equivalent
    if american == 0:
        return Err(InvalidOddsError(outcome.american_odds))
    return Ok(american)


def _parse_american(value: str) -> float | None:
    try:
        parsed = float(value)
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def find_best_odds_across_books(
    outcomes: Sequence[Outcome],
    line: float,
    side: SideLabel,
) -> Result[BestLine, CalculationError]:
    """
    Select the most favorable quote for a line and side across all books.

    Higher American odds always favor the bettor, so ordinary numeric ordering
    of the signed value applies. Ties keep the first outcome encountered.
    """
    best: BestLine | None = None
    for outcome in outcomes:
        if outcome.label != side or not line_matches(outcome, line):
            continue
        american = _parse_american(outcome.american_odds)
        if american is None:
            continue
        if best is None or american > best.american_odds:
            best = BestLine(book=outcome.sportsbook_code, american_odds=american)

    if best is None:
        return Err(
            CalculationError(
                f"No outcomes found for line {line:g} {side}",
                "NO_OUTCOMES_FOUND",
                404,
            )
        )
    return Ok(best)
