"""Vig removal for two-outcome (Over/Under) markets.

All methods operate on the implied values of the requested side (p1) and the
opposite side (p2). For exactly two outcomes Shin reduces to additive:
subtracting the two Shin quadratics with p1 + p2 = 1 and β = π1 + π2 gives
p1 − p2 = π1 − π2, hence p1 = π1 − (β − 1) / 2.
"""

from typing import Callable, Sequence

from evcalc.errors import DevigError
from evcalc.models import DevigMethod, Outcome, SideLabel
from evcalc.result import Err, Ok, Result

POWER_K_MIN = 1.0
POWER_K_MAX = 10.0
POWER_MAX_ITERATIONS = 20
POWER_TOLERANCE = 1e-5

# Share of the overround charged to each side by the skewed totals method
OS_SKEW_OVER_WEIGHT = 0.65
OS_SKEW_UNDER_WEIGHT = 0.35


def devig_multiplicative(p1: float, p2: float) -> float:
    """Remove margin proportionally: p1 / (p1 + p2)."""
    return p1 / (p1 + p2)


def devig_additive(p1: float, p2: float) -> float:
    """Split the overround evenly between both sides."""
    overround = p1 + p2 - 1
    return p1 - overround / 2


def devig_shin(p1: float, p2: float) -> float:
    """Shin method; identical to additive for two outcomes."""
    return devig_additive(p1, p2)


def devig_power(p1: float, p2: float) -> float:
    """
    Solve p1^k + p2^k = 1 for k by bisection over [1, 10] and return p1^k.

    The search is capped at 20 iterations. If it has not converged within
    tolerance by then, the last midpoint is used.
    """
    k_min, k_max = POWER_K_MIN, POWER_K_MAX
    k = k_min
    for _ in range(POWER_MAX_ITERATIONS):
        k = (k_min + k_max) / 2
        total = p1**k + p2**k
        if abs(total - 1) < POWER_TOLERANCE:
            break
        if total > 1:
            k_min = k
        else:
            k_max = k

    return p1**k


def devig_os_skewed(p1: float, p2: float, side: SideLabel) -> float:
    """Charge 65% of the overround to Over and 35% to Under."""
    overround = p1 + p2 - 1
    weight = OS_SKEW_OVER_WEIGHT if side == "Over" else OS_SKEW_UNDER_WEIGHT
    return p1 - weight * overround


DEVIG_METHODS: dict[str, Callable[[float, float, SideLabel], float]] = {
    "multiplicative": lambda p1, p2, side: devig_multiplicative(p1, p2),
    "additive": lambda p1, p2, side: devig_additive(p1, p2),
    "shin": lambda p1, p2, side: devig_shin(p1, p2),
    "power": lambda p1, p2, side: devig_power(p1, p2),
    "os_skewed": devig_os_skewed,
}


def devig_odds(
    outcomes: Sequence[Outcome],
    side: SideLabel,
    method: DevigMethod = "multiplicative",
) -> Result[float, DevigError]:
    """Estimate the fair probability of ``side`` from a two-outcome market.

    Args:
        outcomes: Outcomes of one book's two-sided market
        side: Label to return the fair probability for
        method: Devig method token

    Returns:
        Ok(fair probability) or Err(DevigError) when the pair is incomplete,
        either implied value is not positive, or the method is unknown
    """
    target = next((o for o in outcomes if o.label == side), None)
    opposite = next((o for o in outcomes if o.label != side), None)

    if target is None or opposite is None:
        return Err(
            DevigError(f"Incomplete market: Missing outcome for {side} or its opposite.")
        )

    p1 = target.odds
    p2 = opposite.odds

    if p1 + p2 == 0:
        return Err(
            DevigError("Market data error: Implied probability cannot be zero (total is zero).")
        )
    if p1 <= 0 or p2 <= 0:
        return Err(
            DevigError(
                f"Market data error: Implied probability must be positive (got {p1:g} and {p2:g})."
            )
        )

    devig = DEVIG_METHODS.get(method)
    if devig is None:
        return Err(DevigError(f"Unsupported devigging method: {method}"))

    return Ok(devig(p1, p2, side))
