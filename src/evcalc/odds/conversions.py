"""American/decimal odds conversion, EV percentage, and Kelly fraction.

No bounds checking is done here: probabilities outside [0, 1] compute a
well-defined number rather than raising.
"""


def american_to_decimal(american: float) -> float:
    """
    Convert American odds to European decimal format.

    Args:
        american: American odds (e.g., +150, -110)

    Returns:
        Decimal odds. Zero is treated as a negative magnitude and raises
        ZeroDivisionError; callers must not pass it.
    """
    if american > 0:
        # Positive: decimal = (american / 100) + 1
        return (american / 100) + 1
    else:
        # Negative: decimal = (100 / abs(american)) + 1
        return (100 / abs(american)) + 1


def american_to_probability(american: float) -> float:
    """Convert American odds to implied probability."""
    return 1 / american_to_decimal(american)


def calculate_ev_percentage(true_prob: float, decimal_odds: float) -> float:
    """
    Calculate expected value as a percentage.

    Formula: EV = (true_prob × decimal_odds − 1) × 100

    Args:
        true_prob: Estimated true probability of the outcome
        decimal_odds: Decimal odds offered by the book

    Returns:
        EV percentage, e.g. 5.2 for +5.2%
    """
    return (true_prob * decimal_odds - 1) * 100


def calculate_kelly_fraction(true_prob: float, decimal_odds: float) -> float:
    """
    Calculate the full Kelly fraction of bankroll to stake.

    Formula: f* = (b·p − q) / b, with b = decimal_odds − 1 and q = 1 − p

    Args:
        true_prob: Estimated true probability of winning
        decimal_odds: Decimal odds offered by the book

    Returns:
        Kelly fraction, clamped to 0.0 for non-positive edges
    """
    b = decimal_odds - 1.0
    q = 1.0 - true_prob

    kelly = (b * true_prob - q) / b
    return max(0.0, kelly)  # Never bet a negative edge
