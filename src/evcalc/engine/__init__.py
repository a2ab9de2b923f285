"""EV calculation pipelines for single requests and batches."""

from evcalc.engine.batch import calculate_ev_batch
from evcalc.engine.ev import (
    apply_bankroll,
    build_kelly_sizing,
    calculate_average_true_probability,
    calculate_ev,
    calculate_ev_from_offer,
)

__all__ = [
    "apply_bankroll",
    "build_kelly_sizing",
    "calculate_average_true_probability",
    "calculate_ev",
    "calculate_ev_batch",
    "calculate_ev_from_offer",
]
