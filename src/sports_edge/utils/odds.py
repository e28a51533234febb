"""Odds conversion and manipulation utilities.

All conversions fail soft: a missing, zero or non-finite moneyline becomes a
neutral 0.5 probability and an out-of-range probability becomes the 0 line
sentinel. Pass a ``Diagnostics`` to see when that happened.
"""

from typing import Any, Optional, Tuple

from .diagnostics import Diagnostics, record_fallback
from .numbers import coerce_float

NEUTRAL_PROBABILITY = 0.5
NO_LINE = 0

# Implied probabilities summing to at most 1 + this carry no measurable overround
VIG_EPSILON = 1e-9


def moneyline_to_fair_probability(
    moneyline: Any, diagnostics: Optional[Diagnostics] = None
) -> float:
    """Convert an American moneyline to its implied probability."""
    ml = coerce_float(moneyline)
    if ml is None or ml == 0:
        record_fallback(
            diagnostics, "neutral_probability", "moneyline is missing, zero or non-finite", moneyline
        )
        return NEUTRAL_PROBABILITY
    if ml > 0:
        return 100 / (ml + 100)
    return abs(ml) / (abs(ml) + 100)


def remove_vig(prob1: float, prob2: float) -> Tuple[float, float]:
    """Remove the bookmaker margin from a two-outcome market.

    Returns:
        Tuple of (side 1 probability, side 2 probability) summing to 1 when
        the inputs carried an overround, else the inputs unchanged.
    """
    total = prob1 + prob2
    if total <= 1 + VIG_EPSILON:
        return prob1, prob2
    return prob1 / total, prob2 / total


def devig_moneylines(
    moneyline1: Any, moneyline2: Any, diagnostics: Optional[Diagnostics] = None
) -> Tuple[float, float]:
    """Fair (vig-free) probabilities for both sides of a moneyline market."""
    return remove_vig(
        moneyline_to_fair_probability(moneyline1, diagnostics),
        moneyline_to_fair_probability(moneyline2, diagnostics),
    )


def probability_to_moneyline(
    probability: float, diagnostics: Optional[Diagnostics] = None
) -> int:
    """Convert a win probability to the American moneyline it implies.

    Returns 0 (no line) for probabilities outside (0, 1).
    """
    p = coerce_float(probability)
    if p is None or p <= 0 or p >= 1:
        record_fallback(diagnostics, "no_line", "probability outside (0, 1)", probability)
        return NO_LINE
    if p >= 0.5:
        return -round(p / (1 - p) * 100)
    return round((1 - p) / p * 100)


def payout_multiplier(american_odds: float) -> float:
    """Decimal payout per unit staked, stake included (+150 -> 2.5, -200 -> 1.5)."""
    if american_odds > 0:
        return (american_odds / 100) + 1
    return 1 + (100 / abs(american_odds))


def profit_for_win(american_odds: float, stake: float) -> float:
    """Net profit of a winning bet."""
    return stake * (payout_multiplier(american_odds) - 1)


def expected_value(probability: float, american_odds: float, stake: float = 100.0) -> float:
    """
    Expected profit of a bet.

    Args:
        probability: Model probability of the outcome
        american_odds: American odds offered
        stake: Amount wagered

    Returns:
        Expected profit in the stake's units (per $100 by default)
    """
    profit_if_win = payout_multiplier(american_odds) - 1
    return (probability * profit_if_win - (1 - probability)) * stake


def is_valid_moneyline(value: Any) -> bool:
    """True for usable American odds (|odds| >= 100)."""
    ml = coerce_float(value)
    return ml is not None and abs(ml) >= 100
