"""Calculate betting edge by comparing model probabilities to market prices.

Moneyline edges come straight from the model's win probability. Spread and
totals edges layer simple heuristic adjustments on top of that probability;
they are not fitted models and their constants (see ``EdgeHeuristics``) have
not been calibrated against outcomes. Treat those EVs as rough signals.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..config import Settings, get_settings
from ..config.sports import SportConfig, get_sport
from ..exceptions import ModelMismatchError, ValidationError
from ..features.engineering import derive_feature_vector, spread_winner
from ..ml.logistic import TrainedModel
from ..utils.diagnostics import Diagnostics
from ..utils.numbers import coerce_float
from ..utils.odds import expected_value, is_valid_moneyline, probability_to_moneyline

logger = logging.getLogger(__name__)

MONEYLINE = "moneyline"
SPREAD = "spread"
TOTAL = "total"
MARKETS = (MONEYLINE, SPREAD, TOTAL)

DEFAULT_STAKE = 100.0
_PROB_FLOOR = 0.01
_PROB_CEILING = 0.99

__all__ = [
    "EdgeCalculator",
    "EdgeHeuristics",
    "EdgeResult",
    "MarketLines",
    "Prediction",
    "evaluate_markets",
    "moneyline_ev",
    "over_probability",
    "predict",
    "spread_cover_probability",
    "spread_ev",
    "spread_winner",
    "total_ev",
]


@dataclass(frozen=True)
class EdgeHeuristics:
    """Constants of the spread and totals probability heuristics."""

    spread_base_factor: float = 0.85
    spread_decay: float = 0.02
    spread_min_factor: float = 0.5
    totals_slope: float = 0.3
    totals_min_prob: float = 0.4
    totals_max_prob: float = 0.6

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "EdgeHeuristics":
        settings = settings or get_settings()
        return cls(
            spread_base_factor=settings.spread_base_factor,
            spread_decay=settings.spread_decay,
            spread_min_factor=settings.spread_min_factor,
            totals_slope=settings.totals_slope,
            totals_min_prob=settings.totals_min_prob,
            totals_max_prob=settings.totals_max_prob,
        )


@dataclass(frozen=True)
class Prediction:
    """Model output for one matchup."""

    p1: float
    p2: float
    implied_line1: int
    implied_line2: int
    confidence: float  # 0 at a coin flip, 100 at certainty

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team1_win_prob": self.p1,
            "team2_win_prob": self.p2,
            "implied_line1": self.implied_line1,
            "implied_line2": self.implied_line2,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class EdgeResult:
    """Evaluation of one two-sided market."""

    market: str
    prob1: float
    prob2: float
    ev1: float  # per $100 stake
    ev2: float
    odds1: float
    odds2: float
    labels: Tuple[str, str] = ("side1", "side2")
    line: Optional[float] = None
    is_heuristic: bool = False

    @property
    def best_index(self) -> int:
        """0 for side 1, 1 for side 2; ties go to side 1."""
        return 0 if self.ev1 >= self.ev2 else 1

    @property
    def best_side(self) -> str:
        return self.labels[self.best_index]

    @property
    def best_ev(self) -> float:
        return self.ev1 if self.best_index == 0 else self.ev2

    @property
    def best_odds(self) -> float:
        return self.odds1 if self.best_index == 0 else self.odds2

    def to_dict(self) -> Dict[str, Any]:
        return {
            "market": self.market,
            "line": self.line,
            "sides": {
                self.labels[0]: {"probability": self.prob1, "ev": self.ev1, "odds": self.odds1},
                self.labels[1]: {"probability": self.prob2, "ev": self.ev2, "odds": self.odds2},
            },
            "best_side": self.best_side,
            "best_ev": self.best_ev,
            "is_heuristic": self.is_heuristic,
        }


@dataclass(frozen=True)
class MarketLines:
    """Book prices for a matchup. Missing entries skip the market."""

    moneyline1: Optional[float] = None
    moneyline2: Optional[float] = None
    spread: Optional[float] = None
    spread_odds1: Optional[float] = None
    spread_odds2: Optional[float] = None
    total: Optional[float] = None
    over_odds: Optional[float] = None
    under_odds: Optional[float] = None


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def resolve_model_sport(model: TrainedModel, sport: Optional[SportConfig] = None) -> SportConfig:
    """Sport config the model was trained for, checked against its feature list."""
    if sport is None:
        if model.sport is None:
            raise ModelMismatchError("Model has no sport; pass one explicitly")
        sport = get_sport(model.sport)
    if tuple(sport.features) != tuple(model.features):
        raise ModelMismatchError(
            f"Model features {list(model.features)} do not match {sport.key} features "
            f"{list(sport.features)}"
        )
    return sport


def predict(
    model: TrainedModel,
    inputs: Mapping[str, Any],
    sport: Optional[SportConfig] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> Prediction:
    """
    Win probabilities for a new matchup.

    Args:
        model: Trained model
        inputs: Raw value per feature name (moneylines as American odds)
        sport: Sport config; defaults to the model's sport

    Raises:
        ValidationError: naming every missing or non-numeric input
    """
    sport = resolve_model_sport(model, sport)
    vector = derive_feature_vector(inputs, sport, diagnostics)
    p = model.predict_proba(vector)
    return Prediction(
        p1=p,
        p2=1 - p,
        implied_line1=probability_to_moneyline(p, diagnostics),
        implied_line2=probability_to_moneyline(1 - p, diagnostics),
        confidence=abs(p - 0.5) * 200,
    )


def _require_odds(**odds: Any) -> Dict[str, float]:
    invalid = [name for name, value in odds.items() if not is_valid_moneyline(value)]
    if invalid:
        raise ValidationError(invalid)
    return {name: float(value) for name, value in odds.items()}


def moneyline_ev(p: float, book_ml1: Any, book_ml2: Any, stake: float = DEFAULT_STAKE) -> EdgeResult:
    """EV of each side of a moneyline given side 1's win probability ``p``."""
    odds = _require_odds(moneyline1=book_ml1, moneyline2=book_ml2)
    return EdgeResult(
        market=MONEYLINE,
        prob1=p,
        prob2=1 - p,
        ev1=expected_value(p, odds["moneyline1"], stake),
        ev2=expected_value(1 - p, odds["moneyline2"], stake),
        odds1=odds["moneyline1"],
        odds2=odds["moneyline2"],
    )


def spread_cover_probability(
    p: float, spread: float, heuristics: EdgeHeuristics = EdgeHeuristics()
) -> float:
    """Heuristic probability that side 1 covers ``spread``.

    The cover factor shrinks with the size of the spread. A favorite
    (negative spread) covers with ``p * factor``; an underdog getting points
    covers with ``p + (1 - p) * (1 - factor)``; a pick'em is ``p``.
    """
    factor = _clamp(
        heuristics.spread_base_factor - abs(spread) * heuristics.spread_decay,
        heuristics.spread_min_factor,
        heuristics.spread_base_factor,
    )
    if spread < 0:
        cover = p * factor
    elif spread > 0:
        cover = p + (1 - p) * (1 - factor)
    else:
        cover = p
    return _clamp(cover, _PROB_FLOOR, _PROB_CEILING)


def spread_ev(
    p: float,
    spread: float,
    odds1: Any,
    odds2: Any,
    heuristics: EdgeHeuristics = EdgeHeuristics(),
    stake: float = DEFAULT_STAKE,
) -> EdgeResult:
    """Heuristic EV of each side of a point spread."""
    odds = _require_odds(spread_odds1=odds1, spread_odds2=odds2)
    cover = spread_cover_probability(p, spread, heuristics)
    return EdgeResult(
        market=SPREAD,
        prob1=cover,
        prob2=1 - cover,
        ev1=expected_value(cover, odds["spread_odds1"], stake),
        ev2=expected_value(1 - cover, odds["spread_odds2"], stake),
        odds1=odds["spread_odds1"],
        odds2=odds["spread_odds2"],
        line=spread,
        is_heuristic=True,
    )


def over_probability(p: float, heuristics: EdgeHeuristics = EdgeHeuristics()) -> float:
    """Heuristic over probability: a bounded linear function of how lopsided ``p`` is."""
    lopsided = max(p, 1 - p) - 0.5
    return _clamp(
        0.5 + lopsided * heuristics.totals_slope,
        heuristics.totals_min_prob,
        heuristics.totals_max_prob,
    )


def total_ev(
    p: float,
    total_line: float,
    over_odds: Any,
    under_odds: Any,
    heuristics: EdgeHeuristics = EdgeHeuristics(),
    stake: float = DEFAULT_STAKE,
) -> EdgeResult:
    """Heuristic EV of the over and the under."""
    odds = _require_odds(over_odds=over_odds, under_odds=under_odds)
    over = over_probability(p, heuristics)
    return EdgeResult(
        market=TOTAL,
        prob1=over,
        prob2=1 - over,
        ev1=expected_value(over, odds["over_odds"], stake),
        ev2=expected_value(1 - over, odds["under_odds"], stake),
        odds1=odds["over_odds"],
        odds2=odds["under_odds"],
        labels=("over", "under"),
        line=total_line,
        is_heuristic=True,
    )


def evaluate_markets(
    p: float,
    lines: MarketLines,
    sport: SportConfig,
    heuristics: EdgeHeuristics = EdgeHeuristics(),
    stake: float = DEFAULT_STAKE,
) -> List[EdgeResult]:
    """EdgeResults for every market the sport supports and ``lines`` prices.

    Moneyline is always evaluated. Spread and totals need the sport to
    support them and both a line and two prices.
    """
    results = [moneyline_ev(p, lines.moneyline1, lines.moneyline2, stake)]

    spread = coerce_float(lines.spread)
    if sport.supports_spread and spread is not None:
        if lines.spread_odds1 is not None and lines.spread_odds2 is not None:
            results.append(
                spread_ev(p, spread, lines.spread_odds1, lines.spread_odds2, heuristics, stake)
            )

    total = coerce_float(lines.total)
    if sport.supports_total and total is not None:
        if lines.over_odds is not None and lines.under_odds is not None:
            results.append(
                total_ev(p, total, lines.over_odds, lines.under_odds, heuristics, stake)
            )

    return results


class EdgeCalculator:
    """Predict a matchup and flag the markets worth betting."""

    def __init__(
        self,
        min_ev_pct: float = 2.0,
        heuristics: Optional[EdgeHeuristics] = None,
    ):
        self.min_ev_pct = min_ev_pct
        self.heuristics = heuristics or EdgeHeuristics()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "EdgeCalculator":
        settings = settings or get_settings()
        return cls(
            min_ev_pct=settings.min_ev_pct,
            heuristics=EdgeHeuristics.from_settings(settings),
        )

    def should_bet(self, result: EdgeResult) -> bool:
        """True when the best side's EV per $100 exceeds the threshold."""
        return result.best_ev > self.min_ev_pct

    def analyze(
        self,
        model: TrainedModel,
        inputs: Mapping[str, Any],
        lines: Optional[MarketLines] = None,
        sport: Optional[SportConfig] = None,
        diagnostics: Optional[Diagnostics] = None,
    ) -> Tuple[Prediction, List[EdgeResult]]:
        """
        Predict a matchup and evaluate its markets.

        When ``lines`` has no moneylines the matchup's own moneyline inputs
        are used as the book prices.

        Returns:
            (prediction, edge results per market with EVs per $100)
        """
        sport = resolve_model_sport(model, sport)
        prediction = predict(model, inputs, sport, diagnostics)

        lines = lines or MarketLines()
        if lines.moneyline1 is None or lines.moneyline2 is None:
            ml1_name, ml2_name = sport.moneyline_features
            lines = replace(
                lines,
                moneyline1=inputs.get(ml1_name),
                moneyline2=inputs.get(ml2_name),
            )

        results = evaluate_markets(prediction.p1, lines, sport, self.heuristics)
        for result in results:
            if self.should_bet(result):
                logger.info(
                    f"{result.market}: bet {result.best_side} at {result.best_odds:+.0f} "
                    f"(EV {result.best_ev:+.2f} per $100)"
                )
        return prediction, results
