"""Feature engineering for the win-probability model.

Two derived inputs feed every sport's model:

- de-vigged moneyline probabilities for both sides, and
- rolling recent form: each competitor's win rate over its last few games.

Rolling form is computed in one chronological pass. A row's form reflects
only games strictly before it; the row's own result is appended to the
history after its form has been assigned.
"""

import logging
import math
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..config.sports import SportConfig
from ..data.records import GameRecord
from ..exceptions import InsufficientDataError, ValidationError
from ..utils.diagnostics import Diagnostics, record_fallback
from ..utils.numbers import coerce_float
from ..utils.odds import devig_moneylines

logger = logging.getLogger(__name__)

DEFAULT_FORM_WINDOW = 5
NEUTRAL_FORM = 0.5
DEFAULT_MIN_TRAINING_ROWS = 10


def spread_winner(home_score: float, away_score: float, spread: float) -> str:
    """Settle a spread bet from side 1 ("home") perspective.

    The spread is added to the home score (negative when home is favored).

    Returns:
        "home" if home covers, "away" if away covers, "push" on an exact tie
    """
    adjusted_home = home_score + spread
    if adjusted_home > away_score:
        return "home"
    if adjusted_home < away_score:
        return "away"
    return "push"


def determine_winner(record: GameRecord, against_the_spread: bool = False) -> Optional[int]:
    """Binary label for a record: 1 if side 1 won, 0 if side 2 won.

    An explicit label takes precedence. Otherwise the label is derived from the
    final scores, against the spread when requested and a spread is present.
    Ties and pushes yield None and the row is not usable for training.
    """
    if record.winner in (0, 1):
        return record.winner
    if not record.has_scores:
        return None

    if against_the_spread and record.spread is not None:
        result = spread_winner(record.team1_score, record.team2_score, record.spread)
        return {"home": 1, "away": 0}.get(result)

    if record.team1_score > record.team2_score:
        return 1
    if record.team2_score > record.team1_score:
        return 0
    return None


def straight_up_outcomes(record: GameRecord) -> Optional[Tuple[int, int]]:
    """(side 1 won, side 2 won) for the form history, or None if unknown.

    Scores are preferred; a tie counts as a loss for both sides. Without
    scores the explicit winner label is used.
    """
    if record.has_scores:
        return (
            int(record.team1_score > record.team2_score),
            int(record.team2_score > record.team1_score),
        )
    if record.winner in (0, 1):
        return (record.winner, 1 - record.winner)
    return None


def form_rate(history: Sequence[int], window: int = DEFAULT_FORM_WINDOW) -> float:
    """Win rate over the last ``window`` outcomes; 0.5 with no history."""
    recent = history[-window:]
    if not recent:
        return NEUTRAL_FORM
    return sum(recent) / len(recent)


def last5_record(history: Sequence[int], window: int = DEFAULT_FORM_WINDOW) -> str:
    """Win-loss string such as "3-2" for the last ``window`` outcomes."""
    recent = history[-window:]
    wins = sum(1 for outcome in recent if outcome == 1)
    return f"{wins}-{len(recent) - wins}"


def sort_chronologically(rows: Sequence[GameRecord]) -> List[GameRecord]:
    """Stable sort by each record's chronological key."""
    return sorted(rows, key=lambda r: r.chronological_key())


def compute_rolling_form(
    rows: Sequence[GameRecord],
    window: int = DEFAULT_FORM_WINDOW,
    against_the_spread: bool = False,
    histories: Optional[Dict[str, List[int]]] = None,
) -> List[GameRecord]:
    """Assign rolling form and winner labels in one chronological pass.

    ``rows`` must already be in chronological order; this function does not
    sort. Input records are not modified; updated copies are returned.

    Args:
        rows: Chronologically ordered records
        window: Number of prior games in the form window
        against_the_spread: Derive missing labels against the spread
        histories: Optional competitor -> outcomes mapping, filled in place

    Returns:
        New records with team1_last5, team2_last5 and winner set
    """
    if histories is None:
        histories = {}
    result = []

    for row in rows:
        history1 = histories.setdefault(row.team1, [])
        history2 = histories.setdefault(row.team2, [])

        updated = replace(
            row,
            team1_last5=form_rate(history1, window),
            team2_last5=form_rate(history2, window),
            winner=determine_winner(row, against_the_spread),
            extras=dict(row.extras),
        )
        result.append(updated)

        # Only after the row's own form is fixed
        outcomes = straight_up_outcomes(row)
        if outcomes is not None:
            history1.append(outcomes[0])
            history2.append(outcomes[1])

    return result


def derive_feature_vector(
    raw: Mapping[str, Any],
    sport: SportConfig,
    diagnostics: Optional[Diagnostics] = None,
) -> List[float]:
    """Turn raw feature values into the model's input vector.

    This is the single preprocessing path shared by training and prediction:
    the sport's two moneyline features are replaced by their de-vigged fair
    probabilities, every other feature is taken as is.

    Raises:
        ValidationError: listing every feature that is missing or not numeric
    """
    values: Dict[str, float] = {}
    invalid = []
    for name in sport.features:
        number = coerce_float(raw.get(name))
        if number is None:
            invalid.append(name)
        else:
            values[name] = number
    if invalid:
        raise ValidationError(invalid)

    # A zero moneyline is numeric but has no price; it falls back to 0.5
    ml1_name, ml2_name = sport.moneyline_features
    fair1, fair2 = devig_moneylines(values[ml1_name], values[ml2_name], diagnostics)
    values[ml1_name] = fair1
    values[ml2_name] = fair2

    vector = []
    for name in sport.features:
        value = values[name]
        if not math.isfinite(value):
            record_fallback(diagnostics, "non_finite_feature", f"{name} coerced to 0", value)
            value = 0.0
        vector.append(value)
    return vector


def build_feature_matrix(
    rows: Sequence[GameRecord],
    sport: SportConfig,
    min_rows: int = DEFAULT_MIN_TRAINING_ROWS,
    diagnostics: Optional[Diagnostics] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Build the training matrix from rows that already carry form and labels.

    Rows without a binary winner, or with any feature missing or non-finite,
    are silently skipped.

    Raises:
        InsufficientDataError: if no row has a binary label or fewer than
            ``min_rows`` rows survive filtering
    """
    X: List[List[float]] = []
    y: List[int] = []
    labelled = 0

    for row in rows:
        if row.winner not in (0, 1):
            continue
        labelled += 1
        try:
            vector = derive_feature_vector(row.raw_features(sport), sport, diagnostics)
        except ValidationError:
            continue
        X.append(vector)
        y.append(row.winner)

    skipped = len(rows) - len(X)
    logger.info(
        f"Feature matrix for {sport.key}: {len(X)} usable rows, {skipped} skipped"
    )

    if labelled == 0:
        raise InsufficientDataError(0, min_rows, "labelled rows")
    if len(X) < min_rows:
        raise InsufficientDataError(len(X), min_rows)

    return np.asarray(X, dtype=float), np.asarray(y, dtype=float)
