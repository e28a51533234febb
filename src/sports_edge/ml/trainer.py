"""Training pipeline: raw game rows in, trained model out."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..config import Settings, get_settings
from ..config.sports import SportConfig
from ..data.records import GameRecord
from ..features.engineering import (
    build_feature_matrix,
    compute_rolling_form,
    sort_chronologically,
)
from ..utils.cancellation import CancellationToken
from ..utils.diagnostics import Diagnostics
from .logistic import TrainedModel, TrainingStats, train_logistic_regression

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrainingConfig:
    """Hyperparameters and data requirements for one training run."""

    learning_rate: float = 0.1
    epochs: int = 500
    l2_lambda: float = 0.01
    min_rows: int = 10
    form_window: int = 5
    against_the_spread: bool = False

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "TrainingConfig":
        settings = settings or get_settings()
        return cls(
            learning_rate=settings.learning_rate,
            epochs=settings.epochs,
            l2_lambda=settings.l2_lambda,
            min_rows=settings.min_training_rows,
            form_window=settings.form_window,
            against_the_spread=settings.label_against_spread,
        )


def prepare_training_rows(
    rows: Sequence[GameRecord], config: TrainingConfig
) -> List[GameRecord]:
    """Sort rows chronologically and attach rolling form and labels."""
    ordered = sort_chronologically(rows)
    return compute_rolling_form(
        ordered,
        window=config.form_window,
        against_the_spread=config.against_the_spread,
    )


def train_sport_model(
    rows: Sequence[GameRecord],
    sport: SportConfig,
    config: Optional[TrainingConfig] = None,
    cancel_token: Optional[CancellationToken] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> Tuple[TrainedModel, TrainingStats]:
    """
    Train a model for ``sport`` from its historical rows.

    Raises:
        InsufficientDataError: too few usable rows, or none with a label
        OperationCancelledError: ``cancel_token`` was cancelled mid-run
    """
    config = config or TrainingConfig.from_settings()
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    logger.info(f"Training {sport.display_name} model on {len(rows)} rows")
    prepared = prepare_training_rows(rows, config)
    X, y = build_feature_matrix(prepared, sport, config.min_rows, diagnostics)

    result = train_logistic_regression(
        X,
        y,
        learning_rate=config.learning_rate,
        epochs=config.epochs,
        l2_lambda=config.l2_lambda,
        cancel_token=cancel_token,
    )

    model = TrainedModel.from_training(result, sport.features, sport=sport.key)
    stats = TrainingStats(
        accuracy=result.accuracy,
        sample_count=result.sample_count,
        feature_importance=model.feature_importance(),
    )
    diagnostics.log_summary(f"{sport.key} training")

    top = ", ".join(f"{name}={value:.3f}" for name, value in stats.feature_importance)
    logger.info(f"{sport.key} feature importance: {top}")
    return model, stats
