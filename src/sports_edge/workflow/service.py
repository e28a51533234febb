"""Async service tying storage, training, prediction and backtesting together.

Engine calls are synchronous; training and backtests run in a worker thread
via ``asyncio.to_thread`` so the caller's event loop stays responsive. At most
one training or backtest run per sport is in flight at a time.
"""

import asyncio
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

from ..analysis.backtest import Backtester, BacktestResult
from ..analysis.edge_calculator import EdgeCalculator, EdgeResult, MarketLines, Prediction
from ..config import Settings, get_settings
from ..config.sports import get_sport
from ..data.records import GameRecord
from ..exceptions import (
    InsufficientDataError,
    ModelNotTrainedError,
    OperationInProgressError,
    PersistenceError,
    ValidationError,
)
from ..ml.logistic import TrainedModel, TrainingStats
from ..ml.trainer import TrainingConfig, train_sport_model
from ..storage.repository import SportDataRepository
from ..utils.cancellation import CancellationToken
from ..utils.diagnostics import Diagnostics

logger = logging.getLogger(__name__)


@dataclass
class TrainingOutcome:
    """Result of a training run. ``persisted`` is False if the save failed."""

    model: TrainedModel
    stats: TrainingStats
    persisted: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sport": self.model.sport,
            "modelParams": self.model.to_dict(),
            "trainingStats": self.stats.to_dict(),
            "persisted": self.persisted,
        }


class AnalyticsService:
    """Entry point for hosts: upload, train, predict and backtest by sport key."""

    def __init__(self, repository: SportDataRepository, settings: Optional[Settings] = None):
        self.repository = repository
        self.settings = settings or get_settings()
        self._busy: Set[str] = set()
        self._lock = threading.Lock()

    @contextmanager
    def _exclusive(self, sport: str, operation: str) -> Iterator[None]:
        with self._lock:
            if sport in self._busy:
                raise OperationInProgressError(sport, operation)
            self._busy.add(sport)
        try:
            yield
        finally:
            with self._lock:
                self._busy.discard(sport)

    def is_busy(self, sport: str) -> bool:
        with self._lock:
            return sport in self._busy

    async def upload(self, sport: str, rows: Sequence[GameRecord], append: bool = False) -> int:
        """
        Store historical rows for ``sport``.

        Args:
            sport: Sport key
            rows: Parsed game rows
            append: Add to the stored rows instead of replacing them

        Returns:
            Number of rows now stored
        """
        get_sport(sport)
        if not rows:
            raise ValidationError(["rows"], "No game rows to upload")

        stored = list(rows)
        if append:
            stored = await self.repository.fetch_training_rows(sport) + stored
        await self.repository.save_training_rows(sport, stored)
        return len(stored)

    async def train(
        self,
        sport: str,
        rows: Optional[Sequence[GameRecord]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> TrainingOutcome:
        """
        Train and persist a model for ``sport``.

        Uses ``rows`` when given, otherwise the stored training rows. A failed
        save is logged and reported through ``TrainingOutcome.persisted``.

        Raises:
            InsufficientDataError: too few usable rows
            OperationInProgressError: another run for the sport is in flight
            OperationCancelledError: ``cancel_token`` was cancelled
        """
        config = get_sport(sport)
        with self._exclusive(sport, "training"):
            if rows is None:
                rows = await self.repository.fetch_training_rows(sport)
            if not rows:
                raise InsufficientDataError(0, self.settings.min_training_rows, "training rows")

            model, stats = await asyncio.to_thread(
                train_sport_model,
                list(rows),
                config,
                TrainingConfig.from_settings(self.settings),
                cancel_token,
                Diagnostics(),
            )

            persisted = True
            try:
                await self.repository.save_model(model, stats)
            except PersistenceError as e:
                logger.warning(f"Trained {sport} model could not be saved: {e}")
                persisted = False

        return TrainingOutcome(model=model, stats=stats, persisted=persisted)

    async def load_model(self, sport: str) -> Tuple[TrainedModel, TrainingStats]:
        get_sport(sport)
        stored = await self.repository.fetch_model(sport)
        if stored is None:
            raise ModelNotTrainedError(sport)
        return stored

    async def predict(
        self,
        sport: str,
        inputs: Mapping[str, Any],
        lines: Optional[MarketLines] = None,
    ) -> Tuple[Prediction, List[EdgeResult]]:
        """
        Predict a matchup with the stored model and evaluate its markets.

        Raises:
            ModelNotTrainedError: no model stored for ``sport``
            ValidationError: missing or non-numeric inputs
        """
        model, _ = await self.load_model(sport)
        calculator = EdgeCalculator.from_settings(self.settings)
        return calculator.analyze(model, inputs, lines, get_sport(sport), Diagnostics())

    async def backtest(
        self,
        sport: str,
        min_ev_pct: Optional[float] = None,
        warmup: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> BacktestResult:
        """
        Replay the stored model over the stored rows.

        Raises:
            ModelNotTrainedError: no model stored for ``sport``
            InsufficientDataError: fewer than ``min_backtest_rows`` rows
            OperationInProgressError: another run for the sport is in flight
        """
        config = get_sport(sport)
        with self._exclusive(sport, "backtest"):
            model, _ = await self.load_model(sport)
            rows = await self.repository.fetch_training_rows(sport)
            backtester = Backtester.from_settings(
                model,
                config,
                self.settings,
                min_ev_pct=min_ev_pct,
                warmup_games=warmup,
            )
            return await asyncio.to_thread(backtester.run, rows, cancel_token)
