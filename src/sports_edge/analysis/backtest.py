"""
Chronological backtest of a trained model.

Replays historical rows in date order, rebuilding every feature exactly as
training does (de-vigged moneylines, rolling form from strictly earlier
games), and places a flat stake on the best side of each market whose EV
clears the threshold. The first rows only seed the form history.

Money is tracked in integer cents and each bet's profit is rounded to the
cent, so the sum of per-market profits always equals the bankroll change.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from ..config import Settings, get_settings
from ..config.sports import SportConfig
from ..data.records import GameRecord
from ..exceptions import InsufficientDataError, ValidationError
from ..features.engineering import (
    compute_rolling_form,
    derive_feature_vector,
    sort_chronologically,
    spread_winner,
)
from ..ml.logistic import TrainedModel
from ..utils.cancellation import CancellationToken
from ..utils.diagnostics import Diagnostics
from ..utils.odds import is_valid_moneyline, profit_for_win
from .edge_calculator import (
    MARKETS,
    MONEYLINE,
    SPREAD,
    TOTAL,
    EdgeHeuristics,
    EdgeResult,
    moneyline_ev,
    resolve_model_sport,
    spread_ev,
    total_ev,
)

logger = logging.getLogger(__name__)

WIN = "win"
LOSS = "loss"
PUSH = "push"


class BacktestStatus(Enum):
    """Lifecycle of a backtest run."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass
class MarketStats:
    """Running totals for one market."""

    bets: int = 0
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    profit_cents: int = 0

    @property
    def profit(self) -> float:
        return self.profit_cents / 100

    @property
    def win_rate(self) -> float:
        decided = self.wins + self.losses
        return self.wins / decided if decided else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bets": self.bets,
            "wins": self.wins,
            "losses": self.losses,
            "pushes": self.pushes,
            "profit": self.profit,
            "win_rate": self.win_rate,
        }


@dataclass
class SimulatedBet:
    """One simulated wager."""

    row_index: int
    team1: str
    team2: str
    market: str
    side: str
    odds: float
    ev: float
    result: str
    profit_cents: int
    bankroll_cents: int

    @property
    def profit(self) -> float:
        return self.profit_cents / 100


@dataclass
class BacktestState:
    """Mutable bankroll and market counters, updated strictly in replay order."""

    bankroll_cents: int
    starting_cents: int
    markets: Dict[str, MarketStats] = field(
        default_factory=lambda: {market: MarketStats() for market in MARKETS}
    )
    status: BacktestStatus = BacktestStatus.NOT_STARTED

    def settle(self, market: str, result: str, profit_cents: int) -> None:
        stats = self.markets[market]
        stats.bets += 1
        if result == WIN:
            stats.wins += 1
        elif result == LOSS:
            stats.losses += 1
        else:
            stats.pushes += 1
        stats.profit_cents += profit_cents
        self.bankroll_cents += profit_cents


@dataclass
class BacktestResult:
    """Outcome of a completed backtest."""

    sport: str
    stake: float
    starting_cents: int
    final_cents: int
    markets: Dict[str, MarketStats]
    rows_evaluated: int
    rows_skipped: int
    warmup_rows: int
    bets: List[SimulatedBet] = field(default_factory=list)
    bankroll_history: List[float] = field(default_factory=list)

    @property
    def starting_bankroll(self) -> float:
        return self.starting_cents / 100

    @property
    def final_bankroll(self) -> float:
        return self.final_cents / 100

    @property
    def total_bets(self) -> int:
        return sum(stats.bets for stats in self.markets.values())

    @property
    def total_profit_cents(self) -> int:
        return sum(stats.profit_cents for stats in self.markets.values())

    @property
    def total_profit(self) -> float:
        return self.total_profit_cents / 100

    @property
    def roi(self) -> float:
        """Total profit as a percentage of total amount staked."""
        if self.total_bets == 0:
            return 0.0
        return self.total_profit / (self.total_bets * self.stake) * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sport": self.sport,
            "stake": self.stake,
            "starting_bankroll": self.starting_bankroll,
            "final_bankroll": self.final_bankroll,
            "total_bets": self.total_bets,
            "total_profit": self.total_profit,
            "roi": self.roi,
            "rows_evaluated": self.rows_evaluated,
            "rows_skipped": self.rows_skipped,
            "warmup_rows": self.warmup_rows,
            "markets": {name: stats.to_dict() for name, stats in self.markets.items()},
        }


class Backtester:
    """Replay a trained model over one sport's history. Runs once per instance."""

    def __init__(
        self,
        model: TrainedModel,
        sport: Optional[SportConfig] = None,
        min_ev_pct: float = 2.0,
        warmup_games: int = 20,
        stake: float = 100.0,
        starting_bankroll: float = 1000.0,
        min_rows: int = 50,
        default_line_odds: int = -110,
        form_window: int = 5,
        against_the_spread: bool = False,
        heuristics: Optional[EdgeHeuristics] = None,
    ):
        if warmup_games < 0:
            raise ValidationError(
                ["warmup_games"], f"warmup_games must not be negative, got {warmup_games}"
            )
        if min_rows < 0:
            raise ValidationError(["min_rows"], f"min_rows must not be negative, got {min_rows}")
        sport = resolve_model_sport(model, sport)

        self.model = model
        self.sport = sport
        self.min_ev_pct = min_ev_pct
        self.warmup_games = warmup_games
        self.stake = stake
        self.min_rows = min_rows
        self.default_line_odds = default_line_odds
        self.form_window = form_window
        self.against_the_spread = against_the_spread
        self.heuristics = heuristics or EdgeHeuristics()
        self.diagnostics = Diagnostics()

        starting_cents = round(starting_bankroll * 100)
        self.state = BacktestState(bankroll_cents=starting_cents, starting_cents=starting_cents)

    @classmethod
    def from_settings(
        cls,
        model: TrainedModel,
        sport: Optional[SportConfig] = None,
        settings: Optional[Settings] = None,
        **overrides,
    ) -> "Backtester":
        settings = settings or get_settings()
        params = dict(
            min_ev_pct=settings.min_ev_pct,
            warmup_games=settings.warmup_games,
            stake=settings.flat_stake,
            starting_bankroll=settings.starting_bankroll,
            min_rows=settings.min_backtest_rows,
            default_line_odds=settings.default_line_odds,
            form_window=settings.form_window,
            against_the_spread=settings.label_against_spread,
            heuristics=EdgeHeuristics.from_settings(settings),
        )
        params.update({key: value for key, value in overrides.items() if value is not None})
        return cls(model, sport, **params)

    @property
    def status(self) -> BacktestStatus:
        return self.state.status

    def run(
        self,
        rows: Sequence[GameRecord],
        cancel_token: Optional[CancellationToken] = None,
    ) -> BacktestResult:
        """
        Replay ``rows`` and settle simulated bets.

        Raises:
            InsufficientDataError: fewer than ``min_rows`` historical rows
            OperationCancelledError: ``cancel_token`` was cancelled mid-run
            RuntimeError: the instance has already been run
        """
        if self.state.status is not BacktestStatus.NOT_STARTED:
            raise RuntimeError("A Backtester instance can only be run once")
        if len(rows) < self.min_rows:
            raise InsufficientDataError(len(rows), self.min_rows, "historical rows")

        self.state.status = BacktestStatus.RUNNING
        prepared = compute_rolling_form(
            sort_chronologically(rows),
            window=self.form_window,
            against_the_spread=self.against_the_spread,
        )
        warmup = min(self.warmup_games, len(prepared))
        logger.info(
            f"Backtesting {self.sport.key}: {len(prepared)} rows, {warmup} warm-up, "
            f"min EV {self.min_ev_pct:.1f} per $100"
        )

        bets: List[SimulatedBet] = []
        history = [self.state.bankroll_cents / 100]
        evaluated = 0
        skipped = 0

        for index in range(warmup, len(prepared)):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled("backtest")

            row = prepared[index]
            p = self._row_probability(row)
            if p is None:
                skipped += 1
                continue
            evaluated += 1

            for edge in self._market_edges(row, p):
                if edge.best_ev <= self.min_ev_pct:
                    continue
                result = self._settle_result(row, edge)
                profit_cents = self._profit_cents(result, edge.best_odds)
                self.state.settle(edge.market, result, profit_cents)
                bets.append(
                    SimulatedBet(
                        row_index=index,
                        team1=row.team1,
                        team2=row.team2,
                        market=edge.market,
                        side=edge.best_side,
                        odds=edge.best_odds,
                        ev=edge.best_ev,
                        result=result,
                        profit_cents=profit_cents,
                        bankroll_cents=self.state.bankroll_cents,
                    )
                )
                history.append(self.state.bankroll_cents / 100)

        self.state.status = BacktestStatus.COMPLETED
        self.diagnostics.log_summary(f"{self.sport.key} backtest")

        result = BacktestResult(
            sport=self.sport.key,
            stake=self.stake,
            starting_cents=self.state.starting_cents,
            final_cents=self.state.bankroll_cents,
            markets=self.state.markets,
            rows_evaluated=evaluated,
            rows_skipped=skipped,
            warmup_rows=warmup,
            bets=bets,
            bankroll_history=history,
        )
        logger.info(
            f"Backtest complete: {result.total_bets} bets, profit ${result.total_profit:,.2f}, "
            f"ROI {result.roi:+.2f}%"
        )
        return result

    def _row_probability(self, row: GameRecord) -> Optional[float]:
        """Model probability for a row, or None if the row cannot be bet or settled."""
        if not (is_valid_moneyline(row.team1_moneyline) and is_valid_moneyline(row.team2_moneyline)):
            return None
        if not row.has_scores and row.winner not in (0, 1):
            return None
        try:
            vector = derive_feature_vector(row.raw_features(self.sport), self.sport, self.diagnostics)
        except ValidationError:
            return None
        return self.model.predict_proba(vector)

    def _market_edges(self, row: GameRecord, p: float) -> List[EdgeResult]:
        edges = [moneyline_ev(p, row.team1_moneyline, row.team2_moneyline)]

        if self.sport.supports_spread and row.spread is not None and row.has_scores:
            edges.append(
                spread_ev(
                    p,
                    row.spread,
                    self._price(row.spread_odds1),
                    self._price(row.spread_odds2),
                    self.heuristics,
                )
            )

        if self.sport.supports_total and row.total is not None and row.has_scores:
            edges.append(
                total_ev(
                    p,
                    row.total,
                    self._price(row.over_odds),
                    self._price(row.under_odds),
                    self.heuristics,
                )
            )

        return edges

    def _price(self, odds: Optional[float]) -> float:
        return odds if is_valid_moneyline(odds) else self.default_line_odds

    def _settle_result(self, row: GameRecord, edge: EdgeResult) -> str:
        """Win, loss or push for the chosen side of ``edge``."""
        if edge.market == MONEYLINE:
            if row.has_scores:
                if row.team1_score == row.team2_score:
                    return PUSH
                winning_index = 0 if row.team1_score > row.team2_score else 1
            else:
                winning_index = 0 if row.winner == 1 else 1
        elif edge.market == SPREAD:
            outcome = spread_winner(row.team1_score, row.team2_score, row.spread)
            if outcome == "push":
                return PUSH
            winning_index = 0 if outcome == "home" else 1
        elif edge.market == TOTAL:
            points = row.team1_score + row.team2_score
            if points == row.total:
                return PUSH
            winning_index = 0 if points > row.total else 1
        else:
            raise ValueError(f"Unknown market: {edge.market}")

        return WIN if edge.best_index == winning_index else LOSS

    def _profit_cents(self, result: str, odds: float) -> int:
        if result == WIN:
            return round(profit_for_win(odds, self.stake) * 100)
        if result == LOSS:
            return -round(self.stake * 100)
        return 0
