"""Analysis modules: market edges and backtesting."""

from .edge_calculator import (
    EdgeCalculator,
    EdgeHeuristics,
    EdgeResult,
    MarketLines,
    Prediction,
    evaluate_markets,
    moneyline_ev,
    predict,
    spread_ev,
    spread_winner,
    total_ev,
)
from .backtest import (
    Backtester,
    BacktestResult,
    BacktestState,
    BacktestStatus,
    MarketStats,
    SimulatedBet,
)

__all__ = [
    "EdgeCalculator",
    "EdgeHeuristics",
    "EdgeResult",
    "MarketLines",
    "Prediction",
    "evaluate_markets",
    "moneyline_ev",
    "predict",
    "spread_ev",
    "spread_winner",
    "total_ev",
    "Backtester",
    "BacktestResult",
    "BacktestState",
    "BacktestStatus",
    "MarketStats",
    "SimulatedBet",
]
