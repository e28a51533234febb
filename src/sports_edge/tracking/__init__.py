"""Bet tracking for logged wagers."""

from .bet_tracker import BetResult, RecordSummary, bet_side, grade_bet, summarize_bets

__all__ = [
    "BetResult",
    "RecordSummary",
    "bet_side",
    "grade_bet",
    "summarize_bets",
]
