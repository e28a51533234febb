"""Grade logged bets and summarize the betting record.

A row's ``bet_on`` names the side bet ("home"/"away", "team1"/"team2" or a
team name) and ``bet_amount`` the stake. Rows with a spread are graded against
the spread, otherwise straight up. Winnings come from the side's moneyline,
or even money when that price is unknown.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..data.records import GameRecord
from ..features.engineering import sort_chronologically, spread_winner
from ..utils.odds import is_valid_moneyline, profit_for_win

logger = logging.getLogger(__name__)

WIN = "win"
LOSS = "loss"
PUSH = "push"


@dataclass(frozen=True)
class BetResult:
    """Outcome of one logged bet."""

    result: str
    profit: float


@dataclass(frozen=True)
class RecordSummary:
    """Win/loss/push record and profit over a set of bets."""

    wins: int
    losses: int
    pushes: int
    total: int
    profit: float

    @property
    def win_pct(self) -> float:
        """Win percentage over decided bets (pushes excluded)."""
        decided = self.wins + self.losses
        return self.wins / decided * 100 if decided else 0.0

    @property
    def record(self) -> str:
        return f"{self.wins}-{self.losses}-{self.pushes}"


def bet_side(record: GameRecord) -> Optional[int]:
    """0 if the bet is on side 1, 1 if on side 2, None if it cannot be told."""
    if not record.bet_on:
        return None
    bet = record.bet_on.strip().lower()
    if "home" in bet or bet in ("team1", "side1", "1") or bet == record.team1.lower():
        return 0
    if "away" in bet or bet in ("team2", "side2", "2") or bet == record.team2.lower():
        return 1
    return None


def grade_bet(record: GameRecord) -> Optional[BetResult]:
    """Grade a logged bet, or None if it has no bet or no final score."""
    side = bet_side(record)
    if side is None or not record.has_scores:
        return None

    stake = record.bet_amount or 0.0

    if record.spread is not None:
        outcome = spread_winner(record.team1_score, record.team2_score, record.spread)
        if outcome == "push":
            return BetResult(PUSH, 0.0)
        won = (outcome == "home") == (side == 0)
    else:
        if record.team1_score == record.team2_score:
            return BetResult(PUSH, 0.0)
        won = (record.team1_score > record.team2_score) == (side == 0)

    if not won:
        return BetResult(LOSS, -stake)

    odds = record.team1_moneyline if side == 0 else record.team2_moneyline
    if not is_valid_moneyline(odds):
        return BetResult(WIN, stake)
    return BetResult(WIN, profit_for_win(odds, stake))


def summarize_bets(records: Iterable[GameRecord], last_n: Optional[int] = None) -> RecordSummary:
    """
    Record and profit over graded bets.

    Args:
        records: Logged rows; rows without a bet or final score are ignored
        last_n: Only the most recent ``last_n`` graded bets

    Returns:
        RecordSummary of the selected bets
    """
    graded = [r for r in records if r.bet_on and r.has_scores]
    graded = list(reversed(sort_chronologically(graded)))
    if last_n is not None:
        graded = graded[:last_n]

    wins = losses = pushes = 0
    profit = 0.0
    results: List[BetResult] = [res for res in (grade_bet(r) for r in graded) if res is not None]
    for res in results:
        if res.result == WIN:
            wins += 1
        elif res.result == LOSS:
            losses += 1
        else:
            pushes += 1
        profit += res.profit

    return RecordSummary(wins=wins, losses=losses, pushes=pushes, total=len(results), profit=profit)
