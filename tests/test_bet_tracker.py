"""Tests for logged bet grading and record summaries."""

import pytest

from sports_edge.data.csv_io import load_games_csv
from sports_edge.data.records import GameRecord
from sports_edge.tracking.bet_tracker import bet_side, grade_bet, summarize_bets


def _bet(**kwargs):
    defaults = dict(team1="Lakers", team2="Celtics", team1_score=110, team2_score=100, bet_amount=100)
    defaults.update(kwargs)
    return GameRecord(**defaults)


class TestBetSide:
    """Test bet side recognition."""

    @pytest.mark.parametrize(
        "bet_on,side",
        [("home", 0), ("Home", 0), ("team1", 0), ("Lakers", 0), ("away", 1), ("team2", 1), ("celtics", 1), ("draw", None)],
    )
    def test_sides(self, bet_on, side):
        """Home/away, team1/team2 and team names are recognised."""
        assert bet_side(_bet(bet_on=bet_on)) == side

    def test_no_bet(self):
        """Rows without a bet have no side."""
        assert bet_side(_bet()) is None


class TestGradeBet:
    """Test bet grading."""

    def test_moneyline_win_uses_price(self):
        """A winning favorite at -150 returns stake * 100/150."""
        result = grade_bet(_bet(bet_on="home", team1_moneyline=-150, team2_moneyline=130))
        assert result.result == "win"
        assert result.profit == pytest.approx(66.667, abs=1e-3)

    def test_moneyline_loss(self):
        """A losing bet costs the stake."""
        result = grade_bet(_bet(bet_on="away", team2_moneyline=130))
        assert result.result == "loss"
        assert result.profit == -100

    def test_even_money_without_price(self):
        """Winnings default to even money when the side's price is unknown."""
        result = grade_bet(_bet(bet_on="home"))
        assert result.profit == 100

    def test_spread_rule(self):
        """With a spread the bet is graded against it."""
        result = grade_bet(_bet(bet_on="home", spread=-12.5, team1_moneyline=-400))
        assert result.result == "loss"

    def test_spread_push(self):
        """Landing on the number is a push."""
        result = grade_bet(_bet(bet_on="home", spread=-10))
        assert result.result == "push"
        assert result.profit == 0

    def test_straight_up_tie_push(self):
        """A tie without a spread is a push."""
        result = grade_bet(_bet(bet_on="away", team1_score=99, team2_score=99))
        assert result.result == "push"

    def test_ungraded(self):
        """Bets without a final score are not graded."""
        assert grade_bet(_bet(bet_on="home", team1_score=None)) is None


class TestSummarizeBets:
    """Test record summaries."""

    def test_tracker_csv(self, nfl_csv):
        """All-time record over the tracker CSV."""
        summary = summarize_bets(load_games_csv(nfl_csv))

        assert summary.record == "1-1-1"
        assert summary.total == 3
        assert summary.win_pct == pytest.approx(50.0)
        assert summary.profit == pytest.approx(100 * 100 / 150 - 50)

    def test_last_n_most_recent_first(self, nfl_csv):
        """The last-N window takes the most recent bets."""
        summary = summarize_bets(load_games_csv(nfl_csv), last_n=1)

        assert summary.record == "0-0-1"
        assert summary.win_pct == 0.0

    def test_empty(self):
        """No bets gives an empty record."""
        summary = summarize_bets([])
        assert summary.total == 0
        assert summary.profit == 0
