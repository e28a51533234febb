"""Tests for game records and CSV ingestion/export."""

import io

import pandas as pd
import pytest

from sports_edge.config.sports import get_sport
from sports_edge.data.csv_io import export_games_csv, load_games_csv, template_columns, template_csv
from sports_edge.data.records import GameRecord, normalize_field_name, records_from_dicts


class TestNormalizeFieldName:
    """Test column name normalization and aliasing."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Home Team", "team1"),
            ("Away ML", "team2_moneyline"),
            ("Home Score", "team1_score"),
            ("Bet On", "bet_on"),
            ("player1_moneyline", "team1_moneyline"),
            ("Spread", "spread"),
            (" Week ", "week"),
        ],
    )
    def test_aliases(self, raw, expected):
        """Template and tracker headers map onto canonical fields."""
        assert normalize_field_name(raw) == expected


class TestGameRecord:
    """Test GameRecord parsing and ordering."""

    def test_from_dict_parses_numbers(self):
        """Numeric strings are parsed and blanks become None."""
        record = GameRecord.from_dict(
            {"team1": "A", "team2": "B", "team1_moneyline": "+130", "team2_moneyline": "-150", "spread": ""}
        )
        assert record.team1_moneyline == 130
        assert record.team2_moneyline == -150
        assert record.spread is None

    def test_unknown_numeric_columns_become_extras(self):
        """Sport-specific numeric columns are kept in extras."""
        record = GameRecord.from_dict({"team1": "A", "team2": "B", "player1_ranking": "4", "notes": "rain"})
        assert record.extras == {"player1_ranking": 4.0}

    def test_invalid_winner_dropped(self):
        """Winner must be 0 or 1."""
        record = GameRecord.from_dict({"team1": "A", "team2": "B", "winner": "2"})
        assert record.winner is None

    def test_records_without_teams_dropped(self):
        """Rows missing either competitor are discarded."""
        records = records_from_dicts([{"team1": "A", "team2": "B"}, {"team1": "A", "team2": ""}])
        assert len(records) == 1

    def test_to_dict_round_trip(self):
        """to_dict flattens extras and from_dict restores them."""
        record = GameRecord(team1="A", team2="B", team1_moneyline=-120, extras={"player1_ranking": 3.0})
        data = record.to_dict()
        assert data["player1_ranking"] == 3.0
        assert GameRecord.from_dict(data) == record

    def test_chronological_key_prefers_date(self):
        """A parseable date orders before year and week."""
        early = GameRecord(team1="A", team2="B", date="2023-09-01", year=2024)
        late = GameRecord(team1="A", team2="B", date="2023-10-01", year=2020)
        assert early.chronological_key() < late.chronological_key()

    def test_chronological_key_year_week(self):
        """Without dates, rows order by year then week."""
        rows = [
            GameRecord(team1="A", team2="B", year=2023, week=3),
            GameRecord(team1="A", team2="B", season=2022, week=10),
            GameRecord(team1="A", team2="B", year=2023, week=1),
        ]
        ordered = sorted(rows, key=lambda r: r.chronological_key())
        assert [(r.year or r.season, r.week) for r in ordered] == [(2022, 10), (2023, 1), (2023, 3)]

    def test_unparseable_date_sorts_first(self):
        """Rows without a usable date fall back to a zero ordinal."""
        assert GameRecord(team1="A", team2="B", date="not a date").chronological_key()[0] == 0


class TestLoadGamesCsv:
    """Test CSV ingestion."""

    def test_tracker_layout(self, nfl_csv):
        """The bet tracker header layout loads and incomplete rows are dropped."""
        records = load_games_csv(nfl_csv)

        assert len(records) == 3
        first = records[0]
        assert first.team1 == "Lakers"
        assert first.team2 == "Celtics"
        assert first.team1_moneyline == -150
        assert first.spread == -3.5
        assert first.team1_score == 110
        assert first.bet_on == "home"
        assert first.bet_amount == 100
        assert records[2].spread is None

    def test_buffer_input(self):
        """A text buffer is accepted."""
        buffer = io.StringIO("team1,team2,team1_moneyline,team2_moneyline\nA,B,-110,-110\n")
        records = load_games_csv(buffer)
        assert records[0].team2_moneyline == -110

    def test_header_only_rejected(self):
        """A CSV without data rows is an error."""
        with pytest.raises(ValueError):
            load_games_csv(io.StringIO("team1,team2\n"))


class TestTemplates:
    """Test per-sport CSV templates."""

    def test_nfl_template_columns(self):
        """Spread sports include spread and total columns."""
        columns = template_columns(get_sport("nfl"))
        assert "spread" in columns and "total" in columns

    def test_tennis_template_has_extras(self):
        """Tennis templates include its extra feature columns and no spread."""
        columns = template_columns(get_sport("tennis"))
        assert "player1_ranking" in columns
        assert "spread" not in columns

    def test_template_loads_back(self):
        """Every template parses into usable records."""
        for key in ("nfl", "mlb", "tennis", "mma"):
            sport = get_sport(key)
            records = load_games_csv(io.StringIO(template_csv(sport)))
            assert len(records) == 2
            features = records[0].raw_features(sport)
            assert all(value is not None for name, value in features.items() if "last5" not in name)


class TestExport:
    """Test CSV export with last-5 records."""

    def test_last5_record_columns(self):
        """Each row shows each side's record through that game; ties count as losses."""
        rows = [
            GameRecord(team1="A", team2="B", team1_score=3, team2_score=1, date="2024-01-01"),
            GameRecord(team1="A", team2="C", team1_score=0, team2_score=2, date="2024-01-02"),
            GameRecord(team1="B", team2="A", team1_score=1, team2_score=1, date="2024-01-03"),
            GameRecord(team1="D", team2="A", date="2024-01-04"),
        ]
        df = pd.read_csv(io.StringIO(export_games_csv(list(reversed(rows)))))

        assert list(df["team1"]) == ["A", "A", "B", "D"]
        assert list(df["team1_last5_record"]) == ["1-0", "1-1", "0-2", "0-0"]
        assert list(df["team2_last5_record"]) == ["0-1", "1-0", "1-2", "1-2"]
