"""Pytest fixtures for the sports edge test suite."""

from datetime import date, timedelta

import pytest

from sports_edge.data.records import GameRecord

STRONG_TEAMS = ["Alpha", "Bravo", "Charlie", "Delta"]
WEAK_TEAMS = ["Echo", "Foxtrot", "Golf", "Hotel"]


def make_season(n_games=80, start=date(2023, 9, 7)):
    """Synthetic season where the four strong teams beat the weak ones by 10.

    Side 1 alternates between a strong and a weak team, so both the
    moneylines and the rolling form separate the two classes.
    """
    rows = []
    for i in range(n_games):
        strong = STRONG_TEAMS[i % 4]
        weak = WEAK_TEAMS[(i // 4) % 4]
        if i % 2 == 0:
            team1, team2, ml1, ml2, score1, score2, spread = strong, weak, -200, 170, 27, 17, -3.5
        else:
            team1, team2, ml1, ml2, score1, score2, spread = weak, strong, 170, -200, 17, 27, 3.5
        rows.append(
            GameRecord(
                team1=team1,
                team2=team2,
                team1_moneyline=ml1,
                team2_moneyline=ml2,
                spread=spread,
                total=44.5,
                team1_score=score1,
                team2_score=score2,
                date=(start + timedelta(days=i)).isoformat(),
            )
        )
    return rows


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point settings at a temp directory and reload them for each test."""
    from sports_edge.config.settings import get_settings

    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("LOGS_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("LOG_TO_FILE", "false")
    monkeypatch.setenv("STORAGE_BACKEND", "json")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def season_rows():
    """Eighty synthetic NFL games."""
    return make_season()


@pytest.fixture
def make_rows():
    """Factory for fresh synthetic seasons that a test can modify."""
    return make_season


@pytest.fixture
def nfl_csv(tmp_path):
    """CSV file in the bet tracker layout."""
    path = tmp_path / "games.csv"
    path.write_text(
        "Date,Home Team,Away Team,Home ML,Away ML,Spread,Home Score,Away Score,Bet On,Bet Amount\n"
        "2024-01-07,Lakers,Celtics,-150,130,-3.5,110,100,home,100\n"
        "2024-01-08,Knicks,Heat,120,-140,2.5,98,101,Knicks,50\n"
        "\n"
        "2024-01-09,Bulls,Nets,-110,-110,,105,105,away,100\n"
        ",Suns,-120,100,,,,,,\n"
    )
    return path
