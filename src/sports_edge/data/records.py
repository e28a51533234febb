"""Game records: one historical matchup per row."""

import re
from dataclasses import asdict, dataclass, field, fields
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from ..config.sports import SportConfig
from ..utils.numbers import coerce_float, coerce_int

# Uploaded column names (after normalize_field_name) -> canonical field names.
# Side 1 is the home side in the original bet-tracker template, and spreads are
# quoted from side 1's perspective.
FIELD_ALIASES: Dict[str, str] = {
    "home_team": "team1",
    "away_team": "team2",
    "home": "team1",
    "away": "team2",
    "player1": "team1",
    "player2": "team2",
    "fighter1": "team1",
    "fighter2": "team2",
    "home_ml": "team1_moneyline",
    "away_ml": "team2_moneyline",
    "home_moneyline": "team1_moneyline",
    "away_moneyline": "team2_moneyline",
    "team1_ml": "team1_moneyline",
    "team2_ml": "team2_moneyline",
    "player1_moneyline": "team1_moneyline",
    "player2_moneyline": "team2_moneyline",
    "fighter1_moneyline": "team1_moneyline",
    "fighter2_moneyline": "team2_moneyline",
    "home_score": "team1_score",
    "away_score": "team2_score",
    "player1_score": "team1_score",
    "player2_score": "team2_score",
    "fighter1_score": "team1_score",
    "fighter2_score": "team2_score",
    "home_l5": "team1_last5",
    "away_l5": "team2_last5",
    "player1_last5": "team1_last5",
    "player2_last5": "team2_last5",
    "fighter1_last5": "team1_last5",
    "fighter2_last5": "team2_last5",
    "over_under": "total",
    "total_line": "total",
    "bet": "bet_on",
}

_TEXT_FIELDS = {"team1", "team2", "date", "bet_on"}
_INT_FIELDS = {"winner", "week", "year", "season"}


def normalize_field_name(name: str) -> str:
    """Lower-case snake_case form of an uploaded column name."""
    cleaned = re.sub(r"[^0-9a-zA-Z]+", "_", str(name).strip()).strip("_").lower()
    return FIELD_ALIASES.get(cleaned, cleaned)


@dataclass
class GameRecord:
    """One historical matchup between side 1 and side 2."""

    team1: str
    team2: str
    team1_moneyline: Optional[float] = None
    team2_moneyline: Optional[float] = None
    spread: Optional[float] = None  # Side 1 spread (negative = side 1 favored)
    total: Optional[float] = None
    team1_score: Optional[float] = None
    team2_score: Optional[float] = None
    winner: Optional[int] = None  # 1 = side 1 won, 0 = side 2 won
    date: Optional[str] = None
    week: Optional[int] = None
    year: Optional[int] = None
    season: Optional[int] = None
    spread_odds1: Optional[float] = None
    spread_odds2: Optional[float] = None
    over_odds: Optional[float] = None
    under_odds: Optional[float] = None
    team1_last5: Optional[float] = None
    team2_last5: Optional[float] = None
    bet_on: Optional[str] = None
    bet_amount: Optional[float] = None
    extras: Dict[str, float] = field(default_factory=dict)

    @property
    def has_scores(self) -> bool:
        return self.team1_score is not None and self.team2_score is not None

    @property
    def parsed_date(self) -> Optional[date]:
        if not self.date:
            return None
        parsed = pd.to_datetime(self.date, errors="coerce")
        if pd.isna(parsed):
            return None
        return parsed.date()

    def chronological_key(self) -> Tuple[int, int, int]:
        """Sort key: explicit date, else year + week, else season + week.

        Rows without any of these get (0, 0, 0) and sort first.
        """
        parsed = self.parsed_date
        period = self.year if self.year is not None else self.season
        return (
            parsed.toordinal() if parsed is not None else 0,
            period if period is not None else 0,
            self.week if self.week is not None else 0,
        )

    def raw_features(self, sport: SportConfig) -> Dict[str, Any]:
        """Raw (pre-devig) value of every feature the sport uses."""
        values: Dict[str, Any] = {
            sport.moneyline_features[0]: self.team1_moneyline,
            sport.moneyline_features[1]: self.team2_moneyline,
            sport.form_features[0]: self.team1_last5,
            sport.form_features[1]: self.team2_last5,
        }
        for name in sport.extra_features:
            values[name] = self.extras.get(name)
        return values

    def to_dict(self) -> Dict[str, Any]:
        """Flat dict for persistence; extras become top-level keys."""
        data = asdict(self)
        extras = data.pop("extras")
        data.update(extras)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameRecord":
        """Build a record from a persisted or uploaded row.

        Column names are normalized and aliased; numeric fields are parsed
        leniently (unparseable values become None). Unknown numeric columns
        are kept in ``extras``.
        """
        known = {f.name for f in fields(cls)} - {"extras"}
        kwargs: Dict[str, Any] = {}
        extras: Dict[str, float] = {}

        for raw_key, value in data.items():
            key = normalize_field_name(raw_key)
            if key in known:
                if key in _TEXT_FIELDS:
                    kwargs[key] = _clean_text(value)
                elif key in _INT_FIELDS:
                    kwargs[key] = coerce_int(value)
                else:
                    kwargs[key] = coerce_float(value)
            else:
                number = coerce_float(value)
                if number is not None:
                    extras[key] = number

        if kwargs.get("winner") not in (0, 1):
            kwargs["winner"] = None

        return cls(
            team1=kwargs.pop("team1", None) or "",
            team2=kwargs.pop("team2", None) or "",
            extras=extras,
            **kwargs,
        )


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def records_from_dicts(rows: List[Dict[str, Any]]) -> List[GameRecord]:
    """Convert rows, dropping any without both competitor identifiers."""
    records = [GameRecord.from_dict(row) for row in rows]
    return [r for r in records if r.team1 and r.team2]


def records_to_dicts(records: List[GameRecord]) -> List[Dict[str, Any]]:
    return [record.to_dict() for record in records]
