"""CSV ingestion and export for game history.

Uploaded columns are mapped onto canonical ``GameRecord`` fields (see
``records.FIELD_ALIASES``), so both the per-sport templates and the bet
tracker layout (``Date, Home Team, Away Team, Home ML, ...``) load.
"""

import io
import logging
from pathlib import Path
from typing import Dict, List, Sequence, Union

import pandas as pd

from ..config.sports import SportConfig
from ..features.engineering import last5_record, sort_chronologically, straight_up_outcomes
from .records import GameRecord, records_from_dicts

logger = logging.getLogger(__name__)

_BASE_COLUMNS = ["date", "team1", "team2", "team1_moneyline", "team2_moneyline"]
_RESULT_COLUMNS = ["team1_score", "team2_score", "winner"]

_TEMPLATE_ROWS: Dict[bool, List[Dict[str, object]]] = {
    True: [
        {"date": "2024-09-08", "team1": "Chiefs", "team2": "Ravens", "team1_moneyline": -150,
         "team2_moneyline": 130, "spread": -3.5, "total": 46.5, "team1_score": 27, "team2_score": 20},
        {"date": "2024-09-15", "team1": "Bills", "team2": "Dolphins", "team1_moneyline": 120,
         "team2_moneyline": -140, "spread": 2.5, "total": 49.5, "team1_score": 31, "team2_score": 10},
    ],
    False: [
        {"date": "2024-06-01", "team1": "Player A", "team2": "Player B", "team1_moneyline": -200,
         "team2_moneyline": 170, "team1_score": 2, "team2_score": 0},
        {"date": "2024-06-03", "team1": "Player C", "team2": "Player A", "team1_moneyline": 110,
         "team2_moneyline": -130, "team1_score": 1, "team2_score": 2},
    ],
}


def template_columns(sport: SportConfig) -> List[str]:
    """Column layout of the upload template for ``sport``."""
    columns = list(_BASE_COLUMNS)
    if sport.supports_spread:
        columns.append("spread")
    if sport.supports_total:
        columns.append("total")
    columns.extend(sport.extra_features)
    columns.extend(_RESULT_COLUMNS)
    return columns


def template_csv(sport: SportConfig) -> str:
    """Example CSV for ``sport`` with its canonical column names."""
    columns = template_columns(sport)
    rows = []
    for example in _TEMPLATE_ROWS[sport.supports_spread or sport.supports_total]:
        row = {column: example.get(column, "") for column in columns}
        for name in sport.extra_features:
            row[name] = 0.5 if name.endswith("_pct") else 10
        rows.append(row)
    return pd.DataFrame(rows, columns=columns).to_csv(index=False)


def load_games_csv(source: Union[str, Path, io.StringIO]) -> List[GameRecord]:
    """
    Load game rows from a CSV file path or buffer.

    Blank lines are ignored and rows missing either competitor are dropped.

    Raises:
        ValueError: the CSV has no data rows
    """
    df = pd.read_csv(source, dtype=str, skip_blank_lines=True, keep_default_na=False)
    if df.empty:
        raise ValueError("CSV file must have a header and at least one data row")

    df.columns = [str(c).strip() for c in df.columns]
    records = records_from_dicts(df.to_dict(orient="records"))
    dropped = len(df) - len(records)
    if dropped:
        logger.warning(f"Dropped {dropped} CSV rows without both competitors")
    logger.info(f"Loaded {len(records)} games from CSV")
    return records


def export_games_csv(records: Sequence[GameRecord], window: int = 5) -> str:
    """
    Export rows in date order with each side's last-5 record ("W-L").

    The record runs through the row's own game when it has a result, as the
    tracker sheet shows it. Training form uses only earlier games instead.
    """
    histories: Dict[str, List[int]] = {}
    rows = []
    for record in sort_chronologically(records):
        history1 = histories.setdefault(record.team1, [])
        history2 = histories.setdefault(record.team2, [])

        outcomes = straight_up_outcomes(record)
        if outcomes is not None:
            history1.append(outcomes[0])
            history2.append(outcomes[1])

        row = record.to_dict()
        row["team1_last5_record"] = last5_record(history1, window)
        row["team2_last5_record"] = last5_record(history2, window)
        rows.append(row)

    return pd.DataFrame(rows).to_csv(index=False)
