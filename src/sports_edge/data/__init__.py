"""Game records and CSV ingestion."""

from .records import GameRecord, normalize_field_name, records_from_dicts, records_to_dicts

__all__ = [
    "GameRecord",
    "normalize_field_name",
    "records_from_dicts",
    "records_to_dicts",
]
