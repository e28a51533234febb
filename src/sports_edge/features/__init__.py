"""Feature engineering modules."""

from .engineering import (
    build_feature_matrix,
    compute_rolling_form,
    derive_feature_vector,
    determine_winner,
    form_rate,
    last5_record,
    sort_chronologically,
    spread_winner,
)

__all__ = [
    "build_feature_matrix",
    "compute_rolling_form",
    "derive_feature_vector",
    "determine_winner",
    "form_rate",
    "last5_record",
    "sort_chronologically",
    "spread_winner",
]
