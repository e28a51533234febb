"""Host-facing service layer."""

from .service import AnalyticsService, TrainingOutcome

__all__ = [
    "AnalyticsService",
    "TrainingOutcome",
]
