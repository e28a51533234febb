"""Collector for soft numeric fallbacks.

Odds conversion and feature derivation never raise on bad numbers; they fall
back to neutral values (0.5 probability, std of 1, 0 implied line). Passing a
``Diagnostics`` instance lets callers and tests see when that happened.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class FallbackEvent:
    """One fallback that was applied."""

    code: str
    detail: str
    value: Any = None


@dataclass
class Diagnostics:
    """Accumulates fallback events for one operation."""

    events: List[FallbackEvent] = field(default_factory=list)

    def record(self, code: str, detail: str, value: Any = None) -> None:
        self.events.append(FallbackEvent(code=code, detail=detail, value=value))
        logger.debug(f"Fallback {code}: {detail} (value={value!r})")

    def count(self, code: Optional[str] = None) -> int:
        if code is None:
            return len(self.events)
        return sum(1 for event in self.events if event.code == code)

    def summary(self) -> Dict[str, int]:
        """Event counts per code."""
        return dict(Counter(event.code for event in self.events))

    def __bool__(self) -> bool:
        return bool(self.events)

    def log_summary(self, context: str) -> None:
        if self.events:
            logger.info(f"{context}: {len(self.events)} fallbacks applied {self.summary()}")


def record_fallback(
    diagnostics: Optional[Diagnostics], code: str, detail: str, value: Any = None
) -> None:
    """Record on ``diagnostics`` when one was supplied."""
    if diagnostics is not None:
        diagnostics.record(code, detail, value)
