"""Error types raised by the sports edge engine."""

from typing import Iterable, List, Optional


class SportsEdgeError(Exception):
    """Base class for all engine errors."""
    pass


class ValidationError(SportsEdgeError):
    """User input is missing or not numeric."""

    def __init__(self, fields: Iterable[str], message: Optional[str] = None):
        self.fields: List[str] = list(fields)
        if message is None:
            message = f"Missing or invalid fields: {', '.join(self.fields)}"
        super().__init__(message)


class InsufficientDataError(SportsEdgeError):
    """Too few usable rows to train or backtest."""

    def __init__(self, available: int, required: int, what: str = "rows"):
        self.available = available
        self.required = required
        super().__init__(
            f"Need at least {required} usable {what}, got {available}"
        )


class ModelNotTrainedError(SportsEdgeError):
    """No trained model is available for the sport."""

    def __init__(self, sport: str):
        self.sport = sport
        super().__init__(f"No trained model for {sport}")


class OperationInProgressError(SportsEdgeError):
    """A training or backtest run is already in flight for the sport."""

    def __init__(self, sport: str, operation: str):
        self.sport = sport
        self.operation = operation
        super().__init__(f"A {operation} run for {sport} is already in progress")


class OperationCancelledError(SportsEdgeError):
    """A long-running operation was cancelled through its token."""
    pass


class PersistenceError(SportsEdgeError):
    """The storage backend could not complete a read, write or delete."""
    pass


class ModelMismatchError(SportsEdgeError, ValueError):
    """A stored model does not fit the sport it is being applied to."""
    pass
