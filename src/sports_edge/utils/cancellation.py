"""Cooperative cancellation for long-running loops."""

import threading

from ..exceptions import OperationCancelledError


class CancellationToken:
    """Thread-safe flag checked between training epochs and backtest rows."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, where: str = "operation") -> None:
        if self._event.is_set():
            raise OperationCancelledError(f"{where} cancelled")
