import threading
from typing import Optional

from .exceptions import CancellationError


class CancellationToken:
    """
    Cooperative cancellation signal shared between a driver and the engine.

    The driver owning the interrupt source calls `cancel()`; the engine only
    observes it at step and item boundaries and while waiting on the install
    subprocess.
    """

    def __init__(self):
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: Optional[str] = None) -> None:
        if not self._event.is_set():
            self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)

    def raise_if_cancelled(self, where: str = "") -> None:
        if self._event.is_set():
            suffix = f" during {where}" if where else ""
            raise CancellationError(f"Operation cancelled{suffix}")
