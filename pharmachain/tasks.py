"""
Simulated asynchronous operations bound to a cancellation token.

Login, distribution creation and report generation pretend to call a
remote service by waiting a fixed delay before applying their update. The
update is skipped whenever the owning screen has been closed meanwhile.
"""

import threading
from typing import Callable, Generic, Optional, TypeVar

from pharmachain.config import SIMULATED_DELAY_SECONDS
from pharmachain.errors import TaskCancelled

T = TypeVar("T")


class CancellationToken:
    """One-shot cancellation flag shared by a screen and its pending tasks."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to *seconds*; return True if cancelled in the meantime."""
        if seconds <= 0:
            return self.cancelled
        return self._event.wait(seconds)


class SimulatedTask(Generic[T]):
    """Apply *update* once after *delay* seconds unless *token* is cancelled."""

    def __init__(self, update: Callable[[], T], token: CancellationToken,
                 delay: Optional[float] = None, name: str = "task"):
        self.update = update
        self.token = token
        self.delay = SIMULATED_DELAY_SECONDS if delay is None else delay
        self.name = name

    def run(self) -> T:
        if self.token.wait(self.delay) or self.token.cancelled:
            raise TaskCancelled(f"{self.name} was cancelled before completion")
        return self.update()
