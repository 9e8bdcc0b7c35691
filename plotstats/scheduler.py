"""Background execution of the periodic reporting action."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RepeatingTask:
    """Run ``action`` every ``period_seconds`` on a daemon thread.

    Cancelling stops future runs; a run already in progress finishes.
    """

    def __init__(
        self,
        action: Callable[[], None],
        period_seconds: float,
        initial_delay: float = 0.0,
        name: str = "plotstats-reporter",
    ) -> None:
        if period_seconds <= 0:
            raise ValueError("period_seconds must be > 0")
        self._action = action
        self._period = period_seconds
        self._initial_delay = initial_delay
        self._stop_event = threading.Event()
        self._worker = threading.Thread(target=self._run_loop, name=name, daemon=True)

    def start(self) -> "RepeatingTask":
        self._worker.start()
        return self

    def cancel(self) -> None:
        """Stop scheduling further runs.  Safe to call from inside ``action``."""
        self._stop_event.set()

    @property
    def cancelled(self) -> bool:
        return self._stop_event.is_set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._worker is not threading.current_thread() and self._worker.is_alive():
            self._worker.join(timeout=timeout)

    def _run_loop(self) -> None:
        if self._initial_delay > 0 and self._stop_event.wait(timeout=self._initial_delay):
            return
        while not self._stop_event.is_set():
            try:
                self._action()
            except Exception:
                logger.exception("Reporting task raised")
            if self._stop_event.wait(timeout=self._period):
                break


class ThreadScheduler:
    """Default scheduler: one daemon thread per repeating task."""

    def schedule_repeating(
        self,
        action: Callable[[], None],
        period_seconds: float,
        initial_delay: float = 0.0,
    ) -> RepeatingTask:
        return RepeatingTask(action, period_seconds, initial_delay).start()
