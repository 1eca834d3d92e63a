"""
Restart-on-change timer used to debounce draft edits.
"""

import threading
from typing import Callable, Optional


class Debouncer:
    """
    Runs callback once, delay seconds after the most recent trigger().

    At most one timer is pending at any time; every trigger() cancels it and
    starts a fresh one, so a burst collapses to a single call.
    """

    def __init__(self, delay: float, callback: Callable[[], None],
                 timer_factory: Callable[..., threading.Timer] = threading.Timer):
        if delay < 0:
            raise ValueError(f"debounce delay must be non-negative, got {delay}")
        self.delay = delay
        self.callback = callback
        self.timer_factory = timer_factory
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def trigger(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._timer = self.timer_factory(self.delay, self._fire, args=[self._generation])
            self._timer.daemon = True
            self._timer.start()

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A timer that was already running when it got replaced is stale
            if generation != self._generation or self._timer is None:
                return
            self._timer = None
        self.callback()

    def flush(self) -> None:
        """Run a pending callback now instead of waiting for the timer."""
        with self._lock:
            timer, self._timer = self._timer, None
            self._generation += 1
        if timer is not None:
            timer.cancel()
            self.callback()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1
