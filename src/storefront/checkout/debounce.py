"""Timer-based coalescing of bursts of calls into a single trailing call."""

import threading
from collections.abc import Callable


class Debouncer:
    """Run ``callback`` once, ``delay`` seconds after the last ``call()``.

    Each ``call()`` cancels the pending timer and schedules a new one with the
    latest arguments. ``timer_factory`` must build an object with ``start()``
    and ``cancel()`` from ``(delay, function)``; ``threading.Timer`` by default.
    """

    def __init__(self, delay: float, callback: Callable, timer_factory: Callable = threading.Timer) -> None:
        self.delay = delay
        self.callback = callback
        self.timer_factory = timer_factory
        self._lock = threading.Lock()
        # Held while the callback runs
        self._running = threading.RLock()
        self._timer = None
        self._args: tuple = ()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def call(self, *args) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._args = args
            self._timer = self.timer_factory(self.delay, self._fire)
            if hasattr(self._timer, "daemon"):
                self._timer.daemon = True
            self._timer.start()

    def flush(self) -> None:
        """Run the pending call now, if there is one."""
        with self._lock:
            if self._timer is None:
                return
            self._timer.cancel()
        self._fire()

    def cancel(self) -> None:
        """Drop the pending call. Returns only after a callback already running has finished."""
        with self._running, self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._args = ()

    def _fire(self) -> None:
        with self._running:
            with self._lock:
                if self._timer is None:
                    return
                self._timer = None
                args, self._args = self._args, ()
            self.callback(*args)
