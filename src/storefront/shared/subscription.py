"""Unsubscribe handles for listeners and real-time streams."""

from collections.abc import Callable


class Subscription:
    """Handle returned by every ``subscribe``-style call.

    ``unsubscribe()`` runs the teardown exactly once; later calls are no-ops.
    """

    def __init__(self, teardown: Callable[[], None]) -> None:
        self._teardown = teardown
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        self._teardown()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.unsubscribe()


class ListenerSet:
    """Ordered set of callbacks with subscription handles."""

    def __init__(self) -> None:
        self._listeners: list[Callable] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def add(self, listener: Callable) -> Subscription:
        self._listeners.append(listener)
        return Subscription(lambda: self._discard(listener))

    def notify(self, *args) -> None:
        # Copy so that a listener may unsubscribe while being notified
        for listener in list(self._listeners):
            listener(*args)

    def clear(self) -> None:
        self._listeners.clear()

    def _discard(self, listener: Callable) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)
