"""Hands the events an aggregate raised to in-process listeners.

Storefront aggregates live in session memory rather than in a repository,
so no unit of work collects their events. Services call ``dispatch`` after
each mutation: the aggregate's pending events are removed, logged and
passed to every subscribed listener in the order they were raised.
"""

from collections.abc import Callable

import structlog

from storefront.shared.subscription import ListenerSet, Subscription

logger = structlog.get_logger(__name__)


class EventDispatcher:
    def __init__(self) -> None:
        self._listeners = ListenerSet()

    def subscribe(self, listener: Callable) -> Subscription:
        """Call ``listener(event)`` for every dispatched event."""
        return self._listeners.add(listener)

    def dispatch(self, aggregate) -> list:
        events = list(aggregate._events)
        aggregate._events.clear()
        for event in events:
            logger.debug("domain_event", event_type=type(event).__name__, aggregate=type(aggregate).__name__)
            self._listeners.notify(event)
        return events

    def clear(self) -> None:
        self._listeners.clear()
