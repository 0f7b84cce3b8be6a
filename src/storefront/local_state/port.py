"""Persisted local state port: the browser-local key/value store.

Values are strings. ``read_json`` / ``write_json`` layer JSON blobs on top
and treat absent or corrupt values as empty, which is how every caller
wants them.
"""

import json
from abc import ABC, abstractmethod
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class LocalState(ABC):
    """Abstract key/value interface."""

    @abstractmethod
    def get(self, key: str) -> str | None: ...

    @abstractmethod
    def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    def remove(self, key: str) -> None: ...

    def read_json(self, key: str, default: Any = None) -> Any:
        """Decode the JSON stored under ``key``; ``default`` when absent or unreadable."""
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError) as exc:
            logger.warning("local_state_corrupt", key=key, error=str(exc))
            return default

    def write_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value, default=str))
