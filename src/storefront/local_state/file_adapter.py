"""Local state kept in a single JSON file so that it survives restarts."""

import json
import threading
from pathlib import Path

import structlog

from storefront.errors import PersistenceError
from storefront.local_state.port import LocalState

logger = structlog.get_logger(__name__)


class FileLocalState(LocalState):
    """Key/value pairs stored as one JSON object in ``path``.

    A missing or unreadable file starts out empty.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._values = self._load()

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value
            self._dump()

    def remove(self, key: str) -> None:
        with self._lock:
            if self._values.pop(key, None) is not None:
                self._dump()

    def _load(self) -> dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("local_state_file_unreadable", path=str(self.path), error=str(exc))
            return {}
        if not isinstance(data, dict):
            logger.warning("local_state_file_unreadable", path=str(self.path), error="not a JSON object")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _dump(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(self._values), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as exc:
            raise PersistenceError(f"Could not write {self.path}: {exc}", operation="set") from exc
