"""Dictionary-backed local state, one instance per browser session."""

from storefront.errors import PersistenceError
from storefront.local_state.port import LocalState


class InMemoryLocalState(LocalState):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})
        self.read_only = False

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        if self.read_only:
            raise PersistenceError(f"Local state is read-only, cannot write {key!r}", operation="set")
        self._values[key] = value

    def remove(self, key: str) -> None:
        if self.read_only:
            raise PersistenceError(f"Local state is read-only, cannot remove {key!r}", operation="remove")
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._values)
