"""Object storage port: hosted storage for product images."""

from abc import ABC, abstractmethod
from collections.abc import Callable


class ObjectStorage(ABC):
    """Abstract object storage interface."""

    @abstractmethod
    def upload(self, data: bytes, path: str, on_progress: Callable[[int], None] | None = None) -> str:
        """Store ``data`` at ``path`` and return its public URL.

        ``on_progress`` receives whole percentages as the upload advances.
        """
        ...

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Delete the object at ``path``. Returns False when it did not exist."""
        ...
