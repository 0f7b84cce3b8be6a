"""Document store port (abstract interface).

The hosted document database is reached only through this contract:
create/set/get/update/delete single documents, query a collection and
subscribe to real-time snapshots of a query. Adapters raise
``PersistenceError`` when the backend fails.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from storefront.shared.subscription import Subscription


class _ServerTimestamp:
    """Sentinel replaced by the store's own clock when a document is written."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()

# Pseudo-field that filters on the document id instead of a stored field
DOCUMENT_ID = "__id__"


@dataclass(frozen=True)
class Filter:
    """A single ``field <op> value`` condition. Supported ops: ==, !=, <, <=, >, >=, in, array-contains."""

    field: str
    op: str
    value: Any


@dataclass(frozen=True)
class Document:
    """A document id and a copy of its fields."""

    id: str
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"id": self.id, **self.data}


class DocumentStore(ABC):
    """Abstract document store interface."""

    @abstractmethod
    def create_document(self, collection: str, fields: dict) -> str:
        """Store a new document and return the id assigned by the store."""
        ...

    @abstractmethod
    def set_document(self, collection: str, doc_id: str, fields: dict) -> None:
        """Create or overwrite the document with a caller-chosen id."""
        ...

    @abstractmethod
    def get_document(self, collection: str, doc_id: str) -> dict | None:
        """Return the document's fields, or None when it does not exist."""
        ...

    @abstractmethod
    def update_document(self, collection: str, doc_id: str, fields: dict) -> None:
        """Merge ``fields`` into an existing document."""
        ...

    @abstractmethod
    def delete_document(self, collection: str, doc_id: str) -> bool:
        """Delete a document. Returns False when it did not exist."""
        ...

    @abstractmethod
    def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]:
        """Run a one-off query."""
        ...

    @abstractmethod
    def subscribe(
        self,
        collection: str,
        on_snapshot: Callable[[list[Document]], None],
        filters: Iterable[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        on_error: Callable[[Exception], None] | None = None,
    ) -> Subscription:
        """Deliver the current result set now and again after every change."""
        ...
