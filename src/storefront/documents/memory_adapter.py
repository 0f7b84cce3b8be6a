"""In-memory document store for development and testing.

Behaves like the hosted store closely enough for the storefront: ids are
generated on create, ``SERVER_TIMESTAMP`` sentinels become the write time,
and subscribers receive a fresh snapshot after every write to their
collection. Failures can be injected per operation to exercise error paths.
"""

import copy
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from uuid import uuid4

from storefront.documents.port import DOCUMENT_ID, SERVER_TIMESTAMP, Document, DocumentStore, Filter
from storefront.errors import PersistenceError
from storefront.shared.subscription import Subscription

_OPERATORS = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a is not None and a < b,
    "<=": lambda a, b: a is not None and a <= b,
    ">": lambda a, b: a is not None and a > b,
    ">=": lambda a, b: a is not None and a >= b,
    "in": lambda a, b: a in b,
    "array-contains": lambda a, b: isinstance(a, list | tuple) and b in a,
}


class _Listener:
    def __init__(self, filters, order_by, descending, on_snapshot, on_error):
        self.filters = tuple(filters)
        self.order_by = order_by
        self.descending = descending
        self.on_snapshot = on_snapshot
        self.on_error = on_error


class InMemoryDocumentStore(DocumentStore):
    """Dictionary-backed document store."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict]] = {}
        self._listeners: dict[str, list[_Listener]] = {}
        self._failures: dict[str, str] = {}
        self.calls: list[dict] = []

    # -------------------------------------------------------------------
    # Failure injection
    # -------------------------------------------------------------------
    def fail_on(self, operation: str, message: str = "Document store unavailable") -> None:
        """Make every later call to ``operation`` raise ``PersistenceError``."""
        self._failures[operation] = message

    def recover(self, operation: str | None = None) -> None:
        if operation is None:
            self._failures.clear()
        else:
            self._failures.pop(operation, None)

    def emit_error(self, collection: str, error: Exception) -> None:
        """Deliver a listener error to every subscriber of ``collection``."""
        for listener in list(self._listeners.get(collection, [])):
            if listener.on_error is not None:
                listener.on_error(error)

    # -------------------------------------------------------------------
    # DocumentStore
    # -------------------------------------------------------------------
    def create_document(self, collection: str, fields: dict) -> str:
        self._record("create_document", collection=collection, fields=fields)
        doc_id = uuid4().hex[:20]
        self._docs(collection)[doc_id] = self._stamp(fields)
        self._publish(collection)
        return doc_id

    def set_document(self, collection: str, doc_id: str, fields: dict) -> None:
        self._record("set_document", collection=collection, doc_id=doc_id, fields=fields)
        self._docs(collection)[doc_id] = self._stamp(fields)
        self._publish(collection)

    def get_document(self, collection: str, doc_id: str) -> dict | None:
        self._record("get_document", collection=collection, doc_id=doc_id)
        data = self._docs(collection).get(doc_id)
        return copy.deepcopy(data) if data is not None else None

    def update_document(self, collection: str, doc_id: str, fields: dict) -> None:
        self._record("update_document", collection=collection, doc_id=doc_id, fields=fields)
        docs = self._docs(collection)
        if doc_id not in docs:
            raise PersistenceError(f"No document {collection}/{doc_id} to update", operation="update_document")
        docs[doc_id].update(self._stamp(fields))
        self._publish(collection)

    def delete_document(self, collection: str, doc_id: str) -> bool:
        self._record("delete_document", collection=collection, doc_id=doc_id)
        existed = self._docs(collection).pop(doc_id, None) is not None
        if existed:
            self._publish(collection)
        return existed

    def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]:
        self._record("query", collection=collection)
        results = self._select(collection, tuple(filters), order_by, descending)
        return results[:limit] if limit else results

    def subscribe(
        self,
        collection: str,
        on_snapshot: Callable[[list[Document]], None],
        filters: Iterable[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        on_error: Callable[[Exception], None] | None = None,
    ) -> Subscription:
        self._record("subscribe", collection=collection)
        listener = _Listener(filters, order_by, descending, on_snapshot, on_error)
        self._listeners.setdefault(collection, []).append(listener)
        on_snapshot(self._select(collection, listener.filters, order_by, descending))
        return Subscription(lambda: self._unsubscribe(collection, listener))

    def listener_count(self, collection: str) -> int:
        return len(self._listeners.get(collection, []))

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _record(self, operation: str, **details) -> None:
        self.calls.append({"method": operation, **details})
        if operation in self._failures:
            raise PersistenceError(self._failures[operation], operation=operation)

    def _docs(self, collection: str) -> dict[str, dict]:
        return self._collections.setdefault(collection, {})

    def _stamp(self, fields: dict) -> dict:
        now = datetime.now(UTC)
        return {key: now if value is SERVER_TIMESTAMP else copy.deepcopy(value) for key, value in fields.items()}

    def _select(self, collection, filters, order_by, descending) -> list[Document]:
        matches = [
            Document(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self._docs(collection).items()
            if all(self._matches(doc_id, data, f) for f in filters)
        ]
        if order_by:
            # Documents missing the sort field go last regardless of direction
            present = [d for d in matches if d.data.get(order_by) is not None]
            missing = [d for d in matches if d.data.get(order_by) is None]
            present.sort(key=lambda d: d.data[order_by], reverse=descending)
            matches = present + missing
        return matches

    @staticmethod
    def _matches(doc_id: str, data: dict, condition: Filter) -> bool:
        value = doc_id if condition.field == DOCUMENT_ID else data.get(condition.field)
        return _OPERATORS[condition.op](value, condition.value)

    def _publish(self, collection: str) -> None:
        for listener in list(self._listeners.get(collection, [])):
            snapshot = self._select(collection, listener.filters, listener.order_by, listener.descending)
            listener.on_snapshot(snapshot)

    def _unsubscribe(self, collection: str, listener: _Listener) -> None:
        listeners = self._listeners.get(collection, [])
        if listener in listeners:
            listeners.remove(listener)
