"""Order history projection: the signed-in user's orders, newest first.

The lightweight index under ``users/{uid}/orders`` lists the orders; the
canonical ``orders`` records carry the authoritative status, payment, items
and totals. Views are always the merge of the two, so an index entry whose
canonical record is unavailable still shows, and canonical changes (e.g. an
admin status update) win as soon as they arrive.
"""

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import structlog
from protean.exceptions import InvalidOperationError, ValidationError

from storefront.documents.port import DOCUMENT_ID, Document, DocumentStore, Filter
from storefront.errors import PersistenceError, TransientSyncError
from storefront.order.placement import ORDERS, user_orders_collection
from storefront.shared.subscription import ListenerSet, Subscription

logger = structlog.get_logger(__name__)

ORDER_HISTORY_LIMIT = 100
CANONICAL_FETCH_LIMIT = 50
DEFAULT_STATUS = "pending"

# Checked in order; the first non-empty value is the order's status
_STATUS_PATHS = (
    ("status",),
    ("payment", "status"),
    ("lab", "status"),
    ("report", "status"),
    ("meta", "status"),
)


def resolve_status(record: dict | None) -> str:
    if not record:
        return DEFAULT_STATUS
    for path in _STATUS_PATHS:
        value: Any = record
        for key in path:
            value = value.get(key) if isinstance(value, dict) else None
        if value:
            return str(value)
    return DEFAULT_STATUS


@dataclass(frozen=True)
class OrderIndexEntry:
    order_id: str
    created_at: datetime | None = None
    subtotal: int = 0
    total: int = 0
    total_items: int = 0
    status: str | None = None

    @classmethod
    def from_document(cls, doc: Document) -> "OrderIndexEntry":
        data = doc.data
        return cls(
            order_id=data.get("order_id") or doc.id,
            created_at=data.get("created_at"),
            subtotal=data.get("subtotal") or 0,
            total=data.get("total") or 0,
            total_items=data.get("total_items") or 0,
            status=data.get("status"),
        )


@dataclass(frozen=True)
class OrderView:
    order_id: str
    created_at: datetime | None
    subtotal: int
    total: int
    total_items: int
    status: str
    items: tuple = ()
    payment: dict | None = None
    customer: dict | None = None
    canonical_available: bool = False

    def to_dict(self) -> dict:
        data = dataclasses.asdict(self)
        data["items"] = list(self.items)
        return data


_PATCHABLE = {f.name for f in dataclasses.fields(OrderView)} - {"order_id", "canonical_available"}


def merge_order(entry: OrderIndexEntry, canonical: dict | None) -> OrderView:
    """Overlay the canonical record on an index entry. Pure and idempotent."""
    if canonical is None:
        return OrderView(
            order_id=entry.order_id,
            created_at=entry.created_at,
            subtotal=entry.subtotal,
            total=entry.total,
            total_items=entry.total_items,
            status=entry.status or DEFAULT_STATUS,
        )

    def pick(name, fallback):
        value = canonical.get(name)
        return fallback if value is None else value

    return OrderView(
        order_id=entry.order_id,
        created_at=pick("created_at", entry.created_at),
        subtotal=pick("subtotal", entry.subtotal),
        total=pick("total", entry.total),
        total_items=pick("total_items", entry.total_items),
        status=resolve_status(canonical),
        items=tuple(canonical.get("items") or ()),
        payment=canonical.get("payment"),
        customer=canonical.get("customer"),
        canonical_available=True,
    )


class OrderHistory:
    """A user's order list plus, optionally, one expanded order kept live."""

    def __init__(self, documents: DocumentStore, user_id: str) -> None:
        self.documents = documents
        self.user_id = user_id
        self.watched_id: str | None = None
        self.last_sync_error: TransientSyncError | None = None

        self._entries: list[OrderIndexEntry] = []
        self._canonical: dict[str, dict | None] = {}
        self._patches: dict[str, dict] = {}
        self._watch: Subscription | None = None
        self._listeners = ListenerSet()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    @property
    def views(self) -> list[OrderView]:
        return [self._view(entry) for entry in self._entries]

    @property
    def expanded(self) -> OrderView | None:
        if self.watched_id is None:
            return None
        entry = self._entry(self.watched_id) or OrderIndexEntry(order_id=self.watched_id)
        return self._view(entry)

    def search(self, text: str | None) -> list[OrderView]:
        """Orders whose id, contact, payment or item names contain ``text``."""
        views = self.views
        needle = (text or "").strip().lower()
        if not needle:
            return views
        return [view for view in views if needle in _haystack(view)]

    # -------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------
    def load(self, limit: int = ORDER_HISTORY_LIMIT) -> list[OrderView]:
        """Fetch the index newest first, then the canonical records of the most recent orders.

        A failing index query raises ``PersistenceError`` and leaves the
        current views untouched.
        """
        self._ensure_active()
        docs = self.documents.query(
            user_orders_collection(self.user_id),
            order_by="created_at",
            descending=True,
            limit=limit,
        )
        entries = [OrderIndexEntry.from_document(doc) for doc in docs]

        canonical: dict[str, dict | None] = {}
        for entry in entries[:CANONICAL_FETCH_LIMIT]:
            try:
                record = self.documents.get_document(ORDERS, entry.order_id)
            except PersistenceError as exc:
                logger.warning("order_canonical_fetch_failed", order_id=entry.order_id, error=str(exc))
                canonical[entry.order_id] = self._canonical.get(entry.order_id)
                continue
            canonical[entry.order_id] = record
            if record is not None:
                self._patches.pop(entry.order_id, None)

        self._entries = entries
        self._canonical = canonical
        logger.debug("order_history_loaded", user_id=self.user_id, orders=len(entries))
        self._listeners.notify(self)
        return self.views

    # -------------------------------------------------------------------
    # Live updates
    # -------------------------------------------------------------------
    def watch(self, order_id: str) -> OrderView | None:
        """Expand an order and follow its canonical record.

        Watching the expanded order again collapses it. Watching a different
        order tears down the previous subscription first.
        """
        self._ensure_active()
        if self.watched_id == order_id:
            self.unwatch()
            return None

        self.unwatch()
        self.watched_id = order_id
        self._watch = self.documents.subscribe(
            ORDERS,
            lambda docs: self._on_canonical(order_id, docs),
            filters=(Filter(DOCUMENT_ID, "==", order_id),),
            on_error=lambda exc: self._on_sync_error(order_id, exc),
        )
        return self.expanded

    def unwatch(self) -> None:
        if self._watch is not None:
            self._watch.unsubscribe()
        self._watch = None
        self.watched_id = None

    def patch_locally(self, order_id: str, **fields) -> OrderView | None:
        """Show an optimistic change until the next canonical snapshot for the order."""
        unknown = set(fields) - _PATCHABLE
        if unknown:
            raise ValidationError({name: ["Field cannot be patched"] for name in sorted(unknown)})

        self._patches[order_id] = {**self._patches.get(order_id, {}), **fields}
        self._listeners.notify(self)
        entry = self._entry(order_id)
        return self._view(entry) if entry else None

    def subscribe(self, listener) -> Subscription:
        """Call ``listener(history)`` whenever the views change."""
        return self._listeners.add(listener)

    def dispose(self) -> None:
        if self._disposed:
            return
        self.unwatch()
        self._listeners.clear()
        self._disposed = True

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _on_canonical(self, order_id: str, docs: list[Document]) -> None:
        if self._disposed or self.watched_id != order_id:
            return
        if not docs:
            logger.info("order_canonical_missing", order_id=order_id)
            return

        self._canonical[order_id] = docs[0].data
        self._patches.pop(order_id, None)
        self.last_sync_error = None
        self._listeners.notify(self)

    def _on_sync_error(self, order_id: str, exc: Exception) -> None:
        if self._disposed:
            return
        error = exc if isinstance(exc, TransientSyncError) else TransientSyncError(str(exc), operation="watch")
        self.last_sync_error = error
        logger.warning("order_sync_error", order_id=order_id, error=str(error))

    def _entry(self, order_id: str) -> OrderIndexEntry | None:
        return next((entry for entry in self._entries if entry.order_id == order_id), None)

    def _view(self, entry: OrderIndexEntry) -> OrderView:
        view = merge_order(entry, self._canonical.get(entry.order_id))
        patch = self._patches.get(entry.order_id)
        return dataclasses.replace(view, **patch) if patch else view

    def _ensure_active(self) -> None:
        if self._disposed:
            raise InvalidOperationError("Order history has been disposed")


def _haystack(view: OrderView) -> str:
    customer = view.customer or {}
    payment = view.payment or {}
    parts = [
        view.order_id,
        customer.get("full_name"),
        customer.get("email"),
        customer.get("phone"),
        payment.get("method"),
        payment.get("status"),
        payment.get("reference"),
        view.status,
        *(item.get("name") for item in view.items if isinstance(item, dict)),
    ]
    return " ".join(str(part) for part in parts if part).lower()
