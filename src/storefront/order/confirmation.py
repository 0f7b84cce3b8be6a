"""Order confirmation handoff: shows the order that was just placed."""

import structlog
from protean.exceptions import ObjectNotFoundError

from storefront.documents.port import DocumentStore
from storefront.errors import PersistenceError
from storefront.local_state.port import LocalState
from storefront.order.placement import LAST_ORDER_ID_KEY, LAST_ORDER_KEY, ORDERS

logger = structlog.get_logger(__name__)


def load_last_order(local_state: LocalState, documents: DocumentStore) -> dict:
    """Return the last placed order, preferring the canonical record.

    Falls back to the snapshot written at placement time when the canonical
    record is missing or cannot be read.
    """
    order_id = local_state.get(LAST_ORDER_ID_KEY)
    if order_id:
        try:
            canonical = documents.get_document(ORDERS, order_id)
        except PersistenceError as exc:
            logger.warning("last_order_fetch_failed", order_id=order_id, error=str(exc))
            canonical = None
        if canonical is not None:
            return {**canonical, "id": order_id}

    snapshot = local_state.read_json(LAST_ORDER_KEY)
    if isinstance(snapshot, dict) and snapshot.get("id"):
        return snapshot

    raise ObjectNotFoundError({"order": ["No recent order found"]})
