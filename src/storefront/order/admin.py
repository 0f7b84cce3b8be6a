"""Administrative order status updates.

Only ``status``, ``status_updated_at`` and ``status_history`` are touched on
the canonical record; the placed snapshot itself never changes.
"""

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError

from storefront.documents.port import SERVER_TIMESTAMP, DocumentStore
from storefront.order.order import ORDER_STATUSES
from storefront.order.placement import ORDERS

logger = structlog.get_logger(__name__)


class OrderAdministration:
    def __init__(self, documents: DocumentStore) -> None:
        self.documents = documents

    def list_orders(self, limit: int = 100) -> list[dict]:
        return [
            doc.to_dict()
            for doc in self.documents.query(ORDERS, order_by="created_at", descending=True, limit=limit)
        ]

    def update_status(self, order_id: str, status: str) -> dict:
        if status not in ORDER_STATUSES:
            raise ValidationError({"status": [f"Unknown order status '{status}'"]})

        current = self.documents.get_document(ORDERS, order_id)
        if current is None:
            raise ObjectNotFoundError({"order_id": [f"Order {order_id} does not exist"]})

        history = list(current.get("status_history") or [])
        history.append({"status": status, "previous": current.get("status")})
        self.documents.update_document(
            ORDERS,
            order_id,
            {
                "status": status,
                "status_updated_at": SERVER_TIMESTAMP,
                "status_history": history,
            },
        )
        logger.info("order_status_updated", order_id=order_id, status=status, previous=current.get("status"))
        return {**self.documents.get_document(ORDERS, order_id), "id": order_id}
