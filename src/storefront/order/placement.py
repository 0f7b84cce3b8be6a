"""Order placement: turns a frozen cart snapshot and checkout draft into a stored order.

Sequence:
    1. Build the Order snapshot from the lines.
    2. Authorize card payments through the payment gateway.
    3. Create the canonical ``orders`` document (the store assigns the id).
    4. Write the lightweight ``users/{uid}/orders`` index entry (best effort).
    5. Write the confirmation handoff to local state (best effort).

A failure in step 3 propagates as ``PersistenceError`` and nothing else is
written. Failures in steps 4 and 5 are logged and do not fail the order.
"""

import re
from dataclasses import dataclass

import structlog

from storefront.catalogue.money import CURRENCY
from storefront.checkout.draft import CheckoutDraft, PaymentMethod
from storefront.documents.port import DocumentStore
from storefront.errors import PaymentDeclined, PersistenceError
from storefront.gateway.port import PaymentGateway
from storefront.identity.port import User
from storefront.local_state.port import LocalState
from storefront.order.order import Order
from storefront.shared.events import EventDispatcher

logger = structlog.get_logger(__name__)

ORDERS = "orders"
LAST_ORDER_ID_KEY = "lastOrderId"
LAST_ORDER_KEY = "lastOrder"


def user_orders_collection(uid: str) -> str:
    return f"users/{uid}/orders"


@dataclass(frozen=True)
class PlacedOrder:
    order_id: str
    order: Order
    document: dict

    @property
    def total(self) -> int:
        return self.order.total


class OrderPlacement:
    def __init__(self, documents: DocumentStore, local_state: LocalState, gateway: PaymentGateway) -> None:
        self.documents = documents
        self.local_state = local_state
        self.gateway = gateway
        self.events = EventDispatcher()

    def place(self, lines, draft: CheckoutDraft, user: User | None = None) -> PlacedOrder:
        uid = user.uid if user else None
        order = Order.create(lines, draft, user_id=uid)

        if draft.payment_method == PaymentMethod.CARD.value:
            self._authorize(order, draft)

        document = order.to_document()
        order_id = self.documents.create_document(ORDERS, document)
        order.mark_placed(order_id)
        self.events.dispatch(order)

        logger.info(
            "order_placed",
            order_id=order_id,
            user_id=uid,
            total=order.total,
            total_items=order.total_items,
            payment_method=order.payment.method,
        )

        if uid:
            self._write_index(uid, order)

        snapshot = {**document, "id": order_id, "created_at": order.created_at.isoformat()}
        self._write_handoff(order_id, snapshot)

        return PlacedOrder(order_id=order_id, order=order, document=snapshot)

    def _authorize(self, order: Order, draft: CheckoutDraft) -> None:
        digits = re.sub(r"\D", "", draft.card_number)
        last4 = digits[-4:] or None
        result = self.gateway.authorize(
            amount=order.total,
            currency=CURRENCY,
            payment_method_type=PaymentMethod.CARD.value,
            last4=last4,
            idempotency_key=str(order.id),
        )
        if not result.success:
            logger.warning(
                "payment_declined",
                reason=result.failure_reason,
                gateway_status=result.gateway_status,
            )
            raise PaymentDeclined(result.failure_reason or "Payment was declined")

        order.authorize_payment(result.gateway_reference, last4=last4)

    def _write_index(self, uid: str, order: Order) -> None:
        try:
            self.documents.set_document(user_orders_collection(uid), order.order_id, order.index_entry())
        except PersistenceError as exc:
            logger.warning("order_index_write_failed", order_id=order.order_id, user_id=uid, error=str(exc))

    def _write_handoff(self, order_id: str, snapshot: dict) -> None:
        try:
            self.local_state.set(LAST_ORDER_ID_KEY, order_id)
            self.local_state.write_json(LAST_ORDER_KEY, snapshot)
        except PersistenceError as exc:
            logger.warning("order_handoff_write_failed", order_id=order_id, error=str(exc))
