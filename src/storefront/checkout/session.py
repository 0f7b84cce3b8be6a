"""Checkout session: form editing, validation and submission of one checkout.

State machine:
    EDITING → VALIDATING → SUBMITTING → COMPLETED
                  ↓             ↓
               EDITING        FAILED → EDITING (on the next edit)

Submission is guarded: while one submit is validating or in flight, a
second one is rejected, so a double click can never create two orders.
"""

import threading
from enum import Enum

import structlog
from protean.exceptions import InvalidOperationError, ValidationError

from storefront.cart.store import CartStore
from storefront.checkout.draft import PERSISTED_FIELDS, CheckoutDraft, DraftManager, PaymentMethod, ShippingMethod
from storefront.checkout.validation import shipping_cost_for, validate_checkout
from storefront.errors import PaymentDeclined
from storefront.identity.port import IdentityProvider
from storefront.order.placement import OrderPlacement, PlacedOrder

logger = structlog.get_logger(__name__)

ORDER_SAVE_FAILED = "Something went wrong while saving your order. Please try again."
PAYMENT_DECLINED = "Your card could not be authorized. Please check the details or choose another payment method."
EMPTY_CART = "Your cart is empty"


class CheckoutState(Enum):
    EDITING = "editing"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    FAILED = "failed"


_BUSY = {CheckoutState.VALIDATING, CheckoutState.SUBMITTING}


class CheckoutSession:
    def __init__(
        self,
        cart_store: CartStore,
        draft_manager: DraftManager,
        placement: OrderPlacement,
        identity: IdentityProvider | None = None,
    ) -> None:
        self.cart_store = cart_store
        self.draft_manager = draft_manager
        self.placement = placement
        self.identity = identity

        self.draft: CheckoutDraft = draft_manager.load_draft()
        self.state = CheckoutState.EDITING
        self.errors: dict[str, str] = {}
        self.error_message: str | None = None
        self.placed: PlacedOrder | None = None
        self._lock = threading.Lock()

    # -------------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------------
    @property
    def subtotal(self) -> int:
        return self.cart_store.subtotal

    @property
    def shipping_cost(self) -> int:
        return shipping_cost_for(self.draft.shipping_method)

    @property
    def total(self) -> int:
        return self.subtotal + self.shipping_cost

    # -------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------
    def update_field(self, name: str, value) -> None:
        self.update_fields({name: value})

    def update_fields(self, changes: dict) -> None:
        """Apply form edits, clear their errors and schedule a draft autosave."""
        known = CheckoutDraft.field_names()
        unknown = [name for name in changes if name not in known]
        if unknown:
            raise ValidationError({name: ["Unknown checkout field"] for name in unknown})

        with self._lock:
            if self.state in _BUSY:
                raise InvalidOperationError("The order is being placed and can no longer be edited")
            if self.state is CheckoutState.COMPLETED:
                raise InvalidOperationError("This checkout has already been completed")

            draft = self.draft.with_changes(**{name: str(value) for name, value in changes.items()})
            choice_errors = _choice_errors(draft)
            if choice_errors:
                raise ValidationError(choice_errors)

            if self.state is CheckoutState.FAILED:
                self.state = CheckoutState.EDITING
                self.error_message = None
            self.draft = draft
            for name in changes:
                self.errors.pop(name, None)

        self.draft_manager.save_draft(self.draft)

    # -------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------
    def submit(self) -> PlacedOrder:
        with self._lock:
            if self.state in _BUSY:
                raise InvalidOperationError("An order is already being placed")
            if self.state is CheckoutState.COMPLETED:
                raise InvalidOperationError("This checkout has already been completed")
            self.state = CheckoutState.VALIDATING
            self.error_message = None

        lines = self.cart_store.snapshot()
        draft = self.draft

        errors = {} if lines else {"cart": EMPTY_CART}
        errors.update(validate_checkout(draft))
        if errors:
            with self._lock:
                self.errors = errors
                self.state = CheckoutState.EDITING
            raise ValidationError({name: [message] for name, message in errors.items()})

        with self._lock:
            self.errors = {}
            self.state = CheckoutState.SUBMITTING

        user = self.identity.current_user if self.identity else None
        try:
            placed = self.placement.place(lines, draft, user)
        except PaymentDeclined as exc:
            self._fail(PAYMENT_DECLINED, exc)
            raise
        except Exception as exc:
            self._fail(ORDER_SAVE_FAILED, exc)
            raise

        self.cart_store.clear_cart()
        self.draft_manager.clear_draft()
        with self._lock:
            self.placed = placed
            self.draft = CheckoutDraft()
            self.state = CheckoutState.COMPLETED
        return placed

    def _fail(self, message: str, exc: Exception) -> None:
        logger.error("order_submit_failed", error=str(exc), error_type=type(exc).__name__)
        with self._lock:
            self.error_message = message
            self.state = CheckoutState.FAILED

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "draft": {name: getattr(self.draft, name) for name in (*PERSISTED_FIELDS, "card_name")},
            "errors": dict(self.errors),
            "error_message": self.error_message,
            "subtotal": self.subtotal,
            "shipping_cost": self.shipping_cost,
            "total": self.total,
            "order_id": self.placed.order_id if self.placed else None,
        }


def _choice_errors(draft: CheckoutDraft) -> dict:
    errors = {}
    if draft.shipping_method not in {m.value for m in ShippingMethod}:
        errors["shipping_method"] = ["Choose standard or express shipping"]
    if draft.payment_method not in {m.value for m in PaymentMethod}:
        errors["payment_method"] = ["Choose cash on delivery or card"]
    return errors
