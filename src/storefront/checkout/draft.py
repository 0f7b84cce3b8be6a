"""Checkout draft: in-progress checkout form data that survives reloads.

Only contact, address and method fields are persisted. Card fields stay in
memory and are never written to local state.
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum

import structlog

from storefront.checkout.debounce import Debouncer
from storefront.errors import PersistenceError
from storefront.local_state.port import LocalState

logger = structlog.get_logger(__name__)

DRAFT_KEY = "checkoutFormDraft"
DRAFT_SAVE_DELAY = 0.6


class ShippingMethod(Enum):
    STANDARD = "standard"
    EXPRESS = "express"


class PaymentMethod(Enum):
    COD = "cod"
    CARD = "card"


PERSISTED_FIELDS = (
    "full_name",
    "email",
    "phone",
    "address1",
    "address2",
    "city",
    "state",
    "postal",
    "country",
    "shipping_method",
    "payment_method",
)

CARD_FIELDS = ("card_name", "card_number", "card_exp", "card_cvv")

_CHOICES = {
    "shipping_method": {m.value for m in ShippingMethod},
    "payment_method": {m.value for m in PaymentMethod},
}


@dataclass(frozen=True)
class CheckoutDraft:
    full_name: str = ""
    email: str = ""
    phone: str = ""
    address1: str = ""
    address2: str = ""
    city: str = ""
    state: str = ""
    postal: str = ""
    country: str = "India"
    shipping_method: str = ShippingMethod.STANDARD.value
    payment_method: str = PaymentMethod.COD.value
    card_name: str = ""
    card_number: str = ""
    card_exp: str = ""
    card_cvv: str = ""

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in dataclasses.fields(cls))

    @classmethod
    def from_persisted(cls, data: dict) -> "CheckoutDraft":
        """Overlay persisted values on the defaults, ignoring anything unexpected."""
        values = {}
        for name in PERSISTED_FIELDS:
            value = data.get(name)
            if not isinstance(value, str):
                continue
            if name in _CHOICES and value not in _CHOICES[name]:
                continue
            values[name] = value
        return cls(**values)

    def with_changes(self, **changes) -> "CheckoutDraft":
        return dataclasses.replace(self, **changes)

    def to_persisted(self) -> dict:
        return {name: getattr(self, name) for name in PERSISTED_FIELDS}

    def customer_details(self) -> dict:
        return {
            name: getattr(self, name).strip()
            for name in ("full_name", "email", "phone", "address1", "address2", "city", "state", "postal", "country")
        }


class DraftManager:
    """Loads, autosaves (debounced) and clears the checkout draft."""

    def __init__(self, local_state: LocalState, delay: float = DRAFT_SAVE_DELAY, timer_factory=None) -> None:
        self.local_state = local_state
        kwargs = {"timer_factory": timer_factory} if timer_factory is not None else {}
        self._debouncer = Debouncer(delay, self._write, **kwargs)

    @property
    def save_pending(self) -> bool:
        return self._debouncer.pending

    def load_draft(self) -> CheckoutDraft:
        data = self.local_state.read_json(DRAFT_KEY, default=None)
        if not isinstance(data, dict):
            return CheckoutDraft()
        return CheckoutDraft.from_persisted(data)

    def save_draft(self, draft: CheckoutDraft) -> None:
        self._debouncer.call(draft.to_persisted())

    def flush(self) -> None:
        self._debouncer.flush()

    def clear_draft(self) -> None:
        self._debouncer.cancel()
        try:
            self.local_state.remove(DRAFT_KEY)
        except PersistenceError as exc:
            logger.warning("draft_clear_failed", error=str(exc))

    def _write(self, payload: dict) -> None:
        try:
            self.local_state.write_json(DRAFT_KEY, payload)
        except PersistenceError as exc:
            logger.warning("draft_save_failed", error=str(exc))
