"""Cart store: the session's cart, persisted to local state after every change.

The store owns one ``ShoppingCart`` aggregate. Every mutation is written to
local state under ``cartItems`` and announced to subscribers; ``load()``
restores the persisted lines at startup. Missing or corrupt persisted data
gives an empty cart. A failed write is logged and the in-memory cart stays
authoritative.
"""

from collections.abc import Callable

import structlog
from protean.exceptions import ValidationError

from storefront.cart.cart import ShoppingCart
from storefront.catalogue.variant import ProductVariant
from storefront.errors import PersistenceError
from storefront.local_state.port import LocalState
from storefront.shared.events import EventDispatcher
from storefront.shared.subscription import ListenerSet, Subscription

logger = structlog.get_logger(__name__)

CART_KEY = "cartItems"

_LINE_FIELDS = {"variant_key", "product_id", "name", "image_url", "unit_price", "volume", "quantity"}


class CartStore:
    def __init__(self, local_state: LocalState) -> None:
        self.local_state = local_state
        self.is_panel_open = False
        self._cart = ShoppingCart()
        self._listeners = ListenerSet()
        self.events = EventDispatcher()

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def load(self) -> "CartStore":
        """Replace the in-memory cart with the persisted one."""
        self._cart = self._restore()
        self._listeners.notify(self)
        return self

    def subscribe(self, listener: Callable[["CartStore"], None]) -> Subscription:
        """Call ``listener(store)`` after every change."""
        return self._listeners.add(listener)

    def dispose(self) -> None:
        self._listeners.clear()
        self.events.clear()

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    @property
    def cart(self) -> ShoppingCart:
        return self._cart

    @property
    def lines(self) -> list:
        return list(self._cart.lines)

    @property
    def subtotal(self) -> int:
        return self._cart.subtotal

    @property
    def total_quantity(self) -> int:
        return self._cart.total_quantity

    @property
    def is_empty(self) -> bool:
        return not self._cart.lines

    def snapshot(self) -> tuple[dict, ...]:
        """Copies of the current lines; later cart changes do not affect them."""
        return tuple(line.to_record() for line in self._cart.lines)

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add_to_cart(self, variant: ProductVariant, quantity=1) -> None:
        self._cart.add_item(variant, quantity)
        self.is_panel_open = True
        self._changed()

    def update_quantity(self, variant_key: str, quantity: int) -> None:
        if not self._cart.update_item_quantity(variant_key, quantity):
            logger.info("cart_line_not_found", variant_key=variant_key, operation="update_quantity")
            return
        self._changed()

    def remove_from_cart(self, variant_key: str) -> None:
        if self._cart.remove_item(variant_key):
            self._changed()

    def clear_cart(self) -> None:
        self._cart.clear()
        self._changed()

    # -------------------------------------------------------------------
    # Cart panel
    # -------------------------------------------------------------------
    def open_panel(self) -> None:
        self.is_panel_open = True
        self._listeners.notify(self)

    def close_panel(self) -> None:
        self.is_panel_open = False
        self._listeners.notify(self)

    def toggle_panel(self) -> None:
        self.is_panel_open = not self.is_panel_open
        self._listeners.notify(self)

    # -------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------
    def _changed(self) -> None:
        self.events.dispatch(self._cart)
        self._persist()
        self._listeners.notify(self)

    def _persist(self) -> None:
        try:
            self.local_state.write_json(CART_KEY, list(self.snapshot()))
        except PersistenceError as exc:
            logger.warning("cart_save_failed", error=str(exc))

    def _restore(self) -> ShoppingCart:
        records = self.local_state.read_json(CART_KEY, default=[])
        if not isinstance(records, list) or not all(_is_line_record(r) for r in records):
            logger.warning("cart_restore_failed", reason="unexpected shape")
            return ShoppingCart()
        try:
            return ShoppingCart.restore(records)
        except (ValidationError, ValueError, TypeError) as exc:
            logger.warning("cart_restore_failed", reason=str(exc))
            return ShoppingCart()


def _is_line_record(record) -> bool:
    return (
        isinstance(record, dict)
        and set(record) <= _LINE_FIELDS
        and isinstance(record.get("variant_key"), str)
        and isinstance(record.get("quantity"), int)
        and not isinstance(record.get("quantity"), bool)
        and isinstance(record.get("unit_price"), int)
    )
