"""Application context: wires the ports into the storefront services for one session.

Lifecycle: ``StorefrontContext(...)`` → ``start()`` (restore the cart and
follow auth changes) → ``dispose()`` (flush the draft and tear down every
subscription). No module-level singletons: everything a session touches
hangs off its context.
"""

import structlog
from protean.exceptions import InvalidOperationError

from storefront.cart.store import CartStore
from storefront.catalogue.products import ProductCatalogue
from storefront.checkout.draft import DRAFT_SAVE_DELAY, DraftManager
from storefront.checkout.session import CheckoutSession, CheckoutState
from storefront.documents.port import DocumentStore
from storefront.gateway.port import PaymentGateway
from storefront.identity.port import AuthenticationError, IdentityProvider, User
from storefront.local_state.port import LocalState
from storefront.order.admin import OrderAdministration
from storefront.order.confirmation import load_last_order
from storefront.order.placement import OrderPlacement
from storefront.projections.order_history import OrderHistory
from storefront.shared.subscription import Subscription
from storefront.storage.port import ObjectStorage

logger = structlog.get_logger(__name__)


class StorefrontContext:
    def __init__(
        self,
        documents: DocumentStore,
        local_state: LocalState,
        identity: IdentityProvider,
        gateway: PaymentGateway,
        storage: ObjectStorage | None = None,
        draft_delay: float = DRAFT_SAVE_DELAY,
        timer_factory=None,
    ) -> None:
        self.documents = documents
        self.local_state = local_state
        self.identity = identity

        self.cart = CartStore(local_state)
        self.drafts = DraftManager(local_state, delay=draft_delay, timer_factory=timer_factory)
        self.placement = OrderPlacement(documents, local_state, gateway)
        self.catalogue = ProductCatalogue(documents, storage)
        self.admin = OrderAdministration(documents)

        self.user: User | None = None
        self._checkout: CheckoutSession | None = None
        self._history: OrderHistory | None = None
        self._subscriptions: list[Subscription] = []
        self._started = False
        self._disposed = False

    def __enter__(self) -> "StorefrontContext":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.dispose()

    @property
    def disposed(self) -> bool:
        return self._disposed

    def start(self) -> "StorefrontContext":
        if self._disposed:
            raise InvalidOperationError("Storefront context has been disposed")
        if self._started:
            return self
        self.cart.load()
        self._subscriptions.append(self.identity.on_auth_state_changed(self._on_auth_changed))
        self._started = True
        return self

    def dispose(self) -> None:
        if self._disposed:
            return
        self.drafts.flush()
        if self._history is not None:
            self._history.dispose()
            self._history = None
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions.clear()
        self.cart.dispose()
        self._disposed = True
        logger.debug("storefront_context_disposed")

    # -------------------------------------------------------------------
    # Services
    # -------------------------------------------------------------------
    def checkout(self) -> CheckoutSession:
        """The session's checkout. A completed checkout is replaced by a fresh one."""
        if self._checkout is None or self._checkout.state is CheckoutState.COMPLETED:
            self._checkout = CheckoutSession(self.cart, self.drafts, self.placement, self.identity)
        return self._checkout

    def order_history(self) -> OrderHistory:
        if self.user is None:
            raise AuthenticationError("Sign in to view your orders")
        if self._history is None:
            self._history = OrderHistory(self.documents, self.user.uid)
        return self._history

    def last_order(self) -> dict:
        return load_last_order(self.local_state, self.documents)

    # -------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------
    def _on_auth_changed(self, user: User | None) -> None:
        if self._disposed:
            return
        self.user = user
        if self._history is not None and (user is None or user.uid != self._history.user_id):
            self._history.dispose()
            self._history = None
        logger.info("auth_state_changed", user_id=user.uid if user else None)
