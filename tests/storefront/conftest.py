import pytest
from protean.integrations.pytest import DomainFixture

from storefront.cart.store import CartStore
from storefront.checkout.draft import DraftManager
from storefront.checkout.session import CheckoutSession
from storefront.documents.memory_adapter import InMemoryDocumentStore
from storefront.gateway.fake_adapter import FakeGateway
from storefront.identity.memory_adapter import InMemoryIdentityProvider
from storefront.local_state.memory_adapter import InMemoryLocalState
from storefront.order.placement import OrderPlacement
from storefront.storage.memory_adapter import InMemoryObjectStorage


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield


# ---------------------------------------------------------------------------
# Timers
# ---------------------------------------------------------------------------
class ManualTimer:
    """Stands in for ``threading.Timer``; fires only when the test says so."""

    def __init__(self, delay, function):
        self.delay = delay
        self.function = function
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if self.started and not self.cancelled:
            self.function()


class ManualTimers(list):
    def __call__(self, delay, function):
        timer = ManualTimer(delay, function)
        self.append(timer)
        return timer

    @property
    def live(self):
        return [t for t in self if t.started and not t.cancelled]

    def fire_all(self):
        for timer in list(self.live):
            timer.fire()


@pytest.fixture()
def timers():
    return ManualTimers()


# ---------------------------------------------------------------------------
# Ports
# ---------------------------------------------------------------------------
@pytest.fixture()
def documents():
    return InMemoryDocumentStore()


@pytest.fixture()
def local_state():
    return InMemoryLocalState()


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def identity():
    return InMemoryIdentityProvider()


@pytest.fixture()
def storage():
    return InMemoryObjectStorage()


# ---------------------------------------------------------------------------
# Catalogue data
# ---------------------------------------------------------------------------
@pytest.fixture()
def oud_noir():
    return {
        "id": "oud-noir",
        "name": "Oud Noir",
        "image_url": "https://img.example/oud-noir.jpg",
        "price": 49900,
        "prices": [
            {"volume": "50ml", "price": 49900},
            {"volume": "100ml", "price": 79900},
        ],
        "tags": ["woody", "evening"],
    }


@pytest.fixture()
def citrus_bloom():
    """A product stored before per-volume pricing existed."""
    return {"id": "citrus-bloom", "name": "Citrus Bloom", "price": 29900, "tags": ["fresh"]}


@pytest.fixture()
def seeded_products(documents, oud_noir, citrus_bloom):
    for product in (oud_noir, citrus_bloom):
        fields = {k: v for k, v in product.items() if k != "id"}
        documents.set_document("products", product["id"], fields)
    return documents


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------
@pytest.fixture()
def cart_store(local_state):
    return CartStore(local_state).load()


@pytest.fixture()
def draft_manager(local_state, timers):
    return DraftManager(local_state, timer_factory=timers)


@pytest.fixture()
def placement(documents, local_state, gateway):
    return OrderPlacement(documents, local_state, gateway)


@pytest.fixture()
def checkout(cart_store, draft_manager, placement, identity):
    return CheckoutSession(cart_store, draft_manager, placement, identity)


@pytest.fixture()
def valid_details():
    return {
        "full_name": "Asha Rao",
        "email": "asha@example.com",
        "phone": "9876543210",
        "address1": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "postal": "560001",
    }
