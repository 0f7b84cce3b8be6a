"""Application tests for per-session contexts held by the API process."""

import pytest
from protean.exceptions import ValidationError

from storefront.api.sessions import SessionRegistry
from storefront.catalogue.variant import resolve_variant
from storefront.local_state.memory_adapter import InMemoryLocalState


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def states():
    return {}


@pytest.fixture()
def registry(documents, gateway, storage, clock, states):
    def local_state(session_id):
        return states.setdefault(session_id, InMemoryLocalState())

    registry = SessionRegistry(
        documents=documents,
        gateway=gateway,
        storage=storage,
        local_state_factory=local_state,
        max_sessions=2,
        idle_timeout=60,
        clock=clock,
    )
    yield registry
    registry.close_all()


class TestLookup:
    def test_same_id_same_context(self, registry):
        assert registry.get("session-a") is registry.get("session-a")
        assert len(registry) == 1

    def test_malformed_id(self, registry):
        with pytest.raises(ValidationError):
            registry.get("short")


class TestEviction:
    def test_idle_context_is_disposed(self, registry, clock):
        first = registry.get("session-a")
        clock.now = 61

        assert registry.evict_idle() == 1
        assert first.disposed
        assert "session-a" not in registry

    def test_recent_use_keeps_context(self, registry, clock):
        first = registry.get("session-a")
        clock.now = 50
        registry.get("session-a")
        clock.now = 100

        assert registry.evict_idle() == 0
        assert not first.disposed

    def test_idle_contexts_expire_on_next_request(self, registry, clock):
        first = registry.get("session-a")
        clock.now = 61

        registry.get("session-b")

        assert first.disposed
        assert len(registry) == 1

    def test_least_recently_used_dropped_over_capacity(self, registry):
        a = registry.get("session-a")
        b = registry.get("session-b")
        registry.get("session-a")

        registry.get("session-c")

        assert b.disposed
        assert not a.disposed
        assert "session-b" not in registry
        assert len(registry) == 2

    def test_evicted_session_resumes_from_its_local_state(self, registry, clock, oud_noir):
        first = registry.get("session-a")
        first.cart.add_to_cart(resolve_variant(oud_noir), 2)
        clock.now = 61
        registry.evict_idle()

        resumed = registry.get("session-a")

        assert resumed is not first
        assert resumed.cart.total_quantity == 2

    def test_close_all_disposes_everything(self, registry):
        a = registry.get("session-a")
        registry.close_all()
        assert a.disposed
        assert len(registry) == 0
