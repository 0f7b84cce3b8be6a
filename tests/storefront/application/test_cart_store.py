"""Application tests for the CartStore: persistence, restore and notifications."""

import json

import pytest
from protean.exceptions import ValidationError

from storefront.cart.events import CartItemAdded, CartQuantityUpdated
from storefront.cart.store import CART_KEY, CartStore
from storefront.catalogue.variant import resolve_variant
from storefront.local_state.memory_adapter import InMemoryLocalState


class TestMutations:
    def test_add_opens_panel_and_persists(self, cart_store, local_state, oud_noir):
        cart_store.add_to_cart(resolve_variant(oud_noir, "100ml"), 2)

        assert cart_store.is_panel_open is True
        stored = json.loads(local_state.get(CART_KEY))
        assert stored == [
            {
                "variant_key": "oud-noir-100ml",
                "product_id": "oud-noir",
                "name": "Oud Noir",
                "image_url": "https://img.example/oud-noir.jpg",
                "unit_price": 79900,
                "volume": "100ml",
                "quantity": 2,
            }
        ]

    def test_negative_quantity_leaves_cart_untouched(self, cart_store, local_state, oud_noir):
        with pytest.raises(ValidationError):
            cart_store.add_to_cart(resolve_variant(oud_noir), -1)

        assert cart_store.is_empty
        assert cart_store.is_panel_open is False
        assert local_state.get(CART_KEY) is None

    def test_update_quantity_floors_at_one(self, cart_store, oud_noir):
        cart_store.add_to_cart(resolve_variant(oud_noir), 3)
        cart_store.update_quantity("oud-noir-50ml", 0)
        assert cart_store.lines[0].quantity == 1

    def test_update_unknown_line_is_a_no_op(self, cart_store, local_state):
        calls = []
        cart_store.subscribe(calls.append)
        cart_store.update_quantity("ghost-50ml", 2)

        assert calls == []
        assert local_state.get(CART_KEY) is None

    def test_remove_and_clear(self, cart_store, oud_noir, citrus_bloom, local_state):
        cart_store.add_to_cart(resolve_variant(oud_noir))
        cart_store.add_to_cart(resolve_variant(citrus_bloom))

        cart_store.remove_from_cart("oud-noir-50ml")
        assert [line.variant_key for line in cart_store.lines] == ["citrus-bloom-50ml"]

        cart_store.clear_cart()
        assert cart_store.is_empty
        assert json.loads(local_state.get(CART_KEY)) == []

    def test_totals_are_derived(self, cart_store, oud_noir, citrus_bloom):
        cart_store.add_to_cart(resolve_variant(oud_noir), 2)
        cart_store.add_to_cart(resolve_variant(citrus_bloom), 1)

        assert cart_store.total_quantity == 3
        assert cart_store.subtotal == 2 * 49900 + 29900

        cart_store.update_quantity("citrus-bloom-50ml", 4)
        assert cart_store.total_quantity == 6
        assert cart_store.subtotal == 2 * 49900 + 4 * 29900


class TestEvents:
    def test_events_are_dispatched_in_order(self, cart_store, oud_noir):
        seen = []
        cart_store.events.subscribe(seen.append)

        cart_store.add_to_cart(resolve_variant(oud_noir), 2)
        cart_store.update_quantity("oud-noir-50ml", 4)

        assert [type(e) for e in seen] == [CartItemAdded, CartQuantityUpdated]
        assert seen[1].new_quantity == 4

    def test_dispatched_events_do_not_pile_up(self, cart_store, oud_noir):
        cart_store.add_to_cart(resolve_variant(oud_noir))
        for quantity in range(500):
            cart_store.update_quantity("oud-noir-50ml", quantity)

        assert cart_store.cart._events == []

    def test_rejected_add_dispatches_nothing(self, cart_store, oud_noir):
        seen = []
        cart_store.events.subscribe(seen.append)

        with pytest.raises(ValidationError):
            cart_store.add_to_cart(resolve_variant(oud_noir), -1)

        assert seen == []


class TestSnapshot:
    def test_snapshot_is_detached(self, cart_store, oud_noir):
        cart_store.add_to_cart(resolve_variant(oud_noir), 1)
        snapshot = cart_store.snapshot()

        cart_store.update_quantity("oud-noir-50ml", 5)
        cart_store.clear_cart()

        assert isinstance(snapshot, tuple)
        assert snapshot[0]["quantity"] == 1


class TestRestore:
    def test_round_trip(self, local_state, oud_noir, citrus_bloom):
        first = CartStore(local_state).load()
        first.add_to_cart(resolve_variant(oud_noir, "100ml"), 2)
        first.add_to_cart(resolve_variant(citrus_bloom), 1)

        second = CartStore(local_state).load()

        assert second.snapshot() == first.snapshot()
        assert second.is_panel_open is False

    def test_missing_data_gives_empty_cart(self):
        assert CartStore(InMemoryLocalState()).load().is_empty

    @pytest.mark.parametrize(
        "raw",
        [
            "{not json",
            json.dumps({"variant_key": "p1-50ml"}),
            json.dumps([{"variant_key": "p1-50ml", "quantity": "2", "unit_price": 100, "product_id": "p1"}]),
            json.dumps([{"variant_key": "p1-50ml", "quantity": 0, "unit_price": 100, "product_id": "p1"}]),
            json.dumps([{"variant_key": "p1-50ml", "quantity": 1, "unit_price": 100}]),
            json.dumps([{"variant_key": "p1-50ml", "quantity": 1, "unit_price": 100, "product_id": "p1", "x": 1}]),
        ],
    )
    def test_corrupt_data_gives_empty_cart(self, raw):
        store = CartStore(InMemoryLocalState({CART_KEY: raw})).load()
        assert store.is_empty

    def test_duplicate_records_merge_on_restore(self):
        record = {"variant_key": "p1-50ml", "product_id": "p1", "unit_price": 100, "quantity": 1}
        store = CartStore(InMemoryLocalState({CART_KEY: json.dumps([record, record])})).load()

        assert len(store.lines) == 1
        assert store.lines[0].quantity == 2


class TestFailedWrites:
    def test_write_failure_keeps_memory_state(self, oud_noir):
        local_state = InMemoryLocalState()
        store = CartStore(local_state).load()
        local_state.read_only = True

        store.add_to_cart(resolve_variant(oud_noir), 2)

        assert store.total_quantity == 2
        assert local_state.get(CART_KEY) is None


class TestPanelAndListeners:
    def test_panel_flag(self, cart_store):
        cart_store.open_panel()
        assert cart_store.is_panel_open
        cart_store.toggle_panel()
        assert not cart_store.is_panel_open
        cart_store.toggle_panel()
        cart_store.close_panel()
        assert not cart_store.is_panel_open

    def test_panel_state_is_not_persisted(self, cart_store, local_state):
        cart_store.open_panel()
        assert local_state.get(CART_KEY) is None

    def test_listeners_called_after_each_mutation(self, cart_store, oud_noir):
        seen = []
        cart_store.subscribe(lambda store: seen.append(store.total_quantity))

        cart_store.add_to_cart(resolve_variant(oud_noir), 1)
        cart_store.update_quantity("oud-noir-50ml", 3)
        cart_store.remove_from_cart("oud-noir-50ml")

        assert seen == [1, 3, 0]

    def test_unsubscribe_is_idempotent(self, cart_store, oud_noir):
        seen = []
        subscription = cart_store.subscribe(seen.append)
        subscription.unsubscribe()
        subscription.unsubscribe()

        cart_store.add_to_cart(resolve_variant(oud_noir))
        assert seen == []
        assert subscription.active is False
