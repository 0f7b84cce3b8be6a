"""Tests for status resolution and the index/canonical merge."""

from datetime import UTC, datetime

import pytest

from storefront.projections.order_history import OrderIndexEntry, merge_order, resolve_status


class TestResolveStatus:
    @pytest.mark.parametrize(
        "record, expected",
        [
            ({"status": "shipped", "payment": {"status": "authorized"}}, "shipped"),
            ({"payment": {"status": "authorized"}, "lab": {"status": "x"}}, "authorized"),
            ({"lab": {"status": "in lab"}, "report": {"status": "r"}}, "in lab"),
            ({"report": {"status": "ready"}, "meta": {"status": "m"}}, "ready"),
            ({"meta": {"status": "archived"}}, "archived"),
            ({}, "pending"),
        ],
    )
    def test_precedence(self, record, expected):
        assert resolve_status(record) == expected

    def test_empty_values_fall_through(self):
        assert resolve_status({"status": "", "payment": {"status": None}, "meta": {"status": "m"}}) == "m"

    def test_non_dict_parents_are_skipped(self):
        assert resolve_status({"payment": "cod"}) == "pending"

    def test_missing_record(self):
        assert resolve_status(None) == "pending"


@pytest.fixture()
def entry():
    return OrderIndexEntry(
        order_id="ord-1",
        created_at=datetime(2026, 1, 5, tzinfo=UTC),
        subtotal=1000,
        total=1000,
        total_items=1,
        status="pending",
    )


class TestMergeOrder:
    def test_entry_as_is_without_canonical(self, entry):
        view = merge_order(entry, None)
        assert view.status == "pending"
        assert view.total == 1000
        assert view.canonical_available is False
        assert view.items == ()

    def test_canonical_wins(self, entry):
        canonical = {
            "status": "shipped",
            "payment": {"method": "cod", "status": "pending"},
            "items": [{"name": "Oud Noir", "quantity": 2}],
            "subtotal": 2000,
            "total": 2000,
            "created_at": datetime(2026, 1, 6, tzinfo=UTC),
        }
        view = merge_order(entry, canonical)

        assert view.status == "shipped"
        assert view.total == 2000
        assert view.subtotal == 2000
        assert view.items == ({"name": "Oud Noir", "quantity": 2},)
        assert view.payment == {"method": "cod", "status": "pending"}
        assert view.created_at == datetime(2026, 1, 6, tzinfo=UTC)
        assert view.canonical_available is True

    def test_payment_status_used_when_admin_status_unset(self, entry):
        view = merge_order(entry, {"payment": {"status": "authorized"}})
        assert view.status == "authorized"

    def test_canonical_gaps_keep_entry_values(self, entry):
        view = merge_order(entry, {"status": "processing"})
        assert view.total == 1000
        assert view.created_at == entry.created_at

    def test_merge_is_idempotent(self, entry):
        canonical = {"status": "delivered", "total": 1500}
        assert merge_order(entry, canonical) == merge_order(entry, canonical)

    def test_entry_without_status_defaults_to_pending(self):
        assert merge_order(OrderIndexEntry(order_id="ord-2"), None).status == "pending"
