"""Shared BDD fixtures and step definitions for the storefront."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when

from storefront.catalogue.variant import resolve_variant
from storefront.errors import PaymentDeclined, PersistenceError


@pytest.fixture()
def error():
    """Container for the exception raised by the last step."""
    return {"exc": None}


@pytest.fixture()
def products():
    return {}


@pytest.fixture()
def store(cart_store):
    """The cart store under test; replaced when the storefront reloads."""
    return {"cart": cart_store}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.re(r'a product "(?P<product_id>[^"]+)" priced (?P<price>\d+) at "(?P<volume>[^"]+)"'), converters={"price": int})
def product_with_one_price(products, product_id, price, volume):
    products[product_id] = {"id": product_id, "name": product_id.upper(), "prices": [{"volume": volume, "price": price}]}


@given(parsers.cfparse('a product "{product_id}" priced {first:d} at "{first_volume}" and {second:d} at "{second_volume}"'))
def product_with_two_prices(products, product_id, first, first_volume, second, second_volume):
    products[product_id] = {
        "id": product_id,
        "name": product_id.upper(),
        "prices": [{"volume": first_volume, "price": first}, {"volume": second_volume, "price": second}],
    }


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the shopper adds "{product_id}" at "{volume}" with quantity {qty:d}'))
@when(parsers.cfparse('the shopper adds "{product_id}" at "{volume}" with quantity {qty:d}'))
def add_to_cart(store, products, product_id, volume, qty, error):
    try:
        store["cart"].add_to_cart(resolve_variant(products[product_id], volume), qty)
    except ValidationError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the cart has {count:d} line"))
@then(parsers.cfparse("the cart has {count:d} lines"))
def cart_has_lines(store, count):
    assert len(store["cart"].lines) == count


@then("the request is rejected")
def request_rejected(error):
    assert isinstance(error["exc"], ValidationError | PersistenceError | PaymentDeclined)
