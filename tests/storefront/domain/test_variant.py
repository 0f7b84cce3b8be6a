"""Tests for variant resolution and money formatting."""

import pytest
from protean.exceptions import IncorrectUsageError, ValidationError

from storefront.catalogue.money import format_price
from storefront.catalogue.variant import (
    DEFAULT_VOLUME,
    ProductVariant,
    default_volume,
    resolve_variant,
    variant_key,
)


class TestVariantKey:
    def test_key_joins_product_and_volume(self):
        assert variant_key("oud-noir", "100ml") == "oud-noir-100ml"

    def test_missing_volume_uses_default(self):
        assert variant_key("oud-noir") == f"oud-noir-{DEFAULT_VOLUME}"

    def test_variant_exposes_its_key(self):
        variant = ProductVariant(product_id="p1", unit_price=100, volume="30ml")
        assert variant.variant_key == "p1-30ml"


class TestDefaultVolume:
    def test_prefers_50ml(self):
        product = {"prices": [{"volume": "100ml", "price": 2}, {"volume": "50ml", "price": 1}]}
        assert default_volume(product) == "50ml"

    def test_first_listed_volume_without_50ml(self):
        product = {"prices": [{"volume": "30ml", "price": 1}, {"volume": "100ml", "price": 2}]}
        assert default_volume(product) == "30ml"

    def test_literal_default_without_price_list(self):
        assert default_volume({"price": 100}) == "50ml"


class TestResolveVariant:
    def test_matching_volume(self, oud_noir):
        variant = resolve_variant(oud_noir, "100ml")
        assert variant.volume == "100ml"
        assert variant.unit_price == 79900
        assert variant.variant_key == "oud-noir-100ml"

    def test_default_volume(self, oud_noir):
        variant = resolve_variant(oud_noir)
        assert variant.volume == "50ml"
        assert variant.unit_price == 49900

    def test_unknown_volume_falls_back_to_first_entry(self, oud_noir):
        variant = resolve_variant(oud_noir, "10ml")
        assert variant.volume == "50ml"
        assert variant.unit_price == 49900

    def test_legacy_price(self, citrus_bloom):
        variant = resolve_variant(citrus_bloom)
        assert variant.unit_price == 29900
        assert variant.volume == "50ml"
        assert variant.name == "Citrus Bloom"

    def test_legacy_price_keeps_requested_volume(self, citrus_bloom):
        assert resolve_variant(citrus_bloom, "100ml").variant_key == "citrus-bloom-100ml"

    def test_missing_price_is_zero(self):
        variant = resolve_variant({"id": "mystery"})
        assert variant.unit_price == 0
        assert variant.name == ""

    def test_missing_id_resolves_without_error(self):
        variant = resolve_variant({"name": "Unlisted", "price": 100})
        assert variant.unit_price == 100
        assert not variant.product_id
        assert variant.variant_key == "-50ml"

    def test_non_numeric_price_is_zero(self):
        assert resolve_variant({"id": "x", "price": "499"}).unit_price == 0

    def test_malformed_price_entries_are_ignored(self):
        product = {"id": "x", "price": 100, "prices": [{"price": 5}, "junk"]}
        assert resolve_variant(product).unit_price == 100

    def test_variant_is_immutable(self, oud_noir):
        variant = resolve_variant(oud_noir)
        with pytest.raises(IncorrectUsageError):
            variant.unit_price = 1

    def test_negative_price_rejected_on_variant(self):
        with pytest.raises(ValidationError):
            ProductVariant(product_id="p1", unit_price=-1)


class TestFormatPrice:
    def test_paise_render_as_rupees(self):
        assert format_price(49900) == "₹499.00"

    def test_zero(self):
        assert format_price(0) == "₹0.00"

    def test_non_numbers_render_empty(self):
        assert format_price(None) == ""
        assert format_price("499") == ""
        assert format_price(True) == ""
