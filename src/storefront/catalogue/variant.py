"""Product variants: a product at one volume, with its own price.

A perfume is sold in several volumes. Products either carry a ``prices``
list of ``{volume, price}`` entries or, in older records, a single
``price`` that applies to the default volume. ``resolve_variant`` turns
either shape into a ``ProductVariant``; ``variant_key`` is the identity
used to merge cart lines and order lines.
"""

from protean.fields import Identifier, Integer, String

from storefront.domain import storefront

DEFAULT_VOLUME = "50ml"


def variant_key(product_id, volume=None) -> str:
    """Identity of a product variant: ``<product_id>-<volume>``."""
    return f"{product_id or ''}-{volume or DEFAULT_VOLUME}"


@storefront.value_object
class ProductVariant:
    """A purchasable product configuration, priced in minor currency units (paise)."""

    product_id = Identifier(default="")
    name = String(max_length=255)
    image_url = String(max_length=1000)
    unit_price = Integer(required=True, min_value=0)
    volume = String(max_length=20, default=DEFAULT_VOLUME)

    @property
    def variant_key(self) -> str:
        return variant_key(self.product_id, self.volume)


def _price_list(product: dict) -> list[dict]:
    prices = product.get("prices") or []
    return [entry for entry in prices if isinstance(entry, dict) and entry.get("volume")]


def _minor_units(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0
    return max(0, int(round(value)))


def default_volume(product: dict) -> str:
    """``50ml`` when the product sells it, else its first listed volume, else ``50ml``."""
    prices = _price_list(product)
    if any(entry["volume"] == DEFAULT_VOLUME for entry in prices):
        return DEFAULT_VOLUME
    if prices:
        return prices[0]["volume"]
    return DEFAULT_VOLUME


def resolve_variant(product: dict, volume: str | None = None) -> ProductVariant:
    """Resolve the variant of ``product`` for the requested volume.

    An unknown volume falls back to the first entry of the price list.
    Products without a price list use their legacy ``price`` field.
    """
    prices = _price_list(product)
    requested = volume or default_volume(product)

    if prices:
        entry = next((p for p in prices if p["volume"] == requested), prices[0])
        resolved_volume, price = entry["volume"], entry.get("price")
    else:
        resolved_volume, price = requested, product.get("price")

    return ProductVariant(
        product_id=str(product.get("id") or ""),
        name=product.get("name") or "",
        image_url=product.get("image_url"),
        unit_price=_minor_units(price),
        volume=resolved_volume,
    )
