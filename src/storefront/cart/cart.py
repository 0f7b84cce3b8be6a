"""Shopping cart aggregate: the authoritative list of cart lines.

Lines are keyed by variant key: adding a variant that is already in the
cart merges quantities instead of creating a second line, and a line's
quantity never drops below 1 (removal is explicit). Totals are derived
from the lines on every read.
"""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import HasMany, Identifier, Integer, String

from storefront.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartQuantityUpdated
from storefront.catalogue.variant import DEFAULT_VOLUME, ProductVariant
from storefront.domain import storefront


@storefront.entity(part_of="ShoppingCart")
class CartLine:
    variant_key = String(required=True, max_length=300)
    product_id = Identifier(required=True)
    name = String(max_length=255)
    image_url = String(max_length=1000)
    unit_price = Integer(required=True, min_value=0)
    volume = String(max_length=20, default=DEFAULT_VOLUME)
    quantity = Integer(required=True, min_value=1)

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity

    def to_record(self) -> dict:
        """Plain dict of the line, as persisted and as copied into orders."""
        return {
            "variant_key": self.variant_key,
            "product_id": str(self.product_id),
            "name": self.name or "",
            "image_url": self.image_url,
            "unit_price": self.unit_price,
            "volume": self.volume,
            "quantity": self.quantity,
        }


@storefront.aggregate
class ShoppingCart:
    lines = HasMany(CartLine)

    @invariant.post
    def one_line_per_variant(self):
        keys = [line.variant_key for line in self.lines]
        if len(keys) != len(set(keys)):
            raise ValidationError({"lines": ["A variant may appear only once in the cart"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def restore(cls, records):
        """Rebuild a cart from persisted line records without raising events.

        Records that repeat a variant key are merged into one line.
        """
        cart = cls()
        merged: dict[str, dict] = {}
        for record in records:
            key = record["variant_key"]
            if key in merged:
                merged[key]["quantity"] += record["quantity"]
            else:
                merged[key] = dict(record)
        for record in merged.values():
            cart.add_lines(CartLine(**record))
        return cart

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def subtotal(self) -> int:
        return sum(line.line_total for line in self.lines)

    def line_for(self, variant_key):
        return next((line for line in self.lines if line.variant_key == variant_key), None)

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def add_item(self, variant: ProductVariant, quantity=1):
        """Add a variant, merging into the existing line for the same variant key."""
        quantity = _whole_number(quantity or 1)
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be a positive number"]})
        if not variant.product_id:
            raise ValidationError({"product_id": ["Product has no id and cannot be added to the cart"]})

        existing = self.line_for(variant.variant_key)
        if existing:
            existing.quantity += quantity
            new_quantity = existing.quantity
        else:
            self.add_lines(
                CartLine(
                    variant_key=variant.variant_key,
                    product_id=variant.product_id,
                    name=variant.name,
                    image_url=variant.image_url,
                    unit_price=variant.unit_price,
                    volume=variant.volume,
                    quantity=quantity,
                )
            )
            new_quantity = quantity

        self.raise_(
            CartItemAdded(
                variant_key=variant.variant_key,
                product_id=str(variant.product_id),
                quantity=quantity,
                new_quantity=new_quantity,
            )
        )

    def update_item_quantity(self, variant_key, quantity) -> bool:
        """Set a line's quantity, floored at 1. Returns False when the line does not exist."""
        line = self.line_for(variant_key)
        if line is None:
            return False

        previous_quantity = line.quantity
        line.quantity = max(1, _whole_number(quantity or 1))

        self.raise_(
            CartQuantityUpdated(
                variant_key=variant_key,
                previous_quantity=previous_quantity,
                new_quantity=line.quantity,
            )
        )
        return True

    def remove_item(self, variant_key) -> bool:
        """Remove a line. Returns False when the line does not exist."""
        line = self.line_for(variant_key)
        if line is None:
            return False

        self.remove_lines(line)
        self.raise_(CartItemRemoved(variant_key=variant_key))
        return True

    def clear(self):
        removed = list(self.lines)
        if removed:
            self.remove_lines(removed)
        self.raise_(CartCleared(lines_removed=len(removed)))


def _whole_number(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValidationError({"quantity": ["Quantity must be a number"]})
    return int(value)
