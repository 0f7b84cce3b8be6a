"""Domain events for the Order aggregate."""

from protean.fields import Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """An order snapshot was accepted by the document store."""

    __version__ = 1

    order_id = String(required=True)
    user_id = String()
    subtotal = Integer(required=True)
    shipping_cost = Integer(required=True)
    total = Integer(required=True)
    total_items = Integer(required=True)
    payment_method = String(required=True)
    payment_status = String(required=True)
