"""Order aggregate: the immutable snapshot written when checkout succeeds.

An order copies the cart lines, the customer's contact and address details
and the payment choice at the moment of submission. Money is held in paise
and ``total = subtotal + shipping_cost + tax`` always holds. After placement
only the status fields change, and those are owned by administration.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, ValueObject

from storefront.catalogue.variant import DEFAULT_VOLUME
from storefront.checkout.draft import CheckoutDraft, PaymentMethod, ShippingMethod
from storefront.checkout.validation import FIELD_MAX_LENGTHS, shipping_cost_for
from storefront.documents.port import SERVER_TIMESTAMP
from storefront.domain import storefront
from storefront.order.events import OrderPlaced


class PaymentStatus(Enum):
    PENDING = "pending"
    AUTHORIZED = "authorized"


ORDER_STATUSES = (
    "pending",
    "authorized",
    "processing",
    "shipped",
    "delivered",
    "cancelled",
    "refunded",
)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class CustomerDetails:
    """Contact and delivery details as entered at checkout."""

    full_name = String(required=True, max_length=FIELD_MAX_LENGTHS["full_name"])
    email = String(required=True, max_length=FIELD_MAX_LENGTHS["email"])
    phone = String(required=True, max_length=FIELD_MAX_LENGTHS["phone"])
    address1 = String(required=True, max_length=FIELD_MAX_LENGTHS["address1"])
    address2 = String(max_length=FIELD_MAX_LENGTHS["address2"])
    city = String(required=True, max_length=FIELD_MAX_LENGTHS["city"])
    state = String(max_length=FIELD_MAX_LENGTHS["state"])
    postal = String(required=True, max_length=FIELD_MAX_LENGTHS["postal"])
    country = String(max_length=FIELD_MAX_LENGTHS["country"], default="India")


@storefront.value_object(part_of="Order")
class PaymentDetails:
    method = String(required=True, choices=PaymentMethod)
    status = String(required=True, choices=PaymentStatus)
    reference = String(max_length=255)
    last4 = String(max_length=4)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderLine:
    product_id = Identifier(required=True)
    variant_key = String(required=True, max_length=300)
    name = String(max_length=255)
    unit_price = Integer(required=True, min_value=0)
    quantity = Integer(required=True, min_value=1)
    volume = String(max_length=20, default=DEFAULT_VOLUME)
    image_url = String(max_length=1000)

    def to_record(self) -> dict:
        return {
            "product_id": str(self.product_id),
            "variant_key": self.variant_key,
            "name": self.name or "",
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "volume": self.volume,
            "image_url": self.image_url,
        }


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_id = String(max_length=100)
    items = HasMany(OrderLine)
    subtotal = Integer(required=True, min_value=0)
    shipping_method = String(choices=ShippingMethod, default=ShippingMethod.STANDARD.value)
    shipping_cost = Integer(default=0, min_value=0)
    tax = Integer(default=0, min_value=0)
    total = Integer(required=True, min_value=0)
    total_items = Integer(required=True, min_value=1)
    customer = ValueObject(CustomerDetails)
    payment = ValueObject(PaymentDetails)
    user_id = String(max_length=128)
    status = String(max_length=50)
    created_at = DateTime()

    @invariant.post
    def total_is_sum_of_parts(self):
        if self.total != self.subtotal + self.shipping_cost + self.tax:
            raise ValidationError({"total": ["Total must equal subtotal plus shipping and tax"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, lines, draft: CheckoutDraft, user_id=None):
        """Snapshot cart lines and a checkout draft into a new, unplaced order."""
        if not lines:
            raise ValidationError({"items": ["An order needs at least one item"]})

        subtotal = sum(line["unit_price"] * line["quantity"] for line in lines)
        shipping_cost = shipping_cost_for(draft.shipping_method)
        order = cls(
            subtotal=subtotal,
            shipping_method=draft.shipping_method,
            shipping_cost=shipping_cost,
            tax=0,
            total=subtotal + shipping_cost,
            total_items=sum(line["quantity"] for line in lines),
            customer=CustomerDetails(**draft.customer_details()),
            payment=PaymentDetails(
                method=draft.payment_method,
                status=PaymentStatus.PENDING.value,
            ),
            user_id=user_id,
        )
        order.add_items(
            [
                OrderLine(
                    product_id=line["product_id"],
                    variant_key=line["variant_key"],
                    name=line.get("name") or "",
                    unit_price=line["unit_price"],
                    quantity=line["quantity"],
                    volume=line.get("volume") or DEFAULT_VOLUME,
                    image_url=line.get("image_url"),
                )
                for line in lines
            ]
        )
        return order

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    @property
    def is_placed(self) -> bool:
        return bool(self.order_id)

    def authorize_payment(self, reference, last4=None):
        if self.is_placed:
            raise InvalidOperationError("Payment cannot change after the order is placed")
        self.payment = PaymentDetails(
            method=self.payment.method,
            status=PaymentStatus.AUTHORIZED.value,
            reference=reference,
            last4=last4,
        )

    def mark_placed(self, order_id, created_at=None):
        """Record the id the document store assigned. An order is placed once."""
        if self.is_placed:
            raise InvalidOperationError(f"Order {self.order_id} has already been placed")

        self.order_id = order_id
        self.created_at = created_at or datetime.now(UTC)

        self.raise_(
            OrderPlaced(
                order_id=order_id,
                user_id=self.user_id,
                subtotal=self.subtotal,
                shipping_cost=self.shipping_cost,
                total=self.total,
                total_items=self.total_items,
                payment_method=self.payment.method,
                payment_status=self.payment.status,
            )
        )

    # -------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------
    def to_document(self) -> dict:
        """The canonical order record. ``created_at`` is stamped by the store."""
        return {
            "items": [line.to_record() for line in self.items],
            "subtotal": self.subtotal,
            "shipping_method": self.shipping_method,
            "shipping_cost": self.shipping_cost,
            "tax": self.tax,
            "total": self.total,
            "total_items": self.total_items,
            "customer": self.customer.to_dict(),
            "payment": {k: v for k, v in self.payment.to_dict().items() if v is not None},
            "meta": {"created_at": datetime.now(UTC).isoformat()},
            "user_id": self.user_id,
            "created_at": SERVER_TIMESTAMP,
        }

    def index_entry(self) -> dict:
        """Lightweight record for the user's order history index."""
        return {
            "order_id": self.order_id,
            "created_at": SERVER_TIMESTAMP,
            "subtotal": self.subtotal,
            "total": self.total,
            "total_items": self.total_items,
            "status": self.payment.status,
        }
