"""Pydantic request/response schemas for the storefront API.

These are external contracts, kept separate from the domain model.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    volume: str | None = None
    quantity: int | None = 1

    model_config = {
        "json_schema_extra": {
            "examples": [{"product_id": "oud-noir", "volume": "100ml", "quantity": 1}],
        }
    }


class UpdateQuantityRequest(BaseModel):
    quantity: int


class CartLineSchema(BaseModel):
    variant_key: str
    product_id: str
    name: str
    image_url: str | None = None
    unit_price: int
    volume: str
    quantity: int


class CartResponse(BaseModel):
    lines: list[CartLineSchema]
    subtotal: int
    subtotal_display: str
    total_quantity: int
    is_panel_open: bool


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CheckoutUpdateRequest(BaseModel):
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address1: str | None = None
    address2: str | None = None
    city: str | None = None
    state: str | None = None
    postal: str | None = None
    country: str | None = None
    shipping_method: str | None = None
    payment_method: str | None = None
    card_name: str | None = None
    card_number: str | None = None
    card_exp: str | None = None
    card_cvv: str | None = None


class CheckoutResponse(BaseModel):
    state: str
    draft: dict[str, str]
    errors: dict[str, str]
    error_message: str | None = None
    subtotal: int
    shipping_cost: int
    total: int
    order_id: str | None = None


class PlacedOrderResponse(BaseModel):
    order_id: str
    total: int
    total_display: str


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------
class SignUpRequest(BaseModel):
    email: str
    password: str = Field(min_length=6)
    display_name: str = ""


class SignInRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    uid: str
    email: str
    display_name: str = ""


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------
class UpdateOrderStatusRequest(BaseModel):
    status: str


class StatusResponse(BaseModel):
    status: str = "ok"
