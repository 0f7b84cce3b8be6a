"""FastAPI routes for the storefront: cart, checkout, orders, auth and products."""

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from storefront.api.schemas import (
    AddToCartRequest,
    CartLineSchema,
    CartResponse,
    CheckoutResponse,
    CheckoutUpdateRequest,
    PlacedOrderResponse,
    SignInRequest,
    SignUpRequest,
    StatusResponse,
    UpdateOrderStatusRequest,
    UpdateQuantityRequest,
    UserResponse,
)
from storefront.api.sessions import SessionRegistry
from storefront.cart.store import CartStore
from storefront.catalogue.money import format_price
from storefront.catalogue.products import ProductCatalogue, filter_products
from storefront.catalogue.variant import resolve_variant
from storefront.checkout.session import PAYMENT_DECLINED
from storefront.context import StorefrontContext
from storefront.errors import PaymentDeclined, PersistenceError
from storefront.identity.port import AuthenticationError
from storefront.order.admin import OrderAdministration
from storefront.utils.logging import add_context, clear_context

STORE_UNAVAILABLE = "The store is temporarily unavailable. Please try again."


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------
def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


async def get_context(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> StorefrontContext:
    clear_context()
    add_context(session_id=session_id)
    return registry.get(session_id)


def get_catalogue(registry: SessionRegistry = Depends(get_registry)) -> ProductCatalogue:
    return ProductCatalogue(registry.documents, registry.storage)


def _cart_response(store: CartStore) -> CartResponse:
    return CartResponse(
        lines=[CartLineSchema(**line) for line in store.snapshot()],
        subtotal=store.subtotal,
        subtotal_display=format_price(store.subtotal),
        total_quantity=store.total_quantity,
        is_panel_open=store.is_panel_open,
    )


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/sessions/{session_id}/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(context: StorefrontContext = Depends(get_context)) -> CartResponse:
    return _cart_response(context.cart)


@cart_router.post("/items", response_model=CartResponse)
async def add_cart_item(body: AddToCartRequest, context: StorefrontContext = Depends(get_context)) -> CartResponse:
    product = context.catalogue.get_product(body.product_id)
    variant = resolve_variant(product, body.volume)
    context.cart.add_to_cart(variant, body.quantity)
    return _cart_response(context.cart)


@cart_router.put("/items/{variant_key}", response_model=CartResponse)
async def update_cart_item(
    variant_key: str, body: UpdateQuantityRequest, context: StorefrontContext = Depends(get_context)
) -> CartResponse:
    context.cart.update_quantity(variant_key, body.quantity)
    return _cart_response(context.cart)


@cart_router.delete("/items/{variant_key}", response_model=CartResponse)
async def remove_cart_item(variant_key: str, context: StorefrontContext = Depends(get_context)) -> CartResponse:
    context.cart.remove_from_cart(variant_key)
    return _cart_response(context.cart)


@cart_router.delete("", response_model=CartResponse)
async def clear_cart(context: StorefrontContext = Depends(get_context)) -> CartResponse:
    context.cart.clear_cart()
    return _cart_response(context.cart)


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/sessions/{session_id}/checkout", tags=["checkout"])


@checkout_router.get("", response_model=CheckoutResponse)
async def get_checkout(context: StorefrontContext = Depends(get_context)) -> CheckoutResponse:
    return CheckoutResponse(**context.checkout().to_dict())


@checkout_router.patch("", response_model=CheckoutResponse)
async def update_checkout(
    body: CheckoutUpdateRequest, context: StorefrontContext = Depends(get_context)
) -> CheckoutResponse:
    session = context.checkout()
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    if changes:
        session.update_fields(changes)
    return CheckoutResponse(**session.to_dict())


@checkout_router.post("/submit", status_code=201, response_model=PlacedOrderResponse)
async def submit_checkout(context: StorefrontContext = Depends(get_context)):
    session = context.checkout()
    try:
        placed = session.submit()
    except (PersistenceError, PaymentDeclined):
        return JSONResponse(status_code=502, content={"error": session.error_message})
    return PlacedOrderResponse(order_id=placed.order_id, total=placed.total, total_display=format_price(placed.total))


# ---------------------------------------------------------------------------
# Orders Router
# ---------------------------------------------------------------------------
orders_router = APIRouter(prefix="/sessions/{session_id}/orders", tags=["orders"])


@orders_router.get("/last")
async def get_last_order(context: StorefrontContext = Depends(get_context)) -> dict:
    return context.last_order()


@orders_router.get("")
async def list_orders(q: str | None = None, context: StorefrontContext = Depends(get_context)) -> list[dict]:
    history = context.order_history()
    history.load()
    return [view.to_dict() for view in history.search(q)]


# ---------------------------------------------------------------------------
# Auth Router
# ---------------------------------------------------------------------------
auth_router = APIRouter(prefix="/sessions/{session_id}/auth", tags=["auth"])


def _user_response(user) -> UserResponse:
    return UserResponse(uid=user.uid, email=user.email, display_name=user.display_name)


@auth_router.post("/sign-up", status_code=201, response_model=UserResponse)
async def sign_up(body: SignUpRequest, context: StorefrontContext = Depends(get_context)) -> UserResponse:
    return _user_response(context.identity.sign_up(body.email, body.password, body.display_name))


@auth_router.post("/sign-in", response_model=UserResponse)
async def sign_in(body: SignInRequest, context: StorefrontContext = Depends(get_context)) -> UserResponse:
    return _user_response(context.identity.sign_in(body.email, body.password))


@auth_router.post("/sign-out", response_model=StatusResponse)
async def sign_out(context: StorefrontContext = Depends(get_context)) -> StatusResponse:
    context.identity.sign_out()
    return StatusResponse()


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin", tags=["admin"])


@admin_router.patch("/orders/{order_id}/status")
async def update_order_status(
    order_id: str, body: UpdateOrderStatusRequest, registry: SessionRegistry = Depends(get_registry)
) -> dict:
    return OrderAdministration(registry.documents).update_status(order_id, body.status)


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.get("")
async def list_products(
    tag: str | None = None,
    q: str | None = None,
    sort: str = "newest",
    catalogue: ProductCatalogue = Depends(get_catalogue),
) -> list[dict]:
    return filter_products(catalogue.list_products(tag=tag), text=q, sort=sort)


@product_router.get("/{product_id}")
async def get_product(product_id: str, catalogue: ProductCatalogue = Depends(get_catalogue)) -> dict:
    return catalogue.get_product(product_id)


ROUTERS = (cart_router, checkout_router, orders_router, auth_router, admin_router, product_router)


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------
def register_storefront_handlers(app: FastAPI) -> None:
    """Map storefront errors that protean's handlers do not know about."""

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
        return JSONResponse(status_code=401, content={"error": str(exc)})

    @app.exception_handler(PaymentDeclined)
    async def payment_declined_handler(request: Request, exc: PaymentDeclined) -> JSONResponse:
        return JSONResponse(status_code=502, content={"error": PAYMENT_DECLINED, "reason": exc.reason})

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"error": STORE_UNAVAILABLE})


