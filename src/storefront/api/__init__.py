"""Storefront HTTP API package."""

from storefront.api.routes import (
    ROUTERS,
    admin_router,
    auth_router,
    cart_router,
    checkout_router,
    orders_router,
    product_router,
    register_storefront_handlers,
)
from storefront.api.sessions import SessionRegistry

__all__ = [
    "ROUTERS",
    "SessionRegistry",
    "admin_router",
    "auth_router",
    "cart_router",
    "checkout_router",
    "orders_router",
    "product_router",
    "register_storefront_handlers",
]
