"""Dining API package."""

from dining.api.routes import (
    access_router,
    admin_router,
    auth_router,
    cart_router,
    menu_router,
    order_router,
    staff_router,
)

__all__ = [
    "access_router",
    "admin_router",
    "auth_router",
    "cart_router",
    "menu_router",
    "order_router",
    "staff_router",
]

ROUTERS = [menu_router, cart_router, order_router, staff_router, admin_router, auth_router, access_router]
