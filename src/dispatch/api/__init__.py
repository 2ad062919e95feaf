"""Dispatch domain API package."""

from dispatch.api.errors import register_dispatch_exception_handlers
from dispatch.api.routes import delivery_router, financials_router, rider_router, settings_router

__all__ = [
    "delivery_router",
    "rider_router",
    "settings_router",
    "financials_router",
    "register_dispatch_exception_handlers",
]
