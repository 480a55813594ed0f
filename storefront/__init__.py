"""Merchant storefront services: actors, access control, carts and discounts over an in-memory store."""

__version__ = "0.1.0"

__all__ = [
    "access",
    "actor",
    "cart",
    "cart_view",
    "errors",
    "models",
    "store",
]