"""FastAPI route modules.

Exports all route modules for inclusion in the main application.
"""

from mealpath.api.routes import admin, auth, cart, catalog, orders

__all__ = [
    "admin",
    "auth",
    "cart",
    "catalog",
    "orders",
]
