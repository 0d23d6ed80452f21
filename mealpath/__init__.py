"""MealPath: account provisioning, carts, checkout and order lifecycle."""

__version__ = "0.1.0"
