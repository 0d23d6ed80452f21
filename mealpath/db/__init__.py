"""Database module for MealPath state management and persistence."""

from mealpath.db.connection import (
    SessionLocal,
    engine,
    get_db,
    get_db_context,
    init_db,
)
from mealpath.db.models import (
    Account,
    AccountRole,
    AccountStatus,
    ApprovalStatus,
    Artifact,
    ArtifactKind,
    Cart,
    CartLine,
    CatalogItem,
    DeliveryAgentProfile,
    Order,
    OrderLine,
    OrderStatus,
    PartnerProfile,
    RoleProfile,
)

__all__ = [
    # Models
    "Account",
    "RoleProfile",
    "PartnerProfile",
    "DeliveryAgentProfile",
    "Artifact",
    "CatalogItem",
    "Cart",
    "CartLine",
    "Order",
    "OrderLine",
    # Enums
    "AccountRole",
    "AccountStatus",
    "ApprovalStatus",
    "ArtifactKind",
    "OrderStatus",
    # Connection
    "engine",
    "SessionLocal",
    "get_db",
    "get_db_context",
    "init_db",
]
