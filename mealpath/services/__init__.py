"""Service layer for MealPath.

Provides the registration saga, approval workflow, cart, checkout and
order lifecycle operations.
"""

from mealpath.services.account_service import AccountService
from mealpath.services.actors import Actor
from mealpath.services.approval_service import ApprovalService
from mealpath.services.artifact_store import (
    ArtifactMetadata,
    ArtifactStore,
    LocalArtifactStore,
    build_artifact_store,
)
from mealpath.services.auth_service import AuthService, seed_admin
from mealpath.services.cart_service import CartService
from mealpath.services.catalog_service import CatalogService
from mealpath.services.checkout_service import CheckoutService
from mealpath.services.order_service import OrderService
from mealpath.services.registration_service import (
    RegistrationCommand,
    RegistrationResult,
    RegistrationService,
    UploadedFile,
)

__all__ = [
    "AccountService",
    "Actor",
    "ApprovalService",
    "ArtifactMetadata",
    "ArtifactStore",
    "AuthService",
    "CartService",
    "CatalogService",
    "CheckoutService",
    "LocalArtifactStore",
    "OrderService",
    "RegistrationCommand",
    "RegistrationResult",
    "RegistrationService",
    "UploadedFile",
    "build_artifact_store",
    "seed_admin",
]
