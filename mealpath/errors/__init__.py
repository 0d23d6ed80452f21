"""Error handling framework for MealPath.

This package provides:
- Error code registry with E-XXXX format codes per error kind
- Typed domain exceptions raised by the service layer

Error categories:
- E-1xxx: Caller input errors
- E-2xxx: Authentication / authorization errors
- E-3xxx: Resource state errors
- E-4xxx: System/internal errors
"""

from mealpath.errors.domain import (
    ConflictError,
    DomainError,
    DuplicateContactError,
    ForbiddenError,
    InsufficientStockError,
    InternalError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
)
from mealpath.errors.registry import (
    ERROR_REGISTRY,
    ErrorCode,
    ErrorKind,
    get_error,
    get_error_by_code,
)

__all__ = [
    # Registry
    "ErrorCode",
    "ErrorKind",
    "ERROR_REGISTRY",
    "get_error",
    "get_error_by_code",
    # Domain exceptions
    "DomainError",
    "InvalidInputError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "DuplicateContactError",
    "InsufficientStockError",
    "InvalidStateError",
    "InternalError",
]
