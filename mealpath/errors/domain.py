"""Typed domain exceptions for API error mapping.

Services raise these; the HTTP layer turns them into structured
``{kind, code, message}`` bodies using the error registry.

Usage:
    # In service layer
    raise NotFoundError("Order", order_id)

    # In route handler (or the app-wide exception handler)
    except DomainError as e:
        return JSONResponse(status_code=e.http_status, content=e.to_dict())
"""

from uuid import uuid4

from mealpath.errors.registry import ERROR_REGISTRY, ErrorKind


class DomainError(Exception):
    """Base exception for all domain errors."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def code(self) -> str:
        return ERROR_REGISTRY[self.kind].code

    @property
    def http_status(self) -> int:
        return ERROR_REGISTRY[self.kind].http_status

    def to_dict(self) -> dict[str, str]:
        """Structured error body returned to callers."""
        return {"kind": self.kind.value, "code": self.code, "message": self.message}


class InvalidInputError(DomainError):
    """Malformed or incomplete command. Maps to HTTP 400."""

    kind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class UnauthorizedError(DomainError):
    """Missing or invalid credentials. Maps to HTTP 401."""

    kind = ErrorKind.UNAUTHORIZED


class ForbiddenError(DomainError):
    """Actor may not perform this action. Maps to HTTP 403."""

    kind = ErrorKind.FORBIDDEN


class NotFoundError(DomainError):
    """Resource was not found. Maps to HTTP 404."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, resource_type: str, identifier: str) -> None:
        super().__init__(f"{resource_type} '{identifier}' not found")
        self.resource_type = resource_type
        self.identifier = identifier


class ConflictError(DomainError):
    """Resource conflict (e.g., duplicate). Maps to HTTP 409."""

    kind = ErrorKind.CONFLICT


class DuplicateContactError(ConflictError):
    """Email or phone already registered. Maps to HTTP 409."""

    def __init__(self, field: str) -> None:
        label = "Email" if field == "email" else "Phone number"
        super().__init__(f"{label} already in use")
        self.field = field


class InsufficientStockError(DomainError):
    """Requested quantity exceeds available stock. Maps to HTTP 409."""

    kind = ErrorKind.INSUFFICIENT_STOCK

    def __init__(self, item_name: str, requested: int, available: int | None) -> None:
        super().__init__(f"Not enough stock for '{item_name}'")
        self.item_name = item_name
        self.requested = requested
        self.available = available


class InvalidStateError(DomainError):
    """Operation not valid for the resource's current state. Maps to HTTP 409."""

    kind = ErrorKind.INVALID_STATE


class InternalError(DomainError):
    """Unexpected failure. Callers only see a generic message and correlation id."""

    kind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str = "Internal error",
        correlation_id: str | None = None,
        is_retryable: bool = True,
    ) -> None:
        super().__init__(message)
        self.correlation_id = correlation_id or str(uuid4())
        self.is_retryable = is_retryable

    def to_dict(self) -> dict[str, str]:
        return {
            "kind": self.kind.value,
            "code": self.code,
            "message": "Internal error",
            "correlation_id": self.correlation_id,
        }
