"""Error code registry with E-XXXX format codes.

Each error kind in the domain taxonomy maps to one registry entry:
- E-1xxx: Caller input errors
- E-2xxx: Authentication / authorization errors
- E-3xxx: Resource state errors (missing, duplicate, stock, lifecycle)
- E-4xxx: System/internal errors

Each entry includes a code, title, HTTP status, and remediation steps.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    """Kinds of failures surfaced to callers as structured errors."""

    INVALID_INPUT = "invalid_input"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INSUFFICIENT_STOCK = "insufficient_stock"
    INVALID_STATE = "invalid_state"
    INTERNAL = "internal"


@dataclass
class ErrorCode:
    """Definition of an error code with metadata.

    Attributes:
        code: Error code in E-XXXX format.
        kind: Error kind this entry describes.
        title: Short title for display.
        http_status: Status code used by the HTTP layer.
        remediation: Action the caller should take to resolve.
        is_retryable: Whether resubmitting the same command may succeed.
    """

    code: str  # E-XXXX format
    kind: ErrorKind
    title: str
    http_status: int
    remediation: str
    is_retryable: bool = False


# Error registry - one entry per error kind
ERROR_REGISTRY: dict[ErrorKind, ErrorCode] = {
    ErrorKind.INVALID_INPUT: ErrorCode(
        code="E-1001",
        kind=ErrorKind.INVALID_INPUT,
        title="Invalid Input",
        http_status=400,
        remediation="Correct the highlighted fields and resubmit.",
    ),
    ErrorKind.UNAUTHORIZED: ErrorCode(
        code="E-2001",
        kind=ErrorKind.UNAUTHORIZED,
        title="Authentication Required",
        http_status=401,
        remediation="Log in again to obtain a fresh access token.",
    ),
    ErrorKind.FORBIDDEN: ErrorCode(
        code="E-2002",
        kind=ErrorKind.FORBIDDEN,
        title="Not Allowed",
        http_status=403,
        remediation="This action is not available for your role.",
    ),
    ErrorKind.NOT_FOUND: ErrorCode(
        code="E-3001",
        kind=ErrorKind.NOT_FOUND,
        title="Not Found",
        http_status=404,
        remediation="Check the identifier and retry.",
    ),
    ErrorKind.CONFLICT: ErrorCode(
        code="E-3002",
        kind=ErrorKind.CONFLICT,
        title="Conflict",
        http_status=409,
        remediation="Use a different email or phone number.",
    ),
    ErrorKind.INSUFFICIENT_STOCK: ErrorCode(
        code="E-3003",
        kind=ErrorKind.INSUFFICIENT_STOCK,
        title="Insufficient Stock",
        http_status=409,
        remediation="Reduce the quantity or remove the item from your cart.",
    ),
    ErrorKind.INVALID_STATE: ErrorCode(
        code="E-3004",
        kind=ErrorKind.INVALID_STATE,
        title="Invalid State",
        http_status=409,
        remediation="Refresh and check the current state before retrying.",
    ),
    ErrorKind.INTERNAL: ErrorCode(
        code="E-4001",
        kind=ErrorKind.INTERNAL,
        title="Internal Error",
        http_status=500,
        remediation="Retry the operation. Contact support with the correlation id if it persists.",
        is_retryable=True,
    ),
}


def get_error(kind: ErrorKind | str) -> ErrorCode | None:
    """Get error definition by kind.

    Args:
        kind: ErrorKind member or its string value.

    Returns:
        ErrorCode if found, None otherwise.
    """
    try:
        return ERROR_REGISTRY.get(ErrorKind(kind))
    except ValueError:
        return None


def get_error_by_code(code: str) -> ErrorCode | None:
    """Get error definition by its E-XXXX code."""
    for entry in ERROR_REGISTRY.values():
        if entry.code == code:
            return entry
    return None
