"""Pydantic schemas for API request/response validation.

This module defines the data contracts for the MealPath REST API:
registration and login, profile review, catalog, cart and orders.
"""

from pydantic import BaseModel, ConfigDict, Field


# Account and profile schemas


class AccountResponse(BaseModel):
    """Public view of an account (never includes the credential hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    phone: str
    role: str
    verified: bool
    status: str
    address: str | None = None
    created_at: str


class ArtifactResponse(BaseModel):
    """Stored upload attached to a profile."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: str
    path: str
    size_bytes: int
    content_type: str
    original_name: str | None = None


class RoleProfileResponse(BaseModel):
    """Partner or delivery-agent profile with its review state."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    account_id: str
    role: str
    approval: str
    rejection_reason: str | None = None
    reviewed_at: str | None = None
    created_at: str
    business_name: str | None = None
    description: str | None = None
    categories: list[str] = []
    offers_logistics: bool | None = None
    vehicle_type: str | None = None
    vehicle_license: str | None = None
    partner_profile_id: str | None = None
    artifacts: list[ArtifactResponse] = []


class AccountUpdate(BaseModel):
    """Partial profile update; only fields present in the body are applied."""

    name: str | None = Field(None, max_length=200)
    phone: str | None = Field(None, max_length=30)
    address: str | None = Field(None, max_length=255)


class ProfileResponse(BaseModel):
    """The caller's account with its role profile, if any."""

    account: AccountResponse
    role_profile: RoleProfileResponse | None = None


class RegistrationResponse(BaseModel):
    """Result of a successful registration."""

    account: AccountResponse
    role_profile: RoleProfileResponse | None = None
    token: str


class LoginRequest(BaseModel):
    """Request schema for logging in."""

    email: str
    password: str


class LoginResponse(BaseModel):
    """Authenticated account and its access token."""

    account: AccountResponse
    token: str


class RejectRequest(BaseModel):
    """Optional reason supplied when rejecting a profile."""

    reason: str | None = Field(None, max_length=1000)


class PendingProfilesResponse(BaseModel):
    """Profiles awaiting review."""

    profiles: list[RoleProfileResponse]
    total: int


class RoleCounts(BaseModel):
    """Registration counters for one role."""

    total: int
    pending: int


# Catalog schemas


class CatalogItemCreate(BaseModel):
    """Request schema for creating a catalog item."""

    name: str = Field(..., min_length=1, max_length=200)
    price: int
    stock: int | None = None
    category: str = "Local Meals"
    description: str = ""
    partner_account_id: str | None = None


class CatalogItemUpdate(BaseModel):
    """Partial update; only fields present in the body are applied."""

    name: str | None = Field(None, min_length=1, max_length=200)
    price: int | None = None
    stock: int | None = None
    category: str | None = None
    description: str | None = None


class CatalogItemResponse(BaseModel):
    """Response schema for a catalog item."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    partner_account_id: str
    name: str
    description: str
    category: str
    price: int
    stock: int | None = None


class CatalogItemListResponse(BaseModel):
    """Response schema for listing catalog items."""

    items: list[CatalogItemResponse]
    total: int


# Cart schemas


class CartItemAdd(BaseModel):
    """Request schema for adding or replacing a cart line."""

    item_id: str
    quantity: int


class CartLineResponse(BaseModel):
    """A cart line with the price captured when it was added."""

    model_config = ConfigDict(from_attributes=True)

    catalog_item_id: str
    name: str
    quantity: int
    unit_price: int


class CartResponse(BaseModel):
    """Cart contents with derived total."""

    model_config = ConfigDict(from_attributes=True)

    id: str | None = None
    account_id: str
    lines: list[CartLineResponse]
    total: int


# Order schemas


class CheckoutRequest(BaseModel):
    """Request schema for checking out the current cart."""

    delivery_fee: int = 0
    address: str | None = None
    phone: str | None = None
    payment_method: str | None = None


class OrderLineResponse(BaseModel):
    """Frozen order line."""

    model_config = ConfigDict(from_attributes=True)

    catalog_item_id: str | None = None
    name: str
    unit_price: int
    quantity: int


class OrderResponse(BaseModel):
    """Response schema for an order."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    account_id: str
    lines: list[OrderLineResponse]
    subtotal: int
    delivery_fee: int
    total: int
    total_items: int
    address: str
    phone: str
    payment_method: str
    status: str
    assigned_agent_id: str | None = None
    created_at: str
    updated_at: str


class OrderListResponse(BaseModel):
    """Response schema for listing orders."""

    orders: list[OrderResponse]
    total: int


class OrderStatusUpdate(BaseModel):
    """Request schema for moving an order to a new status."""

    status: str
    assigned_agent_id: str | None = None
