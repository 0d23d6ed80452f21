"""SQLAlchemy ORM models for the MealPath state database.

Defines accounts, role profiles (a tagged variant over a single table),
uploaded artifacts, catalog items, carts and orders. Uses SQLAlchemy 2.0
style with Mapped and mapped_column.
"""

import json
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    event,
    inspect,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)


def generate_uuid() -> str:
    """Generate a UUID4 string for primary keys."""
    return str(uuid4())


def utc_now_iso() -> str:
    """Generate current UTC timestamp in ISO8601 format."""
    return datetime.now(UTC).isoformat()


# Enums matching the database schema constraints


class AccountRole(str, Enum):
    """Participant roles an account can hold."""

    client = "client"
    partner = "partner"
    delivery_agent = "delivery_agent"
    admin = "admin"


class AccountStatus(str, Enum):
    """Account standing."""

    active = "active"
    suspended = "suspended"


class ApprovalStatus(str, Enum):
    """Tri-state approval for role profiles.

    Lifecycle: pending -> approved | rejected (re-review allowed, last write wins)
    """

    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class ArtifactKind(str, Enum):
    """Categories of uploaded registration artifacts."""

    profile_photo = "profile_photo"
    license_photo = "license_photo"
    partner_document = "partner_document"


class OrderStatus(str, Enum):
    """Status values for customer orders.

    Lifecycle: pending -> confirmed -> preparing -> out_for_delivery -> delivered
               any non-terminal -> cancelled
    """

    pending = "pending"
    confirmed = "confirmed"
    preparing = "preparing"
    out_for_delivery = "out_for_delivery"
    delivered = "delivered"
    cancelled = "cancelled"


# SQLAlchemy Base


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# Models


class Account(Base):
    """Identity record shared by every participant role.

    Attributes:
        id: UUID primary key
        name: Display name
        email: Lower-cased email, unique at the store level
        phone: Phone number, unique at the store level
        password_hash: Salted credential hash (never the raw password)
        role: One of AccountRole
        verified: Set by the approval workflow
        status: One of AccountStatus
    """

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(30), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AccountRole.client.value
    )
    verified: Mapped[bool] = mapped_column(nullable=False, default=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AccountStatus.active.value
    )
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )
    updated_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso, onupdate=utc_now_iso
    )

    role_profile: Mapped["RoleProfile | None"] = relationship(
        "RoleProfile",
        back_populates="account",
        uselist=False,
        cascade="all, delete-orphan",
    )

    # Store-level uniqueness is the authoritative duplicate guard.
    __table_args__ = (
        UniqueConstraint("email", name="uq_accounts_email"),
        UniqueConstraint("phone", name="uq_accounts_phone"),
        Index("idx_accounts_role", "role"),
    )

    def __repr__(self) -> str:
        return f"<Account(id={self.id!r}, email={self.email!r}, role={self.role!r})>"


class RoleProfile(Base):
    """Role-specific extension of an Account.

    Tagged variant keyed by ``role``: PartnerProfile and DeliveryAgentProfile
    share this table through single-table inheritance.
    """

    __tablename__ = "role_profiles"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    account_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    approval: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ApprovalStatus.pending.value
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )

    # PartnerProfile columns
    business_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    categories_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    bank_account: Mapped[str | None] = mapped_column(String(100), nullable=True)
    offers_logistics: Mapped[bool | None] = mapped_column(nullable=True)

    # DeliveryAgentProfile columns
    vehicle_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    vehicle_license: Mapped[str | None] = mapped_column(String(100), nullable=True)
    partner_profile_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("role_profiles.id", ondelete="SET NULL"),
        nullable=True,
    )

    account: Mapped["Account"] = relationship(
        "Account", back_populates="role_profile", foreign_keys=[account_id]
    )
    artifacts: Mapped[list["Artifact"]] = relationship(
        "Artifact",
        back_populates="role_profile",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"polymorphic_on": "role"}

    __table_args__ = (
        Index("idx_role_profiles_approval", "approval"),
        Index("idx_role_profiles_role", "role"),
    )

    @property
    def artifact_paths(self) -> list[str]:
        """Storage references of every artifact attached to this profile."""
        return [a.path for a in self.artifacts]

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.id!r}, approval={self.approval!r})>"


class PartnerProfile(RoleProfile):
    """Merchant partner profile (restaurant or shop)."""

    __mapper_args__ = {"polymorphic_identity": AccountRole.partner.value}

    @property
    def categories(self) -> list[str]:
        """Parse categories JSON string into a Python list."""
        if not self.categories_json:
            return []
        return json.loads(self.categories_json)

    @categories.setter
    def categories(self, value: list[str]) -> None:
        """Serialize a Python list into JSON for the categories column."""
        self.categories_json = json.dumps(value) if value else None


class DeliveryAgentProfile(RoleProfile):
    """Delivery agent profile, optionally attached to a partner."""

    __mapper_args__ = {"polymorphic_identity": AccountRole.delivery_agent.value}

    partner: Mapped["PartnerProfile | None"] = relationship(
        "PartnerProfile",
        remote_side="RoleProfile.id",
        foreign_keys="RoleProfile.partner_profile_id",
    )


class Artifact(Base):
    """Uploaded binary attached to a role profile.

    Attributes:
        path: Storage reference returned by the artifact store
        size_bytes: Payload size
        content_type: MIME type declared at upload
        original_name: Client-side filename
    """

    __tablename__ = "artifacts"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    role_profile_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("role_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    kind: Mapped[str] = mapped_column(String(30), nullable=False)
    path: Mapped[str] = mapped_column(String(500), nullable=False)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    content_type: Mapped[str] = mapped_column(String(100), nullable=False)
    original_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )

    role_profile: Mapped["RoleProfile"] = relationship(
        "RoleProfile", back_populates="artifacts"
    )

    __table_args__ = (Index("idx_artifacts_profile", "role_profile_id"),)


class CatalogItem(Base):
    """Sellable item owned by a partner.

    Prices are integer minor units. ``stock`` of None means unlimited.
    """

    __tablename__ = "catalog_items"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    partner_account_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(
        String(100), nullable=False, default="Local Meals"
    )
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    stock: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )
    updated_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso, onupdate=utc_now_iso
    )

    __table_args__ = (
        CheckConstraint("stock IS NULL OR stock >= 0", name="ck_catalog_stock"),
        CheckConstraint("price >= 0", name="ck_catalog_price"),
        Index("idx_catalog_items_partner", "partner_account_id"),
    )

    def __repr__(self) -> str:
        return f"<CatalogItem(id={self.id!r}, name={self.name!r}, stock={self.stock!r})>"


class Cart(Base):
    """Per-account mutable cart. The total is always derived from lines."""

    __tablename__ = "carts"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    account_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    updated_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso, onupdate=utc_now_iso
    )

    lines: Mapped[list["CartLine"]] = relationship(
        "CartLine",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartLine.position",
    )

    @property
    def total(self) -> int:
        """Sum of unit price times quantity over all lines."""
        return sum(line.unit_price * line.quantity for line in self.lines)


class CartLine(Base):
    """Line item with the unit price captured when it was added."""

    __tablename__ = "cart_lines"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    cart_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("carts.id", ondelete="CASCADE"), nullable=False
    )
    catalog_item_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("catalog_items.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[int] = mapped_column(Integer, nullable=False)

    cart: Mapped["Cart"] = relationship("Cart", back_populates="lines")

    __table_args__ = (
        UniqueConstraint("cart_id", "catalog_item_id", name="uq_cart_line_item"),
        CheckConstraint("quantity >= 1", name="ck_cart_line_quantity"),
    )


class Order(Base):
    """Committed order with a write-once line-item snapshot.

    Attributes:
        subtotal: Sum of frozen line totals
        delivery_fee: Fee supplied at checkout
        total: subtotal + delivery_fee
        total_items: Sum of quantities
        status: One of OrderStatus
        assigned_agent_id: Delivery agent account, set by an admin
    """

    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    account_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False
    )
    subtotal: Mapped[int] = mapped_column(Integer, nullable=False)
    delivery_fee: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total: Mapped[int] = mapped_column(Integer, nullable=False)
    total_items: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    address: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    phone: Mapped[str] = mapped_column(String(30), nullable=False, default="")
    payment_method: Mapped[str] = mapped_column(
        String(30), nullable=False, default="cash"
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=OrderStatus.pending.value
    )
    assigned_agent_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )
    updated_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )

    lines: Mapped[list["OrderLine"]] = relationship(
        "OrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.position",
    )

    __table_args__ = (
        Index("idx_orders_account", "account_id"),
        Index("idx_orders_status", "status"),
        Index("idx_orders_agent", "assigned_agent_id"),
        Index("idx_orders_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id!r}, status={self.status!r}, total={self.total})>"


class OrderLine(Base):
    """Frozen copy of a cart line taken at checkout."""

    __tablename__ = "order_lines"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    order_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    catalog_item_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    unit_price: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped["Order"] = relationship("Order", back_populates="lines")


class SnapshotImmutableError(Exception):
    """Raised when a flush would rewrite a committed order snapshot."""


# Columns of Order that may change after creation; everything else is frozen.
_ORDER_MUTABLE_COLUMNS = frozenset({"status", "assigned_agent_id", "updated_at"})


@event.listens_for(Order, "before_update")
def _guard_order_snapshot(mapper, connection, target: Order) -> None:
    state = inspect(target)
    for attr in mapper.column_attrs:
        if attr.key in _ORDER_MUTABLE_COLUMNS:
            continue
        if state.attrs[attr.key].history.has_changes():
            raise SnapshotImmutableError(
                f"Order {target.id} field '{attr.key}' is write-once"
            )


@event.listens_for(OrderLine, "before_update")
def _guard_order_line_snapshot(mapper, connection, target: OrderLine) -> None:
    raise SnapshotImmutableError(f"Order line {target.id} is write-once")
