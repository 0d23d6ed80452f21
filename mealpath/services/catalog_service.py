"""Catalog collaborator: item price/stock lookup and partner resolution.

Partners (or admins acting for them) maintain catalog items; the cart
and checkout read price and stock through this service. Partner-name
resolution only ever matches approved partner profiles.

Example:
    svc = CatalogService(db)
    item = svc.create_item(actor, name="Ndole", price=2500, stock=10)
    partner = svc.find_approved_partner("chez wou")
"""

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from mealpath.db.models import (
    Account,
    AccountRole,
    ApprovalStatus,
    CartLine,
    CatalogItem,
    PartnerProfile,
)
from mealpath.errors import ForbiddenError, InvalidInputError, NotFoundError
from mealpath.services.actors import Actor

logger = logging.getLogger(__name__)


class CatalogService:
    """Read and maintain catalog items."""

    def __init__(self, db: Session) -> None:
        """Initialize with a SQLAlchemy session.

        Args:
            db: Active database session.
        """
        self.db = db

    def get_item(self, item_id: str) -> CatalogItem:
        """Return the catalog item or raise NotFoundError."""
        item = self.db.get(CatalogItem, item_id)
        if item is None:
            raise NotFoundError("Catalog item", item_id)
        return item

    def find_approved_partner(self, name: str) -> PartnerProfile | None:
        """Resolve a partner by business name among approved profiles only.

        Matching is case-insensitive. An exact name match wins; otherwise
        the oldest approved profile whose name contains ``name`` is used.

        Args:
            name: Business name as typed by the applicant.

        Returns:
            The matching PartnerProfile, or None.
        """
        clean = name.strip().lower()
        if not clean:
            return None
        approved = self.db.query(PartnerProfile).filter(
            PartnerProfile.approval == ApprovalStatus.approved.value
        )
        exact = approved.filter(func.lower(PartnerProfile.business_name) == clean).first()
        if exact is not None:
            return exact
        return (
            approved.filter(func.lower(PartnerProfile.business_name).contains(clean, autoescape=True))
            .order_by(PartnerProfile.created_at)
            .first()
        )

    def create_item(
        self,
        actor: Actor,
        name: str,
        price: int,
        stock: int | None = None,
        category: str = "Local Meals",
        description: str = "",
        partner_account_id: str | None = None,
    ) -> CatalogItem:
        """Create a catalog item owned by a partner.

        Partners create items for themselves; admins must name the owning
        partner account.

        Raises:
            ForbiddenError: If the actor is neither a partner nor an admin.
            InvalidInputError: For a blank name, negative price or stock.
            NotFoundError: If the named owner is not a partner account.
        """
        if actor.is_partner:
            owner_id = actor.account_id
        elif actor.is_admin:
            if not partner_account_id:
                raise InvalidInputError("partner_account_id is required", field="partner_account_id")
            owner_id = partner_account_id
        else:
            raise ForbiddenError("Only partners and admins can manage catalog items")

        owner = self.db.get(Account, owner_id)
        if owner is None or owner.role != AccountRole.partner.value:
            raise NotFoundError("Partner", owner_id)

        self._validate(name=name, price=price, stock=stock)
        item = CatalogItem(
            partner_account_id=owner_id,
            name=name.strip(),
            price=price,
            stock=stock,
            category=category,
            description=description,
        )
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        logger.info("Created catalog item %s (%s) for partner %s", item.id, item.name, owner_id)
        return item

    def update_item(self, actor: Actor, item_id: str, **fields) -> CatalogItem:
        """Update price, stock, name, category or description of an item.

        Existing orders are unaffected: they carry their own frozen lines.
        ``stock=None`` switches the item to unlimited stock.
        """
        item = self.get_item(item_id)
        if not actor.is_admin and item.partner_account_id != actor.account_id:
            raise ForbiddenError("Only the owning partner or an admin can update this item")

        allowed = {"name", "price", "stock", "category", "description"}
        unknown = set(fields) - allowed
        if unknown:
            raise InvalidInputError(f"Unknown fields: {', '.join(sorted(unknown))}")

        self._validate(
            name=fields.get("name", item.name),
            price=fields.get("price", item.price),
            stock=fields.get("stock", item.stock),
        )
        for key, value in fields.items():
            setattr(item, key, value.strip() if key == "name" else value)
        self.db.commit()
        self.db.refresh(item)
        return item

    def delete_item(self, actor: Actor, item_id: str) -> None:
        """Delete an item and drop it from every cart.

        Orders keep their frozen lines.

        Raises:
            NotFoundError: If the item does not exist.
            ForbiddenError: If the actor is neither the owning partner nor an admin.
        """
        item = self.get_item(item_id)
        if not actor.is_admin and item.partner_account_id != actor.account_id:
            raise ForbiddenError("Only the owning partner or an admin can delete this item")

        self.db.query(CartLine).filter(CartLine.catalog_item_id == item.id).delete(
            synchronize_session="fetch"
        )
        self.db.delete(item)
        self.db.commit()
        logger.info("Deleted catalog item %s by %s", item_id, actor.account_id)

    def list_items(self, partner_account_id: str | None = None) -> list[CatalogItem]:
        """List items, optionally restricted to one partner."""
        query = self.db.query(CatalogItem)
        if partner_account_id:
            query = query.filter(CatalogItem.partner_account_id == partner_account_id)
        return query.order_by(CatalogItem.name).all()

    @staticmethod
    def _validate(name: str, price: int, stock: int | None) -> None:
        if not name or not name.strip():
            raise InvalidInputError("Item name is required", field="name")
        if price is None or price < 0:
            raise InvalidInputError("Price must be zero or more", field="price")
        if stock is not None and stock < 0:
            raise InvalidInputError("Stock must be zero or more", field="stock")
