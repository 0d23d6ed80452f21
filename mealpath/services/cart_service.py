"""Cart aggregate: one mutable cart per account.

Each line captures the catalog unit price at the moment it was added or
last updated. The cart total is never stored; it is derived from lines.
"""

import logging

from sqlalchemy.orm import Session

from mealpath.db.models import Cart, CartLine
from mealpath.errors import InvalidInputError, NotFoundError
from mealpath.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)


class CartService:
    """Add, replace, remove and clear cart lines."""

    def __init__(self, db: Session, catalog: CatalogService | None = None) -> None:
        self.db = db
        self.catalog = catalog or CatalogService(db)

    def get_cart(self, account_id: str) -> Cart:
        """Return the account's cart, or an unsaved empty one if none exists."""
        cart = self._find(account_id)
        if cart is None:
            return Cart(account_id=account_id, lines=[])
        return cart

    def add_or_update(self, account_id: str, item_id: str, quantity: int) -> Cart:
        """Put ``quantity`` of an item in the cart.

        An existing line for the same item is replaced: its quantity is set
        (not added to) and its unit price refreshed to the current catalog
        price.

        Raises:
            InvalidInputError: If quantity is less than 1.
            NotFoundError: If the catalog item does not exist.
        """
        if quantity is None or quantity < 1:
            raise InvalidInputError("Quantity must be at least 1", field="quantity")
        item = self.catalog.get_item(item_id)

        cart = self._find(account_id)
        if cart is None:
            cart = Cart(account_id=account_id)
            self.db.add(cart)

        line = next((ln for ln in cart.lines if ln.catalog_item_id == item.id), None)
        if line is not None:
            line.quantity = quantity
            line.unit_price = item.price
            line.name = item.name
        else:
            position = max((ln.position for ln in cart.lines), default=-1) + 1
            cart.lines.append(
                CartLine(
                    catalog_item_id=item.id,
                    position=position,
                    name=item.name,
                    quantity=quantity,
                    unit_price=item.price,
                )
            )
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def remove(self, account_id: str, item_id: str) -> Cart:
        """Drop the line for ``item_id``.

        Raises:
            NotFoundError: If there is no cart or no such line.
        """
        cart = self._find(account_id)
        if cart is None:
            raise NotFoundError("Cart", account_id)
        line = next((ln for ln in cart.lines if ln.catalog_item_id == item_id), None)
        if line is None:
            raise NotFoundError("Cart item", item_id)
        cart.lines.remove(line)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def clear(self, account_id: str) -> Cart:
        """Remove every line. Clearing an absent cart is a no-op."""
        cart = self._find(account_id)
        if cart is None:
            return Cart(account_id=account_id, lines=[])
        cart.lines.clear()
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def _find(self, account_id: str) -> Cart | None:
        return self.db.query(Cart).filter(Cart.account_id == account_id).first()
