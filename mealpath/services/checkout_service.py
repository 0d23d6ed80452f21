"""Checkout transaction engine.

Turns an account's cart into an immutable order inside a single database
transaction: stock is validated for every line, decremented with
conditional updates, the order snapshot is written with the cart's
captured prices and the cart is emptied. Either all of it commits or none
of it does.

Example:
    order = CheckoutService(db).checkout(account_id, delivery_fee=100)
"""

import logging

from sqlalchemy import delete, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from mealpath.db.models import (
    Account,
    Cart,
    CartLine,
    CatalogItem,
    Order,
    OrderLine,
    OrderStatus,
    utc_now_iso,
)
from mealpath.errors import (
    DomainError,
    InsufficientStockError,
    InternalError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_METHOD = "cash"


class CheckoutService:
    """Commits carts as orders."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def checkout(
        self,
        account_id: str,
        delivery_fee: int = 0,
        address: str | None = None,
        phone: str | None = None,
        payment_method: str | None = None,
    ) -> Order:
        """Convert the account's cart into a pending order.

        Args:
            account_id: Cart owner.
            delivery_fee: Non-negative fee in minor units.
            address: Delivery address (defaults to the account's address).
            phone: Contact phone (defaults to the account's phone).
            payment_method: Opaque payment method label (defaults to "cash").

        Returns:
            The committed Order with its frozen lines.

        Raises:
            InvalidInputError: Negative delivery fee.
            InvalidStateError: Cart missing or empty.
            NotFoundError: A cart line refers to a deleted catalog item.
            InsufficientStockError: Tracked stock is below a line's quantity.
            InternalError: The database could not complete the transaction
                (lock or serialization failure); safe to retry.
        """
        if delivery_fee is None or delivery_fee < 0:
            raise InvalidInputError("Delivery fee must be zero or more", field="delivery_fee")

        cart = self.db.query(Cart).filter(Cart.account_id == account_id).first()
        if cart is None or not cart.lines:
            raise InvalidStateError("Cart is empty")

        try:
            order = self._commit_order(
                cart, account_id, delivery_fee, address, phone, payment_method
            )
        except DomainError:
            self.db.rollback()
            raise
        except OperationalError as e:
            self.db.rollback()
            logger.warning("Checkout for %s aborted by the database: %s", account_id, e)
            raise InternalError("Checkout could not complete", is_retryable=True) from e
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Checkout committed order %s for %s: %d item(s), total %d",
            order.id, account_id, order.total_items, order.total,
        )
        return order

    def _commit_order(
        self,
        cart: Cart,
        account_id: str,
        delivery_fee: int,
        address: str | None,
        phone: str | None,
        payment_method: str | None,
    ) -> Order:
        # Claim the cart first so concurrent checkouts of it serialize here.
        claimed = self.db.execute(
            update(Cart).where(Cart.id == cart.id).values(updated_at=utc_now_iso())
        )
        if claimed.rowcount != 1:
            raise InvalidStateError("Cart is empty")
        lines = (
            self.db.query(CartLine)
            .filter(CartLine.cart_id == cart.id)
            .order_by(CartLine.position)
            .populate_existing()
            .all()
        )
        if not lines:
            raise InvalidStateError("Cart is empty")

        # Validate every line before touching stock.
        tracked: set[str] = set()
        for line in lines:
            item = (
                self.db.query(CatalogItem)
                .filter(CatalogItem.id == line.catalog_item_id)
                .with_for_update()
                .populate_existing()
                .first()
            )
            if item is None:
                raise NotFoundError("Catalog item", line.catalog_item_id)
            if item.stock is not None:
                if item.stock < line.quantity:
                    raise InsufficientStockError(line.name, line.quantity, item.stock)
                tracked.add(item.id)

        for line in lines:
            if line.catalog_item_id not in tracked:
                continue
            result = self.db.execute(
                update(CatalogItem)
                .where(
                    CatalogItem.id == line.catalog_item_id,
                    CatalogItem.stock.is_not(None),
                    CatalogItem.stock >= line.quantity,
                )
                .values(stock=CatalogItem.stock - line.quantity)
            )
            if result.rowcount == 0:
                raise InsufficientStockError(line.name, line.quantity, None)

        subtotal = sum(line.unit_price * line.quantity for line in lines)
        account = self.db.get(Account, account_id)
        order = Order(
            account_id=account_id,
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            total=subtotal + delivery_fee,
            total_items=sum(line.quantity for line in lines),
            address=address or (account.address if account else None) or "",
            phone=phone or (account.phone if account else ""),
            payment_method=payment_method or DEFAULT_PAYMENT_METHOD,
            status=OrderStatus.pending.value,
        )
        for position, line in enumerate(lines):
            order.lines.append(
                OrderLine(
                    catalog_item_id=line.catalog_item_id,
                    position=position,
                    name=line.name,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                )
            )
        self.db.add(order)

        cleared = self.db.execute(
            delete(CartLine).where(
                CartLine.cart_id == cart.id,
                CartLine.id.in_([line.id for line in lines]),
            )
        )
        if cleared.rowcount != len(lines):
            raise InvalidStateError("Cart changed during checkout")
        self.db.expire(cart, ["lines"])

        self.db.commit()
        self.db.refresh(order)
        return order
