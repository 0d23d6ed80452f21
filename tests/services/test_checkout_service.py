"""Tests for the checkout transaction engine.

Covers totals and price freezing, all-or-nothing rollback on stock
failures, snapshot immutability, and two concurrent checkouts racing for
the last unit of stock on a file-backed database.
"""

import threading
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from mealpath.db.models import (
    Account,
    AccountRole,
    Cart,
    CatalogItem,
    Order,
    OrderStatus,
    SnapshotImmutableError,
)
from mealpath.errors import (
    InsufficientStockError,
    InternalError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)
from mealpath.services.cart_service import CartService
from mealpath.services.checkout_service import CheckoutService


@pytest.fixture
def service(db: Session) -> CheckoutService:
    return CheckoutService(db)


@pytest.fixture
def carts(db: Session) -> CartService:
    return CartService(db)


@pytest.fixture
def customer(make_account):
    return make_account(address="12 Rue de la Joie")


def test_checkout_totals_stock_and_cart(service, carts, customer, make_item, db):
    """Cart [A x2 @500], stock 5, fee 100 => total 1100, stock 3, cart empty."""
    item = make_item(name="A", price=500, stock=5)
    carts.add_or_update(customer.id, item.id, 2)

    order = service.checkout(customer.id, delivery_fee=100)

    assert order.subtotal == 1000
    assert order.delivery_fee == 100
    assert order.total == 1100
    assert order.total_items == 2
    assert order.status == OrderStatus.pending.value
    assert [(ln.name, ln.unit_price, ln.quantity) for ln in order.lines] == [("A", 500, 2)]
    db.refresh(item)
    assert item.stock == 3
    assert carts.get_cart(customer.id).lines == []


def test_checkout_defaults_contact_and_payment(service, carts, customer, make_item):
    carts.add_or_update(customer.id, make_item().id, 1)

    order = service.checkout(customer.id)

    assert order.phone == customer.phone
    assert order.address == "12 Rue de la Joie"
    assert order.payment_method == "cash"
    assert order.delivery_fee == 0


def test_checkout_uses_supplied_contact_and_payment(service, carts, customer, make_item):
    carts.add_or_update(customer.id, make_item().id, 1)

    order = service.checkout(
        customer.id, address="Akwa, Douala", phone="+237699000000", payment_method="mobile_money"
    )

    assert (order.address, order.phone, order.payment_method) == (
        "Akwa, Douala",
        "+237699000000",
        "mobile_money",
    )


def test_empty_or_missing_cart(service, carts, customer, make_item):
    with pytest.raises(InvalidStateError, match="Cart is empty"):
        service.checkout(customer.id)

    item = make_item()
    carts.add_or_update(customer.id, item.id, 1)
    carts.clear(customer.id)
    with pytest.raises(InvalidStateError):
        service.checkout(customer.id)


def test_negative_delivery_fee(service, carts, customer, make_item, db):
    carts.add_or_update(customer.id, make_item().id, 1)

    with pytest.raises(InvalidInputError):
        service.checkout(customer.id, delivery_fee=-1)
    assert db.query(Order).count() == 0


def test_stock_failure_at_item_k_changes_nothing(service, carts, customer, make_item, db):
    """Validation covers every line before any decrement."""
    a = make_item(name="A", stock=5)
    b = make_item(name="B", stock=5)
    c = make_item(name="C", stock=1)
    carts.add_or_update(customer.id, a.id, 2)
    carts.add_or_update(customer.id, b.id, 2)
    carts.add_or_update(customer.id, c.id, 3)

    with pytest.raises(InsufficientStockError, match="Not enough stock for 'C'") as exc_info:
        service.checkout(customer.id, delivery_fee=100)

    assert exc_info.value.requested == 3
    assert exc_info.value.available == 1
    assert [db.get(CatalogItem, i.id).stock for i in (a, b, c)] == [5, 5, 1]
    assert [ln.quantity for ln in carts.get_cart(customer.id).lines] == [2, 2, 3]
    assert db.query(Order).count() == 0


def test_unlimited_stock_is_not_decremented(service, carts, customer, make_item, db):
    item = make_item(stock=None)
    carts.add_or_update(customer.id, item.id, 50)

    order = service.checkout(customer.id)

    assert order.total_items == 50
    assert db.get(CatalogItem, item.id).stock is None


def test_deleted_catalog_item(service, carts, customer, make_item, db):
    item = make_item()
    carts.add_or_update(customer.id, item.id, 1)
    db.delete(item)
    db.commit()

    with pytest.raises(NotFoundError):
        service.checkout(customer.id)
    assert len(carts.get_cart(customer.id).lines) == 1


def test_subtotal_uses_price_captured_in_cart(service, carts, customer, make_item, db):
    item = make_item(price=500)
    carts.add_or_update(customer.id, item.id, 2)
    item.price = 700
    db.commit()

    order = service.checkout(customer.id)

    assert order.subtotal == 1000


def test_later_price_changes_do_not_affect_order(service, carts, customer, make_item, db):
    item = make_item(price=500)
    carts.add_or_update(customer.id, item.id, 2)
    order = service.checkout(customer.id, delivery_fee=100)

    item.price = 9999
    db.commit()
    db.expire_all()

    stored = db.get(Order, order.id)
    assert stored.lines[0].unit_price == 500
    assert stored.total == 1100


def test_database_failure_rolls_back_and_is_retryable(service, carts, customer, make_item, db):
    item = make_item(stock=5)
    carts.add_or_update(customer.id, item.id, 2)

    failure = OperationalError("COMMIT", {}, Exception("database is locked"))
    with patch.object(db, "commit", side_effect=failure):
        with pytest.raises(InternalError) as exc_info:
            service.checkout(customer.id)

    assert exc_info.value.is_retryable is True
    assert db.get(CatalogItem, item.id).stock == 5
    assert len(carts.get_cart(customer.id).lines) == 1
    assert db.query(Order).count() == 0


class TestSnapshotImmutability:
    """Committed order snapshots are write-once."""

    @pytest.fixture
    def order(self, service, carts, customer, make_item):
        carts.add_or_update(customer.id, make_item(price=500).id, 2)
        return service.checkout(customer.id, delivery_fee=100)

    def test_totals_cannot_be_rewritten(self, order, db):
        order.total = 1
        with pytest.raises(SnapshotImmutableError, match="total"):
            db.commit()
        db.rollback()
        assert db.get(Order, order.id).total == 1100

    def test_lines_cannot_be_rewritten(self, order, db):
        order.lines[0].unit_price = 1
        with pytest.raises(SnapshotImmutableError):
            db.commit()
        db.rollback()

    def test_status_may_change(self, order, db):
        order.status = OrderStatus.confirmed.value
        db.commit()
        assert db.get(Order, order.id).status == OrderStatus.confirmed.value


@pytest.mark.slow
def test_concurrent_checkouts_for_last_unit(file_engine):
    """Two carts racing for stock 1: exactly one order, one InsufficientStock."""
    SessionFactory = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)

    with SessionFactory() as setup:
        partner = Account(
            name="P", email="p@example.com", phone="1", password_hash="unused",
            role=AccountRole.partner.value,
        )
        buyers = [
            Account(name=f"B{i}", email=f"b{i}@example.com", phone=f"2{i}", password_hash="unused")
            for i in range(2)
        ]
        setup.add_all([partner, *buyers])
        setup.commit()
        item = CatalogItem(partner_account_id=partner.id, name="Last Plate", price=800, stock=1)
        setup.add(item)
        setup.commit()
        for buyer in buyers:
            CartService(setup).add_or_update(buyer.id, item.id, 1)
        buyer_ids = [b.id for b in buyers]
        item_id = item.id

    barrier = threading.Barrier(2)
    outcomes: list[object] = []
    lock = threading.Lock()

    def run(account_id: str) -> None:
        session = SessionFactory()
        try:
            barrier.wait()
            result: object = CheckoutService(session).checkout(account_id).id
        except Exception as e:
            result = e
        finally:
            session.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=run, args=(bid,)) for bid in buyer_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    errors = [o for o in outcomes if isinstance(o, Exception)]
    successes = [o for o in outcomes if isinstance(o, str)]
    assert len(successes) == 1, outcomes
    assert len(errors) == 1 and isinstance(errors[0], InsufficientStockError), outcomes

    with SessionFactory() as check:
        assert check.get(CatalogItem, item_id).stock == 0
        assert check.query(Order).count() == 1
        carts_left = {
            c.account_id: len(c.lines) for c in check.query(Cart).all()
        }
        assert sorted(carts_left.values()) == [0, 1]


@pytest.mark.slow
def test_concurrent_checkouts_of_same_cart(file_engine):
    """A double-submitted checkout yields one order and one decrement."""
    SessionFactory = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)

    with SessionFactory() as setup:
        partner = Account(
            name="P", email="p@example.com", phone="1", password_hash="unused",
            role=AccountRole.partner.value,
        )
        buyer = Account(name="B", email="b@example.com", phone="2", password_hash="unused")
        setup.add_all([partner, buyer])
        setup.commit()
        item = CatalogItem(partner_account_id=partner.id, name="Eru", price=500, stock=5)
        setup.add(item)
        setup.commit()
        CartService(setup).add_or_update(buyer.id, item.id, 2)
        buyer_id = buyer.id
        item_id = item.id

    barrier = threading.Barrier(2)
    outcomes: list[object] = []
    lock = threading.Lock()

    def run() -> None:
        session = SessionFactory()
        try:
            barrier.wait()
            result: object = CheckoutService(session).checkout(buyer_id).id
        except Exception as e:
            result = e
        finally:
            session.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=run) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    errors = [o for o in outcomes if isinstance(o, Exception)]
    successes = [o for o in outcomes if isinstance(o, str)]
    assert len(successes) == 1, outcomes
    assert len(errors) == 1 and isinstance(errors[0], InvalidStateError), outcomes

    with SessionFactory() as check:
        assert check.get(CatalogItem, item_id).stock == 3
        assert check.query(Order).count() == 1
        assert check.query(Cart).filter(Cart.account_id == buyer_id).one().lines == []
