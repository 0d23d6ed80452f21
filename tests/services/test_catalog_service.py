"""Tests for CatalogService item maintenance and partner lookup."""

import pytest
from sqlalchemy.orm import Session

from mealpath.db.models import AccountRole, ApprovalStatus
from mealpath.errors import ForbiddenError, InvalidInputError, NotFoundError
from mealpath.services.cart_service import CartService
from mealpath.services.catalog_service import CatalogService


@pytest.fixture
def service(db: Session) -> CatalogService:
    return CatalogService(db)


@pytest.fixture
def partner_actor(make_partner, actor_of):
    profile = make_partner()
    return actor_of(profile.account)


def test_partner_creates_own_item(service, partner_actor):
    item = service.create_item(partner_actor, name=" Eru ", price=1500, stock=3)

    assert item.partner_account_id == partner_actor.account_id
    assert item.name == "Eru"
    assert item.category == "Local Meals"
    assert item.stock == 3


def test_admin_must_name_partner(service, admin, partner_actor):
    with pytest.raises(InvalidInputError):
        service.create_item(admin, name="Eru", price=1500)

    item = service.create_item(
        admin, name="Eru", price=1500, partner_account_id=partner_actor.account_id
    )
    assert item.partner_account_id == partner_actor.account_id


def test_admin_cannot_assign_item_to_client(service, admin, make_account):
    client = make_account(role=AccountRole.client.value)
    with pytest.raises(NotFoundError):
        service.create_item(admin, name="Eru", price=1500, partner_account_id=client.id)


def test_client_cannot_create_items(service, make_account, actor_of):
    with pytest.raises(ForbiddenError):
        service.create_item(actor_of(make_account()), name="Eru", price=100)


@pytest.mark.parametrize(
    "fields",
    [{"name": "  ", "price": 100}, {"name": "Eru", "price": -1}, {"name": "Eru", "price": 1, "stock": -2}],
)
def test_create_rejects_invalid_values(service, partner_actor, fields):
    with pytest.raises(InvalidInputError):
        service.create_item(partner_actor, **fields)


def test_update_price_and_unlimit_stock(service, partner_actor):
    item = service.create_item(partner_actor, name="Eru", price=1500, stock=3)

    updated = service.update_item(partner_actor, item.id, price=1800, stock=None)

    assert updated.price == 1800
    assert updated.stock is None


def test_only_owner_or_admin_updates(service, partner_actor, make_partner, actor_of, admin):
    item = service.create_item(partner_actor, name="Eru", price=1500)
    other = actor_of(make_partner(business_name="Other").account)

    with pytest.raises(ForbiddenError):
        service.update_item(other, item.id, price=1)
    assert service.update_item(admin, item.id, price=1).price == 1


def test_update_rejects_unknown_fields(service, partner_actor):
    item = service.create_item(partner_actor, name="Eru", price=1500)
    with pytest.raises(InvalidInputError, match="Unknown fields"):
        service.update_item(partner_actor, item.id, partner_account_id="someone-else")


def test_get_item_missing(service):
    with pytest.raises(NotFoundError, match="Catalog item 'nope' not found"):
        service.get_item("nope")


class TestFindApprovedPartner:
    """Partner-name resolution only ever returns approved profiles."""

    def test_exact_match_wins_over_substring(self, service, make_partner):
        make_partner(business_name="Chez Wou Deluxe")
        exact = make_partner(business_name="Chez Wou")

        assert service.find_approved_partner("CHEZ WOU").id == exact.id

    def test_substring_match(self, service, make_partner):
        partner = make_partner(business_name="Le Grand Chez Wou")
        assert service.find_approved_partner("chez").id == partner.id

    @pytest.mark.parametrize(
        "approval", [ApprovalStatus.pending.value, ApprovalStatus.rejected.value]
    )
    def test_unapproved_partners_are_invisible(self, service, make_partner, approval):
        make_partner(business_name="Chez Wou", approval=approval)
        assert service.find_approved_partner("Chez Wou") is None

    def test_blank_name(self, service, make_partner):
        make_partner()
        assert service.find_approved_partner("   ") is None

    def test_like_wildcards_are_literal(self, service, make_partner):
        make_partner(business_name="Chez Wou")
        assert service.find_approved_partner("%") is None


def test_list_items_sorted_and_filtered(service, partner_actor, make_partner, actor_of):
    service.create_item(partner_actor, name="Suya", price=500)
    service.create_item(partner_actor, name="Achu", price=900)
    other = actor_of(make_partner(business_name="Other").account)
    service.create_item(other, name="Koki", price=300)

    assert [i.name for i in service.list_items()] == ["Achu", "Koki", "Suya"]
    assert [i.name for i in service.list_items(partner_account_id=other.account_id)] == ["Koki"]


class TestDeleteItem:
    def test_owner_deletes_item_and_cart_lines(self, service, partner_actor, make_account, db):
        item = service.create_item(partner_actor, name="Eru", price=1500)
        keep = service.create_item(partner_actor, name="Koki", price=300)
        customer = make_account()
        carts = CartService(db)
        carts.add_or_update(customer.id, item.id, 1)
        carts.add_or_update(customer.id, keep.id, 2)

        service.delete_item(partner_actor, item.id)

        with pytest.raises(NotFoundError):
            service.get_item(item.id)
        assert [ln.name for ln in carts.get_cart(customer.id).lines] == ["Koki"]

    def test_admin_may_delete(self, service, partner_actor, admin):
        item = service.create_item(partner_actor, name="Eru", price=1500)
        service.delete_item(admin, item.id)
        assert service.list_items() == []

    def test_other_partner_or_client_forbidden(
        self, service, partner_actor, make_partner, make_account, actor_of
    ):
        item = service.create_item(partner_actor, name="Eru", price=1500)
        for actor in (
            actor_of(make_partner(business_name="Other").account),
            actor_of(make_account()),
        ):
            with pytest.raises(ForbiddenError):
                service.delete_item(actor, item.id)
        assert service.get_item(item.id).name == "Eru"

    def test_missing_item(self, service, admin):
        with pytest.raises(NotFoundError):
            service.delete_item(admin, "nope")
