"""API routes for the caller's cart.

All endpoints use the /api/v1/cart prefix and act on the authenticated
account's cart.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mealpath.api.middleware.auth import get_current_actor
from mealpath.api.schemas import CartItemAdd, CartResponse
from mealpath.db.connection import get_db
from mealpath.services.actors import Actor
from mealpath.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def _get_service(db: Session = Depends(get_db)) -> CartService:
    """Dependency injector for CartService."""
    return CartService(db)


@router.get("", response_model=CartResponse)
def get_cart(
    actor: Actor = Depends(get_current_actor),
    service: CartService = Depends(_get_service),
) -> CartResponse:
    """Return the cart (empty if nothing was added yet)."""
    return CartResponse.model_validate(service.get_cart(actor.account_id))


@router.post("/items", response_model=CartResponse)
def add_item(
    data: CartItemAdd,
    actor: Actor = Depends(get_current_actor),
    service: CartService = Depends(_get_service),
) -> CartResponse:
    """Add an item, or replace the quantity of one already in the cart."""
    cart = service.add_or_update(actor.account_id, data.item_id, data.quantity)
    return CartResponse.model_validate(cart)


@router.delete("/items/{item_id}", response_model=CartResponse)
def remove_item(
    item_id: str,
    actor: Actor = Depends(get_current_actor),
    service: CartService = Depends(_get_service),
) -> CartResponse:
    """Remove one item from the cart."""
    return CartResponse.model_validate(service.remove(actor.account_id, item_id))


@router.delete("", response_model=CartResponse)
def clear_cart(
    actor: Actor = Depends(get_current_actor),
    service: CartService = Depends(_get_service),
) -> CartResponse:
    """Empty the cart."""
    return CartResponse.model_validate(service.clear(actor.account_id))
