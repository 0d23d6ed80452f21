"""API routes for checkout and order lifecycle.

All endpoints use the /api/v1/orders prefix.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mealpath.api.middleware.auth import get_current_actor
from mealpath.api.schemas import (
    CheckoutRequest,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
)
from mealpath.db.connection import get_db
from mealpath.services.actors import Actor
from mealpath.services.checkout_service import CheckoutService
from mealpath.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def _get_service(db: Session = Depends(get_db)) -> OrderService:
    """Dependency injector for OrderService."""
    return OrderService(db)


@router.post("/checkout", response_model=OrderResponse, status_code=201)
def checkout(
    data: CheckoutRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> OrderResponse:
    """Turn the caller's cart into a pending order.

    Returns:
        The committed order.

    Raises:
        400 for a negative delivery fee, 409 for an empty cart or
        insufficient stock, 404 when an item no longer exists.
    """
    order = CheckoutService(db).checkout(
        actor.account_id,
        delivery_fee=data.delivery_fee,
        address=data.address,
        phone=data.phone,
        payment_method=data.payment_method,
    )
    return OrderResponse.model_validate(order)


@router.get("", response_model=OrderListResponse)
def list_orders(
    actor: Actor = Depends(get_current_actor),
    service: OrderService = Depends(_get_service),
) -> OrderListResponse:
    """List orders visible to the caller, newest first."""
    orders = service.list_orders(actor)
    return OrderListResponse(
        orders=[OrderResponse.model_validate(o) for o in orders],
        total=len(orders),
    )


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    actor: Actor = Depends(get_current_actor),
    service: OrderService = Depends(_get_service),
) -> OrderResponse:
    """Get one order."""
    return OrderResponse.model_validate(service.get_order(actor, order_id))


@router.patch("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    actor: Actor = Depends(get_current_actor),
    service: OrderService = Depends(_get_service),
) -> OrderResponse:
    """Move an order to a new status (admins may also assign an agent)."""
    order = service.set_status(
        actor, order_id, data.status, assigned_agent_id=data.assigned_agent_id
    )
    return OrderResponse.model_validate(order)
