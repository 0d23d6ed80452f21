"""Order state machine with role-aware authorization.

Lifecycle:
    pending -> confirmed -> preparing -> out_for_delivery -> delivered
    any non-terminal state -> cancelled

Admins may move an order to any status and (re)assign its delivery agent.
A delivery agent may only move orders assigned to them, and only to
out_for_delivery or delivered. Delivered and cancelled orders are final.
"""

import logging

from sqlalchemy.orm import Session

from mealpath.db.models import Account, AccountRole, Order, OrderStatus, utc_now_iso
from mealpath.errors import (
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)
from mealpath.services.actors import Actor

logger = logging.getLogger(__name__)

TERMINAL_STATES = frozenset({OrderStatus.delivered.value, OrderStatus.cancelled.value})

AGENT_TARGETS = frozenset({OrderStatus.out_for_delivery.value, OrderStatus.delivered.value})


class OrderService:
    """Reads orders and applies status changes."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def set_status(
        self,
        actor: Actor,
        order_id: str,
        status: str,
        assigned_agent_id: str | None = None,
    ) -> Order:
        """Move an order to ``status``.

        Checks run in this order: unknown status, missing order,
        authorization, terminal state.

        Args:
            actor: The caller.
            order_id: Order to update.
            status: Target status.
            assigned_agent_id: Admin only; delivery agent to assign.

        Returns:
            The updated order.

        Raises:
            InvalidInputError: Unknown status or non-agent assignee.
            NotFoundError: Order does not exist.
            ForbiddenError: Actor may not make this change.
            InvalidStateError: Order is delivered or cancelled.
        """
        valid = {s.value for s in OrderStatus}
        if status not in valid:
            raise InvalidInputError(f"Invalid status: {status}", field="status")

        order = self.db.get(Order, order_id)
        if order is None:
            raise NotFoundError("Order", order_id)

        if actor.is_admin:
            if assigned_agent_id is not None:
                self._require_agent(assigned_agent_id)
        elif actor.is_delivery_agent:
            if order.assigned_agent_id != actor.account_id:
                raise ForbiddenError("Order is not assigned to you")
            if status not in AGENT_TARGETS:
                raise ForbiddenError(f"Delivery agents cannot set status '{status}'")
            if assigned_agent_id is not None and assigned_agent_id != order.assigned_agent_id:
                raise ForbiddenError("Only admins can assign delivery agents")
        else:
            raise ForbiddenError("Not allowed to update order status")

        if order.status in TERMINAL_STATES:
            raise InvalidStateError(f"Order {order_id} is already {order.status}")

        previous = order.status
        order.status = status
        if actor.is_admin and assigned_agent_id is not None:
            order.assigned_agent_id = assigned_agent_id
        order.updated_at = utc_now_iso()
        self.db.commit()
        self.db.refresh(order)

        logger.info(
            "Order %s: %s -> %s by %s (%s)",
            order_id, previous, status, actor.account_id, actor.role,
        )
        return order

    def get_order(self, actor: Actor, order_id: str) -> Order:
        """Fetch an order visible to the actor.

        Raises:
            NotFoundError: Order does not exist.
            ForbiddenError: Actor is not the owner, the assigned agent or an admin.
        """
        order = self.db.get(Order, order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        if actor.is_admin:
            return order
        if order.account_id == actor.account_id:
            return order
        if actor.is_delivery_agent and order.assigned_agent_id == actor.account_id:
            return order
        raise ForbiddenError("Forbidden")

    def list_orders(self, actor: Actor) -> list[Order]:
        """Orders visible to the actor, newest first."""
        query = self.db.query(Order)
        if actor.is_delivery_agent:
            query = query.filter(Order.assigned_agent_id == actor.account_id)
        elif not actor.is_admin:
            query = query.filter(Order.account_id == actor.account_id)
        return query.order_by(Order.created_at.desc()).all()

    def _require_agent(self, account_id: str) -> None:
        agent = self.db.get(Account, account_id)
        if agent is None or agent.role != AccountRole.delivery_agent.value:
            raise InvalidInputError(
                "Assignee must be a delivery agent account", field="assigned_agent_id"
            )
