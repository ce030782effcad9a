"""
Order lifecycle: creation rules, identifier assignment and status transitions.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterator, Optional, Tuple
from uuid import uuid4

from inspectflow.core.errors import (
    InvalidTransitionError,
    OrderIdExhaustedError,
    OrderValidationError,
    RoleNotPermittedError,
)
from inspectflow.schemas.common import Role
from inspectflow.schemas.orders import OrderRead, OrderStatus

logger = logging.getLogger(__name__)

ORDER_ID_LENGTH = 8
MAX_ID_ATTEMPTS = 20

# Allowed single-step transitions and the roles that may trigger them.
# IN_PROGRESS -> DONE is held to inspectors, who co-sign the report.
TRANSITIONS: Dict[Tuple[OrderStatus, OrderStatus], frozenset] = {
    (OrderStatus.QUEUED, OrderStatus.IN_PROGRESS): frozenset({Role.OPERATOR, Role.INSPECTOR}),
    (OrderStatus.IN_PROGRESS, OrderStatus.DONE): frozenset({Role.INSPECTOR}),
}


# PUBLIC_INTERFACE
def authorize_create(actor_role: Role) -> None:
    """Only inspectors open new orders."""
    if actor_role != Role.INSPECTOR:
        logger.warning("Order creation refused for role %s", actor_role)
        raise RoleNotPermittedError("create orders", actor_role)


# PUBLIC_INTERFACE
def validate_new_order(part_number: Optional[str], required_thread: Optional[str]) -> Tuple[str, str]:
    """
    Check required order fields and return them stripped.

    Raises:
        OrderValidationError: with a message per missing field.
    """
    part = (part_number or "").strip()
    thread = (required_thread or "").strip()
    problems = {}
    if not part:
        problems["part_number"] = "Part number is required"
    if not thread:
        problems["required_thread"] = "Required thread is required"
    if problems:
        raise OrderValidationError(problems)
    return part, thread


def order_id_candidates(attempts: int = MAX_ID_ATTEMPTS) -> Iterator[str]:
    """Short opaque upper-case hex ids drawn from uuid4."""
    for _ in range(attempts):
        yield uuid4().hex[:ORDER_ID_LENGTH].upper()


# PUBLIC_INTERFACE
def new_order_id(taken: Callable[[str], bool], attempts: int = MAX_ID_ATTEMPTS) -> str:
    """
    Generate an order id that `taken` reports as unused.

    Raises:
        OrderIdExhaustedError: every candidate was taken.
    """
    for candidate in order_id_candidates(attempts):
        if not taken(candidate):
            return candidate
    raise OrderIdExhaustedError(attempts)


# PUBLIC_INTERFACE
def check_transition(order_id: str, current: OrderStatus, target: OrderStatus, actor_role: Role) -> None:
    """
    Enforce forward-only, single-step status changes and the role allowed to make them.

    Raises:
        InvalidTransitionError: target is not the next state.
        RoleNotPermittedError: the role may not make this transition.
    """
    roles = TRANSITIONS.get((current, target))
    if roles is None:
        raise InvalidTransitionError(order_id, current, target)
    if actor_role not in roles:
        raise RoleNotPermittedError(f"move orders to {target.value}", actor_role)


# PUBLIC_INTERFACE
def advance(order: OrderRead, target: OrderStatus, actor_role: Role) -> OrderRead:
    """Return a copy of `order` moved to `target`, after checking the transition."""
    check_transition(order.id, order.status, target, actor_role)
    logger.info("Order %s: %s -> %s by %s", order.id, order.status.value, target.value, actor_role.value)
    return order.model_copy(update={"status": target})
