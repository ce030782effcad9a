"""
Domain exceptions for the inspection engine.

Exception hierarchy:
    InspectFlowError (base)
    ├── ValidationFailedError          - bad caller input (422)
    │   ├── OrderValidationError       - missing/invalid order fields
    │   └── PacketValidationError      - packet requested without an order id
    ├── RoleNotPermittedError          - actor role may not perform the action (403)
    ├── NotFoundError                  - referenced entity does not exist (404)
    │   ├── OrderNotFoundError
    │   ├── GaugeNotFoundError
    │   └── GaugeNotSelectedError      - gauge has no use record on the packet
    ├── ConflictError                  - request conflicts with current state (409)
    │   ├── GaugeIneligibleError       - expired or broken gauge
    │   ├── InvalidTransitionError     - order status may only move forward
    │   ├── DuplicateOrderError        - caller-supplied order id already taken
    │   └── OrderIdExhaustedError      - could not find a free order id
    └── StoreUnavailableError          - the order/gauge/packet store failed (503)

Malformed measurement text is not an exception: the validator reports it as a
field-level flag so the rest of the form keeps working.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class InspectFlowError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationFailedError(InspectFlowError):
    """Caller input failed validation."""


class OrderValidationError(ValidationFailedError):
    """
    One or more order fields are missing or invalid.

    `details["fields"]` maps each offending field name to a message.
    """

    def __init__(self, fields: Dict[str, str]):
        super().__init__("Invalid order", {"fields": dict(fields)})
        self.fields = dict(fields)


class PacketValidationError(ValidationFailedError):
    """A packet was requested without a usable order id."""


class RoleNotPermittedError(InspectFlowError):
    """The acting role is not allowed to perform the requested action."""

    def __init__(self, action: str, actor_role: Any):
        role = getattr(actor_role, "value", actor_role)
        super().__init__(
            f"Role {role} may not {action}",
            {"action": action, "actor_role": role},
        )
        self.action = action
        self.actor_role = actor_role


class NotFoundError(InspectFlowError):
    """Referenced entity does not exist."""


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found", {"order_id": order_id})
        self.order_id = order_id


class GaugeNotFoundError(NotFoundError):
    def __init__(self, gauge_id: str):
        super().__init__(f"Gauge {gauge_id} not found", {"gauge_id": gauge_id})
        self.gauge_id = gauge_id


class GaugeNotSelectedError(NotFoundError):
    def __init__(self, gauge_id: str):
        super().__init__(
            f"Gauge {gauge_id} has not been recorded as used on this packet",
            {"gauge_id": gauge_id},
        )
        self.gauge_id = gauge_id


class ConflictError(InspectFlowError):
    """Request conflicts with the current state of the entity."""


class GaugeIneligibleError(ConflictError):
    """
    Attempt to record use of a gauge that is expired or flagged broken.

    The UI disables these gauges, but the engine re-checks at call time.
    """

    def __init__(self, gauge_id: str, status: Any):
        value = getattr(status, "value", status)
        super().__init__(
            f"Gauge {gauge_id} is {value} and cannot be used",
            {"gauge_id": gauge_id, "status": value},
        )
        self.gauge_id = gauge_id
        self.status = status


class InvalidTransitionError(ConflictError):
    def __init__(self, order_id: str, current: Any, target: Any):
        cur = getattr(current, "value", current)
        tgt = getattr(target, "value", target)
        super().__init__(
            f"Order {order_id} cannot move from {cur} to {tgt}",
            {"order_id": order_id, "current": cur, "target": tgt},
        )
        self.current = current
        self.target = target


class DuplicateOrderError(ConflictError):
    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} already exists", {"order_id": order_id})
        self.order_id = order_id


class OrderIdExhaustedError(ConflictError):
    def __init__(self, attempts: int):
        super().__init__(
            "Could not generate a unique order id",
            {"attempts": attempts},
        )


class StoreUnavailableError(InspectFlowError):
    """
    The external order/gauge/packet store could not be reached.

    Surfaced to users as an advisory message; pure computations never raise it.
    """

    def __init__(self, store: str, message: Optional[str] = None):
        super().__init__(
            message or f"Could not reach the {store} store. Is the database running?",
            {"store": store},
        )
        self.store = store
