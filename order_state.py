"""
Order State Machine
===================
Lifecycle states for a single order.

State flow:
    PENDING -> CONFIRMED -> PREPARING -> READY -> COMPLETED

Every (state, event) pair has exactly one outcome:
- advance: the order moves to a successor state
- hold: the request is accepted but the state stays put
  (cancel from Pending, Confirmed or Preparing)
- reject: InvalidTransitionError, order untouched
"""

import logging
from enum import Enum
from typing import Dict, FrozenSet, Tuple, TYPE_CHECKING

from prometheus_client import Counter

if TYPE_CHECKING:
    from order import Order

logger = logging.getLogger(__name__)


# ============================================================================
# METRICS
# ============================================================================

order_transitions_rejected = Counter(
    'order_transitions_rejected_total',
    'Rejected order transition requests',
    ['state', 'event']
)


# ============================================================================
# EVENTS & ERRORS
# ============================================================================

class OrderEvent(Enum):
    """Transition requests an order accepts."""
    CONFIRM = "confirm"
    PREPARE = "prepare"
    READY = "ready"
    COMPLETE = "complete"
    CANCEL = "cancel"


class InvalidTransitionError(Exception):
    """Raised when the current state does not allow the requested event."""

    def __init__(self, state_name: str, event: str, message: str):
        super().__init__(message)
        self.state_name = state_name
        self.event = event


# ============================================================================
# ORDER STATE
# ============================================================================

class OrderState(Enum):
    """
    Order lifecycle states.

    Members are stateless and shared; the handlers below take the order
    they act on.
    """
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    PREPARING = "Preparing"
    READY = "Ready"
    COMPLETED = "Completed"

    @property
    def state_name(self) -> str:
        """Stable display label, also used for observer matching."""
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self is OrderState.COMPLETED

    def allowed_events(self) -> FrozenSet[OrderEvent]:
        """Events this state accepts (advancing or holding)."""
        return frozenset(_ADVANCES[self]) | frozenset(_HOLDS[self])

    def confirm(self, order: "Order") -> None:
        self.handle(OrderEvent.CONFIRM, order)

    def prepare(self, order: "Order") -> None:
        self.handle(OrderEvent.PREPARE, order)

    def ready(self, order: "Order") -> None:
        self.handle(OrderEvent.READY, order)

    def complete(self, order: "Order") -> None:
        self.handle(OrderEvent.COMPLETE, order)

    def cancel(self, order: "Order") -> None:
        self.handle(OrderEvent.CANCEL, order)

    def handle(self, event: OrderEvent, order: "Order") -> None:
        """
        Resolve an event against this state.

        Args:
            event: Requested transition
            order: Order to install the successor on

        Raises:
            InvalidTransitionError: If this state rejects the event, or the
                order is not currently in this state
        """
        if order.state is not self:
            raise InvalidTransitionError(
                order.state.state_name,
                event.value,
                f"Order is in {order.state.state_name} state, not {self.value}."
            )

        advance = _ADVANCES[self].get(event)
        if advance is not None:
            successor, message = advance
            order.log_sink.info(message)
            order._set_state(successor)
            return

        hold_message = _HOLDS[self].get(event)
        if hold_message is not None:
            order.log_sink.info(hold_message)
            return

        message = _REJECTIONS[self][event]
        logger.warning(
            f"Rejected {event.value} on order {order.order_id} "
            f"in {self.value} state: {message}"
        )
        order_transitions_rejected.labels(
            state=self.value,
            event=event.value
        ).inc()
        raise InvalidTransitionError(self.value, event.value, message)


# ============================================================================
# TRANSITION TABLES
# ============================================================================

_ADVANCES: Dict[OrderState, Dict[OrderEvent, Tuple[OrderState, str]]] = {
    OrderState.PENDING: {
        OrderEvent.CONFIRM: (
            OrderState.CONFIRMED,
            "Order confirmed. Transitioning to Confirmed state."
        ),
    },
    OrderState.CONFIRMED: {
        OrderEvent.PREPARE: (
            OrderState.PREPARING,
            "Order sent to kitchen. Transitioning to Preparing state."
        ),
    },
    OrderState.PREPARING: {
        OrderEvent.READY: (
            OrderState.READY,
            "Order preparation complete. Transitioning to Ready state."
        ),
    },
    OrderState.READY: {
        OrderEvent.COMPLETE: (
            OrderState.COMPLETED,
            "Order picked up/delivered. Transitioning to Completed state."
        ),
    },
    OrderState.COMPLETED: {},
}

# Accepted without a state change; there is no cancelled state.
_HOLDS: Dict[OrderState, Dict[OrderEvent, str]] = {
    OrderState.PENDING: {
        OrderEvent.CANCEL: "Order cancelled from Pending state.",
    },
    OrderState.CONFIRMED: {
        OrderEvent.CANCEL: "Order cancelled from Confirmed state.",
    },
    OrderState.PREPARING: {
        OrderEvent.CANCEL: "Order cancelled from Preparing state (rare case).",
    },
    OrderState.READY: {},
    OrderState.COMPLETED: {},
}

_REJECTIONS: Dict[OrderState, Dict[OrderEvent, str]] = {
    OrderState.PENDING: {
        OrderEvent.PREPARE: "Cannot prepare a pending order. Please confirm the order first.",
        OrderEvent.READY: "Cannot mark a pending order as ready. Please confirm and prepare first.",
        OrderEvent.COMPLETE: "Cannot complete a pending order. Please confirm first.",
    },
    OrderState.CONFIRMED: {
        OrderEvent.CONFIRM: "Order is already confirmed.",
        OrderEvent.READY: "Cannot mark order as ready. It must be prepared first.",
        OrderEvent.COMPLETE: "Cannot complete an unfinished order. Please prepare first.",
    },
    OrderState.PREPARING: {
        OrderEvent.CONFIRM: "Order is already confirmed and being prepared.",
        OrderEvent.PREPARE: "Order is already being prepared.",
        OrderEvent.COMPLETE: "Cannot complete an order that is still being prepared.",
    },
    OrderState.READY: {
        OrderEvent.CONFIRM: "Order is already confirmed and ready.",
        OrderEvent.PREPARE: "Order is already prepared.",
        OrderEvent.READY: "Order is already marked as ready.",
        OrderEvent.CANCEL: "Cannot cancel an order that is already ready for pickup/delivery.",
    },
    OrderState.COMPLETED: {
        OrderEvent.CONFIRM: "Order is already completed.",
        OrderEvent.PREPARE: "Order is already completed.",
        OrderEvent.READY: "Order is already completed.",
        OrderEvent.COMPLETE: "Order is already completed.",
        OrderEvent.CANCEL: "Cannot cancel a completed order.",
    },
}

INITIAL_STATE = OrderState.PENDING
