"""
Order Module
============
Order aggregate: lifecycle state, discount strategy and observers.

Guarantees:
- State is always one of the OrderState members
- Transitions are decided by the current state only
- Rejected transitions leave the order untouched
- Observers are notified once per transition, in attachment order,
  after the new state is visible
- Final price is never negative

Observers must not call transition methods on the same order from inside
their callback; re-entrant transitions interleave notifications
unpredictably and are not supported.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import structlog
from prometheus_client import Counter

from config import get_default_restaurant
from discounts import DiscountStrategy, NoDiscount
from menu import PricedItem
from observers import LogSink, OrderObserver
from order_state import INITIAL_STATE, OrderState


# ============================================================================
# METRICS
# ============================================================================

orders_created = Counter(
    'orders_created_total',
    'Orders created'
)
order_state_transitions = Counter(
    'order_state_transitions_total',
    'Order state transitions',
    ['from_state', 'to_state']
)
order_discount_changes = Counter(
    'order_discount_changes_total',
    'Discount strategy changes',
    ['strategy']
)


# ============================================================================
# ORDER
# ============================================================================

class Order:
    """
    Single order for one priced item at one restaurant.

    Lifecycle:
    PENDING -> CONFIRMED -> PREPARING -> READY -> COMPLETED
    """

    def __init__(
        self,
        item: PricedItem,
        restaurant: str,
        log_sink: Optional[LogSink] = None
    ):
        self._order_id = f"ORD-{uuid.uuid4().hex[:12].upper()}"
        self._item = item
        self._restaurant = restaurant
        self._created_at = datetime.now(timezone.utc)
        self._log_sink = log_sink if log_sink is not None else structlog.get_logger(__name__)

        self._state = INITIAL_STATE
        self._state_history: List[Tuple[OrderState, datetime]] = [
            (INITIAL_STATE, self._created_at)
        ]
        self._discount_strategy: DiscountStrategy = NoDiscount()
        self._observers: List[OrderObserver] = []

        orders_created.inc()

        self._log_sink.info(
            f"Order {self._order_id} created at {restaurant} - "
            f"Status: {self._state.state_name}"
        )

    # ========================================================================
    # READ-ONLY QUERIES
    # ========================================================================

    @property
    def order_id(self) -> str:
        return self._order_id

    @property
    def item(self) -> PricedItem:
        return self._item

    @property
    def restaurant(self) -> str:
        return self._restaurant

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def state(self) -> OrderState:
        return self._state

    @property
    def discount_strategy(self) -> DiscountStrategy:
        return self._discount_strategy

    @property
    def observers(self) -> Tuple[OrderObserver, ...]:
        return tuple(self._observers)

    @property
    def log_sink(self) -> LogSink:
        return self._log_sink

    def get_status(self) -> str:
        """Current state label, e.g. 'Pending'."""
        return self._state.state_name

    # ========================================================================
    # TRANSITIONS
    # ========================================================================

    def confirm(self) -> None:
        self._state.confirm(self)

    def prepare(self) -> None:
        self._state.prepare(self)

    def ready(self) -> None:
        self._state.ready(self)

    def complete(self) -> None:
        self._state.complete(self)

    def cancel(self) -> None:
        self._state.cancel(self)

    def _set_state(self, new_state: OrderState) -> None:
        """
        Install a successor state and notify observers.

        Only OrderState handlers call this; callers go through the
        transition methods so the current state stays in charge.
        """
        old_state = self._state
        self._state = new_state
        self._state_history.append((new_state, datetime.now(timezone.utc)))

        order_state_transitions.labels(
            from_state=old_state.state_name,
            to_state=new_state.state_name
        ).inc()

        self._log_sink.info(
            f"Order {self._order_id} transitioned to: {new_state.state_name}"
        )

        self._notify_observers(new_state.state_name, old_state.state_name)

    # ========================================================================
    # OBSERVERS
    # ========================================================================

    def attach(self, observer: OrderObserver) -> None:
        """Attach an observer; attaching the same object twice is a no-op."""
        if any(existing is observer for existing in self._observers):
            return
        self._observers.append(observer)
        self._log_sink.info(f"Observer attached to order {self._order_id}")

    def detach(self, observer: OrderObserver) -> None:
        """Detach an observer; detaching an unknown observer is a no-op."""
        for index, existing in enumerate(self._observers):
            if existing is observer:
                del self._observers[index]
                self._log_sink.info(f"Observer detached from order {self._order_id}")
                return

    def _notify_observers(self, new_state: str, old_state: str) -> None:
        # Snapshot so attach/detach inside a callback does not affect this round
        for observer in list(self._observers):
            observer.on_state_changed(self, new_state, old_state)

    # ========================================================================
    # PRICING
    # ========================================================================

    def set_discount_strategy(self, strategy: DiscountStrategy) -> None:
        """Swap the discount strategy; allowed in any state."""
        self._discount_strategy = strategy
        order_discount_changes.labels(strategy=type(strategy).__name__).inc()
        self._log_sink.info(f"Applied discount: {strategy.describe()}")

    def get_base_price(self) -> float:
        return self._item.get_price()

    def get_final_price(self) -> float:
        return max(0.0, self._discount_strategy.apply_discount(self.get_base_price()))

    # ========================================================================
    # PROJECTIONS
    # ========================================================================

    def get_details(self) -> str:
        """Human-readable one-line summary."""
        base_price = self.get_base_price()
        final_price = self.get_final_price()

        discount_info = ""
        if final_price < base_price:
            discount_info = (
                f" | Discount: {self._discount_strategy.describe()}"
                f" | Final: ${final_price:.2f}"
            )

        return (
            f"Order #{self._order_id} | {self._restaurant} | "
            f"{self._item.get_description()} | Base: ${base_price:.2f}"
            f"{discount_info} | Status: {self.get_status()}"
        )

    def get_history(self) -> List[Dict[str, Any]]:
        """Get state transition history."""
        now = datetime.now(timezone.utc)
        return [
            {
                "state": state.state_name,
                "timestamp": ts.isoformat(),
                "duration_seconds": (
                    (self._state_history[i + 1][1] - ts).total_seconds()
                    if i + 1 < len(self._state_history)
                    else (now - ts).total_seconds()
                )
            }
            for i, (state, ts) in enumerate(self._state_history)
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Export to dictionary."""
        return {
            "order_id": self._order_id,
            "restaurant": self._restaurant,
            "item": self._item.get_description(),
            "base_price": self.get_base_price(),
            "final_price": self.get_final_price(),
            "discount": self._discount_strategy.describe(),
            "status": self.get_status(),
            "is_terminal": self._state.is_terminal,
            "created_at": self._created_at.isoformat(),
            "observer_count": len(self._observers),
            "history": self.get_history(),
        }

    def __repr__(self):
        return f"<Order order_id={self._order_id} state={self._state.state_name}>"


def create_order(
    item: PricedItem,
    restaurant: Optional[str] = None,
    log_sink: Optional[LogSink] = None
) -> Order:
    """Create an order, defaulting to the configured restaurant."""
    return Order(item, restaurant or get_default_restaurant(), log_sink=log_sink)
