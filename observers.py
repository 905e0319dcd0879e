"""
Order Observers
===============
Reactions to order state changes.

Each observer receives (order, new_state, old_state) synchronously, after
the order has already moved to new_state. Observers are independent of
each other and must not trigger transitions on the order they observe.

Kitchen, customer and delivery integrations are simulated by logging.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Protocol, TYPE_CHECKING

import structlog
from prometheus_client import Counter, Histogram

from config import get_config

if TYPE_CHECKING:
    from order import Order


# ============================================================================
# METRICS
# ============================================================================

orders_completed = Counter(
    'orders_completed_total',
    'Completed orders'
)
order_revenue = Histogram(
    'order_revenue_dollars',
    'Final price of completed orders'
)


class LogSink(Protocol):
    """Anything with an info(text) method, e.g. a structlog logger."""

    def info(self, message: str, *args: Any, **kwargs: Any) -> Any:
        ...


class OrderObserver(ABC):
    """Receives order state change notifications."""

    def __init__(self, log_sink: Optional[LogSink] = None):
        self.log_sink = log_sink if log_sink is not None else structlog.get_logger(__name__)

    @abstractmethod
    def on_state_changed(self, order: "Order", new_state: str, old_state: str) -> None:
        pass


class KitchenObserver(OrderObserver):
    """Tells the kitchen about new and finished orders."""

    def on_state_changed(self, order: "Order", new_state: str, old_state: str) -> None:
        if new_state == "Confirmed":
            self.log_sink.info(
                f"[KITCHEN] New order received for preparation! Order #{order.order_id}"
            )
            self.log_sink.info(f"[KITCHEN] Items: {order.get_details()}")

        if new_state == "Ready":
            self.log_sink.info(
                f"[KITCHEN] Order #{order.order_id} prepared and ready for pickup!"
            )


class CustomerNotificationObserver(OrderObserver):
    """Sends one customer message per entered state."""

    MESSAGES = {
        "Confirmed": 'Your order #{order_id} has been confirmed!',
        "Preparing": 'Your order #{order_id} is being prepared...',
        "Ready": 'Your order #{order_id} is ready for pickup!',
        "Completed": 'Thank you! Order #{order_id} completed. Enjoy your meal!',
    }

    def on_state_changed(self, order: "Order", new_state: str, old_state: str) -> None:
        template = self.MESSAGES.get(new_state)
        if template is None:
            return
        message = template.format(order_id=order.order_id)
        self.log_sink.info(f'[CUSTOMER] "{message}"')


class AnalyticsObserver(OrderObserver):
    """
    Counts transitions and completed orders.

    Counts are per observer instance; the Prometheus collectors are
    process-wide.
    """

    def __init__(self, log_sink: Optional[LogSink] = None):
        super().__init__(log_sink)
        self._state_transitions = 0
        self._completed_orders = 0
        self._revenue = 0.0

    def on_state_changed(self, order: "Order", new_state: str, old_state: str) -> None:
        self._state_transitions += 1

        if new_state == "Completed":
            self._completed_orders += 1
            revenue = order.get_final_price()
            self._revenue += revenue

            orders_completed.inc()
            order_revenue.observe(revenue)

            self.log_sink.info(
                f"[ANALYTICS] Order completed | Total completed: {self._completed_orders} "
                f"| Revenue: ${revenue:.2f}"
            )

        self.log_sink.info(
            f"[ANALYTICS] State transition: {old_state} -> {new_state} "
            f"| Total transitions: {self._state_transitions}"
        )

    def get_metrics(self) -> Dict[str, Any]:
        return {
            "state_transitions": self._state_transitions,
            "completed_orders": self._completed_orders,
            "revenue": round(self._revenue, 2),
        }


class DeliveryObserver(OrderObserver):
    """Schedules delivery once an order is ready."""

    def __init__(self, log_sink: Optional[LogSink] = None, estimate: Optional[str] = None):
        super().__init__(log_sink)
        self.estimate = estimate if estimate is not None else get_config().delivery.estimate

    def on_state_changed(self, order: "Order", new_state: str, old_state: str) -> None:
        if new_state == "Ready":
            self.log_sink.info(f"[DELIVERY] Delivery scheduled for order #{order.order_id}")
            self.log_sink.info(f"[DELIVERY] Estimated delivery time: {self.estimate}")

        if new_state == "Completed":
            self.log_sink.info(f"[DELIVERY] Order #{order.order_id} delivered successfully!")
