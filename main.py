"""
Order Lifecycle Demo
====================
Walks an order through its lifecycle, discount strategies and observer
notifications, printing what happens along the way.

Usage:
    python main.py
"""

import logging
import sys

import structlog
from prometheus_client import start_http_server

from config import ConfigurationError, get_config, is_feature_enabled
from discounts import FixedAmountDiscount, LoyaltyPointsDiscount, PercentageDiscount
from menu import MealCombo, MenuItem, make_drink, make_fries
from observers import (
    AnalyticsObserver,
    CustomerNotificationObserver,
    DeliveryObserver,
    KitchenObserver,
)
from order import Order, create_order
from order_state import InvalidTransitionError


logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Configure stdlib logging and structlog with the same level."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
    )


def _section(title: str) -> None:
    print("\n" + title)
    print("-" * 70)


def run_lifecycle_demo(burger: MenuItem) -> Order:
    """Valid lifecycle followed by two rejected transitions."""
    _section("STATE: Order Lifecycle")

    order = create_order(burger)
    print(f"  Created: {order.get_details()}")

    for step in (order.confirm, order.prepare, order.ready, order.complete):
        step()
        print(f"    -> {order.get_status()}: {order.get_details()}")

    print("  Attempting invalid transition (prepare on completed order):")
    try:
        order.prepare()
    except InvalidTransitionError as e:
        print(f"    x Error caught: {e}")

    second = create_order(MenuItem("Zinger Burger", 4.79), "KFC")
    print(f"  Created second order: {second.get_details()}")
    print("  Attempting to skip confirmation:")
    try:
        second.prepare()
    except InvalidTransitionError as e:
        print(f"    x Error caught: {e}")
    print(f"    Current status: {second.get_status()}")

    return order


def run_discount_demo(burger: MenuItem) -> Order:
    """Swap strategies on one order and show the resulting prices."""
    _section("STRATEGY: Discount Strategies")

    combo = MealCombo("Value Meal")
    combo.add(burger)
    combo.add(make_fries("Large"))
    combo.add(make_drink("Coke", "Large"))

    order = create_order(combo)
    print(f"  Created order: {order.get_details()}")
    print(f"    Base price: ${order.get_base_price():.2f}")

    strategies = [
        ("15% off", PercentageDiscount(15)),
        ("$3 off", FixedAmountDiscount(3.00)),
        ("250 loyalty points", LoyaltyPointsDiscount.from_config(250)),
    ]
    for label, strategy in strategies:
        order.set_discount_strategy(strategy)
        print(f"    -> With {label}: {order.get_details()}")
        print(f"       Final price: ${order.get_final_price():.2f}")

    order.confirm()
    print(f"    Order confirmed with discount: {order.get_details()}")

    return order


def run_observer_demo(burger: MenuItem) -> AnalyticsObserver:
    """Attach every observer and run a full lifecycle."""
    _section("OBSERVER: Event Notifications")

    analytics = AnalyticsObserver()
    order = create_order(burger)
    for observer in (KitchenObserver(), CustomerNotificationObserver(), analytics, DeliveryObserver()):
        order.attach(observer)

    order.confirm()
    order.prepare()
    order.ready()
    order.complete()

    metrics = analytics.get_metrics()
    print("  Analytics Summary:")
    print(f"    Total state transitions tracked: {metrics['state_transitions']}")
    print(f"    Total completed orders: {metrics['completed_orders']}")
    print(f"    Revenue: ${metrics['revenue']:.2f}")

    return analytics


def main() -> int:
    try:
        config = get_config()
    except ConfigurationError as e:
        print(f"Configuration Error: {e}")
        return 1

    configure_logging(config.core.log_level)

    if is_feature_enabled("metrics_server"):
        start_http_server(config.features.metrics_port)
        logger.info(f"Metrics server listening on port {config.features.metrics_port}")

    print("=" * 70)
    print("FAST FOOD ORDERS - Order Lifecycle Engine")
    print("=" * 70)

    burger = MenuItem("Big Mac", 5.99)
    run_lifecycle_demo(burger)
    run_discount_demo(burger)
    run_observer_demo(burger)

    return 0


if __name__ == "__main__":
    sys.exit(main())
