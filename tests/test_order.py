"""
Order Aggregate Tests

Test Categories:
1. Creation and identity
2. Observer attachment and dispatch ordering
3. Pricing with discount strategies
4. Read projections (details, history, export)
5. Logging through the injected and default sinks
"""
import re

import pytest
from prometheus_client import REGISTRY
from structlog.testing import capture_logs

from conftest import RecordingObserver, drive_to
from discounts import FixedAmountDiscount, LoyaltyPointsDiscount, NoDiscount, PercentageDiscount
from menu import MenuItem
from order import Order, create_order
from order_state import InvalidTransitionError, OrderState


# ============================================================================
# CREATION
# ============================================================================

class TestOrderCreation:
    """New orders start Pending with no discount."""

    def test_initial_state(self, make_order):
        order = make_order()

        assert order.get_status() == "Pending"
        assert order.state is OrderState.PENDING
        assert isinstance(order.discount_strategy, NoDiscount)
        assert order.observers == ()

    def test_order_id_format_and_uniqueness(self, make_order):
        ids = {make_order().order_id for _ in range(200)}

        assert len(ids) == 200
        assert all(re.fullmatch(r"ORD-[0-9A-F]{12}", order_id) for order_id in ids)

    def test_order_id_is_stable(self, make_order):
        order = make_order()
        order_id = order.order_id

        drive_to(order, OrderState.COMPLETED)

        assert order.order_id == order_id

    def test_create_order_uses_configured_restaurant(self, fresh_config, sink, burger):
        fresh_config.setenv("DEFAULT_RESTAURANT", "KFC")

        order = create_order(burger, log_sink=sink)

        assert order.restaurant == "KFC"

    def test_create_order_explicit_restaurant(self, sink, burger):
        order = create_order(burger, "Burger King", log_sink=sink)

        assert order.restaurant == "Burger King"

    def test_creation_is_counted_without_restaurant_label(self, make_order):
        before = REGISTRY.get_sample_value("orders_created_total") or 0.0

        make_order(restaurant="Corner Diner")

        assert REGISTRY.get_sample_value("orders_created_total") == before + 1
        assert REGISTRY.get_sample_value(
            "orders_created_total", {"restaurant": "Corner Diner"}
        ) is None


# ============================================================================
# OBSERVERS
# ============================================================================

class TestObserverDispatch:
    """Every attached observer hears every transition once, in order."""

    def test_notified_in_attachment_order(self, make_order):
        journal = []
        observers = [RecordingObserver(name, journal) for name in ("a", "b", "c")]
        order = make_order()
        for observer in observers:
            order.attach(observer)

        order.confirm()

        assert journal == ["a", "b", "c"]

    def test_each_observer_notified_exactly_once_per_transition(self, make_order):
        observer = RecordingObserver("solo")
        order = make_order()
        order.attach(observer)

        drive_to(order, OrderState.COMPLETED)

        assert observer.calls == [
            ("Confirmed", "Pending", "Confirmed"),
            ("Preparing", "Confirmed", "Preparing"),
            ("Ready", "Preparing", "Ready"),
            ("Completed", "Ready", "Completed"),
        ]

    def test_attach_is_idempotent(self, make_order, sink):
        observer = RecordingObserver("dup")
        order = make_order()

        order.attach(observer)
        order.attach(observer)
        order.confirm()

        assert order.observers == (observer,)
        assert len(observer.calls) == 1
        assert sum("Observer attached" in m for m in sink.messages) == 1

    def test_detach_before_transition(self, make_order):
        kept = RecordingObserver("kept")
        dropped = RecordingObserver("dropped")
        order = make_order()
        order.attach(kept)
        order.attach(dropped)

        order.detach(dropped)
        order.confirm()

        assert len(kept.calls) == 1
        assert dropped.calls == []

    def test_detach_unknown_observer_is_noop(self, make_order, sink):
        order = make_order()
        before = list(sink.messages)

        order.detach(RecordingObserver("stranger"))

        assert sink.messages == before

    def test_identity_not_equality(self, make_order):
        class AlwaysEqual(RecordingObserver):
            def __eq__(self, other):
                return True

            __hash__ = object.__hash__

        first, second = AlwaysEqual("first"), AlwaysEqual("second")
        order = make_order()
        order.attach(first)
        order.attach(second)

        assert order.observers == (first, second)

        order.detach(second)
        assert len(order.observers) == 1
        assert order.observers[0] is first

    def test_mutation_during_dispatch_uses_snapshot(self, make_order):
        journal = []
        late = RecordingObserver("late", journal)
        victim = RecordingObserver("victim", journal)

        class Rewirer(RecordingObserver):
            def on_state_changed(self, order, new_state, old_state):
                super().on_state_changed(order, new_state, old_state)
                order.detach(victim)
                order.attach(late)

        order = make_order()
        order.attach(Rewirer("rewirer", journal))
        order.attach(victim)

        order.confirm()

        # victim was in the snapshot, late was not
        assert journal == ["rewirer", "victim"]

        order.prepare()
        assert journal[2:] == ["rewirer", "late"]

    def test_rejected_transition_keeps_observers_and_strategy(self, make_order):
        observer = RecordingObserver("watcher")
        strategy = PercentageDiscount(10)
        order = make_order()
        order.attach(observer)
        order.set_discount_strategy(strategy)

        with pytest.raises(InvalidTransitionError):
            order.ready()

        assert order.observers == (observer,)
        assert order.discount_strategy is strategy
        assert order.get_status() == "Pending"


# ============================================================================
# PRICING
# ============================================================================

class TestOrderPricing:
    """Base and final prices."""

    def test_base_price_is_item_price(self, make_order):
        assert make_order().get_base_price() == 5.99

    def test_no_discount_by_default(self, make_order):
        assert make_order().get_final_price() == 5.99

    def test_percentage_discount(self, make_order):
        order = make_order()
        order.set_discount_strategy(PercentageDiscount(15))

        assert order.get_final_price() == pytest.approx(5.0915)

    def test_fixed_amount_discount(self, make_order):
        order = make_order()
        order.set_discount_strategy(FixedAmountDiscount(3.00))

        assert order.get_final_price() == pytest.approx(2.99)

    def test_fixed_amount_clamped_to_zero(self, make_order):
        order = make_order(MenuItem("Cookie", 1.00))
        order.set_discount_strategy(FixedAmountDiscount(5.00))

        assert order.get_final_price() == 0

    def test_loyalty_points_discount(self, make_order):
        order = make_order()
        order.set_discount_strategy(LoyaltyPointsDiscount(250))

        assert order.get_final_price() == pytest.approx(3.49)

    def test_strategy_swap_allowed_in_any_state(self, make_order):
        order = drive_to(make_order(), OrderState.COMPLETED)

        order.set_discount_strategy(FixedAmountDiscount(1))

        assert order.get_final_price() == pytest.approx(4.99)
        assert order.get_status() == "Completed"

    def test_strategy_swap_does_not_notify(self, make_order):
        observer = RecordingObserver("watcher")
        order = make_order()
        order.attach(observer)

        order.set_discount_strategy(PercentageDiscount(50))

        assert observer.calls == []

    def test_strategy_change_is_logged(self, make_order, sink):
        order = make_order()
        order.set_discount_strategy(FixedAmountDiscount(3))

        assert sink.messages[-1] == "Applied discount: $3.00 off"


# ============================================================================
# PROJECTIONS
# ============================================================================

class TestOrderProjections:
    """Details string, history and export."""

    def test_details_without_discount(self, make_order):
        order = make_order()

        assert order.get_details() == (
            f"Order #{order.order_id} | McDonalds | Big Mac | Base: $5.99 | Status: Pending"
        )

    def test_details_with_discount(self, make_order):
        order = make_order()
        order.set_discount_strategy(FixedAmountDiscount(3))
        order.confirm()

        assert order.get_details() == (
            f"Order #{order.order_id} | McDonalds | Big Mac | Base: $5.99"
            f" | Discount: $3.00 off | Final: $2.99 | Status: Confirmed"
        )

    def test_zero_discount_is_not_shown(self, make_order):
        order = make_order()
        order.set_discount_strategy(PercentageDiscount(0))

        assert "Discount" not in order.get_details()

    def test_history_tracks_transitions(self, make_order):
        order = drive_to(make_order(), OrderState.PREPARING)
        order.cancel()
        order.ready()
        with pytest.raises(InvalidTransitionError):
            order.cancel()

        history = order.get_history()

        assert [entry["state"] for entry in history] == [
            "Pending", "Confirmed", "Preparing", "Ready"
        ]
        assert all(entry["duration_seconds"] >= 0 for entry in history)

    def test_to_dict(self, make_order):
        order = make_order()
        order.set_discount_strategy(PercentageDiscount(10))
        order.attach(RecordingObserver("watcher"))
        order.confirm()

        data = order.to_dict()

        assert data["order_id"] == order.order_id
        assert data["restaurant"] == "McDonalds"
        assert data["item"] == "Big Mac"
        assert data["base_price"] == 5.99
        assert data["final_price"] == pytest.approx(5.391)
        assert data["discount"] == "10% off"
        assert data["status"] == "Confirmed"
        assert data["is_terminal"] is False
        assert data["observer_count"] == 1
        assert len(data["history"]) == 2

    def test_repr(self, make_order):
        order = make_order()

        assert repr(order) == f"<Order order_id={order.order_id} state=Pending>"


# ============================================================================
# LOGGING
# ============================================================================

class TestOrderLogging:
    """Messages go to the injected sink, or structlog by default."""

    def test_creation_logged(self, make_order, sink):
        order = make_order()

        assert sink.messages[0] == (
            f"Order {order.order_id} created at McDonalds - Status: Pending"
        )

    def test_rejection_not_logged_to_sink(self, make_order, sink):
        order = make_order()
        before = list(sink.messages)

        with pytest.raises(InvalidTransitionError):
            order.complete()

        assert sink.messages == before

    def test_default_sink_is_structlog(self, burger):
        with capture_logs() as logs:
            order = Order(burger, "McDonalds")
            order.confirm()

        events = [entry["event"] for entry in logs]
        assert f"Order {order.order_id} created at McDonalds - Status: Pending" in events
        assert f"Order {order.order_id} transitioned to: Confirmed" in events
        assert all(entry["log_level"] == "info" for entry in logs)
