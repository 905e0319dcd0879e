"""
Shared fixtures for the order lifecycle tests.
"""
import pytest

import config
from menu import MenuItem
from order import Order
from order_state import OrderState


class RecordingSink:
    """Log sink that keeps every message for assertions."""

    def __init__(self):
        self.messages = []

    def info(self, message, *args, **kwargs):
        self.messages.append(message)


class RecordingObserver:
    """Observer that records every notification into a shared journal."""

    def __init__(self, name, journal=None):
        self.name = name
        self.journal = journal if journal is not None else []
        self.calls = []

    def on_state_changed(self, order, new_state, old_state):
        self.calls.append((new_state, old_state, order.get_status()))
        self.journal.append(self.name)


# Methods that move a fresh order into each state
PATH_TO_STATE = {
    OrderState.PENDING: [],
    OrderState.CONFIRMED: ["confirm"],
    OrderState.PREPARING: ["confirm", "prepare"],
    OrderState.READY: ["confirm", "prepare", "ready"],
    OrderState.COMPLETED: ["confirm", "prepare", "ready", "complete"],
}


def drive_to(order, state):
    for method in PATH_TO_STATE[state]:
        getattr(order, method)()
    return order


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def burger():
    return MenuItem("Big Mac", 5.99)


@pytest.fixture
def make_order(sink, burger):
    def _make(item=None, restaurant="McDonalds"):
        return Order(item or burger, restaurant, log_sink=sink)
    return _make


@pytest.fixture
def fresh_config(monkeypatch):
    """
    Drop the cached configuration so the next access re-reads the
    environment; the original instance is restored afterwards.
    """
    for key in (
        "DEFAULT_RESTAURANT",
        "LOG_LEVEL",
        "LOYALTY_CONVERSION_RATE",
        "DELIVERY_ESTIMATE",
        "ENABLE_METRICS_SERVER",
        "METRICS_PORT",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(config, "_config", None)
    return monkeypatch
