"""
Menu Module
===========
Priced, describable items consumed by orders.

The order lifecycle only relies on the PricedItem protocol
(get_price / get_description). The concrete items here cover single
menu items and meal combos built from other items.
"""

import logging
from typing import List, Protocol, runtime_checkable
from dataclasses import dataclass


logger = logging.getLogger(__name__)


# ============================================================================
# PRICED ITEM PROTOCOL
# ============================================================================

@runtime_checkable
class PricedItem(Protocol):
    """Anything an order can be placed for."""

    def get_price(self) -> float:
        ...

    def get_description(self) -> str:
        ...


# ============================================================================
# SINGLE ITEMS
# ============================================================================

@dataclass(frozen=True)
class MenuItem:
    """
    Single menu item with a fixed price.

    Price must be non-negative.
    """
    name: str
    price: float

    def __post_init__(self):
        if self.price < 0:
            raise ValueError(f"Menu item price must be non-negative: {self.price}")

    def get_price(self) -> float:
        return self.price

    def get_description(self) -> str:
        return self.name


FRIES_PRICES = {
    "Small": 1.99,
    "Regular": 2.49,
    "Large": 3.49,
}

DRINK_PRICES = {
    "Small": 1.29,
    "Medium": 1.59,
    "Large": 1.89,
}


def make_fries(size: str = "Regular") -> MenuItem:
    """Fries priced by size."""
    if size not in FRIES_PRICES:
        raise ValueError(f"Unknown fries size: {size}")
    return MenuItem(name=f"{size} Fries", price=FRIES_PRICES[size])


def make_drink(kind: str = "Coke", size: str = "Medium") -> MenuItem:
    """Drink priced by size."""
    if size not in DRINK_PRICES:
        raise ValueError(f"Unknown drink size: {size}")
    return MenuItem(name=f"{size} {kind}", price=DRINK_PRICES[size])


# ============================================================================
# MEAL COMBO (Composite)
# ============================================================================

class MealCombo:
    """
    Meal combo made of other priced items.

    Combos may contain other combos; price is the sum of all children.
    """

    def __init__(self, name: str):
        self.name = name
        self._items: List[PricedItem] = []

    def add(self, item: PricedItem) -> None:
        """
        Add an item or nested combo.

        Raises:
            ValueError: If the item is this combo or already contains it
        """
        if item is self or (isinstance(item, MealCombo) and item._contains(self)):
            raise ValueError(f"Cannot add {self.name} to itself")
        self._items.append(item)
        logger.debug(f"Added {item.get_description()} to {self.name}")

    def remove(self, item: PricedItem) -> None:
        if item in self._items:
            self._items.remove(item)
            logger.debug(f"Removed {item.get_description()} from {self.name}")

    def _contains(self, combo: "MealCombo") -> bool:
        for item in self._items:
            if item is combo:
                return True
            if isinstance(item, MealCombo) and item._contains(combo):
                return True
        return False

    def get_items(self) -> List[PricedItem]:
        return list(self._items)

    def get_item_count(self) -> int:
        return len(self._items)

    def get_price(self) -> float:
        return sum(item.get_price() for item in self._items)

    def get_description(self) -> str:
        if not self._items:
            return f"{self.name} (empty)"

        descriptions = ", ".join(item.get_description() for item in self._items)
        return f"{self.name} [{descriptions}]"
