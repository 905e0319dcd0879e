"""
Discount Strategies
===================
Interchangeable pricing rules applied to an order's base price.

Every strategy is immutable after construction and never returns a
negative price.
"""

from abc import ABC, abstractmethod
from typing import Optional

from config import get_config


class InvalidArgumentError(ValueError):
    """Raised when a discount is constructed with an out-of-range parameter."""
    pass


class DiscountStrategy(ABC):
    """The interface for a discount strategy."""

    @abstractmethod
    def apply_discount(self, base_price: float) -> float:
        pass

    @abstractmethod
    def describe(self) -> str:
        pass

    def discount_amount(self, base_price: float) -> float:
        """Amount taken off the given base price."""
        return base_price - self.apply_discount(base_price)

    def __repr__(self):
        return f"<{type(self).__name__} {self.describe()!r}>"


class NoDiscount(DiscountStrategy):
    """Identity strategy; the default for new orders."""

    def apply_discount(self, base_price: float) -> float:
        return max(0.0, base_price)

    def describe(self) -> str:
        return "No discount"


class PercentageDiscount(DiscountStrategy):
    """Takes a percentage off the base price."""

    def __init__(self, percentage: float):
        if not 0 <= percentage <= 100:
            raise InvalidArgumentError(
                f"Percentage must be between 0 and 100: {percentage}"
            )
        self._percentage = percentage

    @property
    def percentage(self) -> float:
        return self._percentage

    def apply_discount(self, base_price: float) -> float:
        discount = base_price * (self._percentage / 100)
        return max(0.0, base_price - discount)

    def describe(self) -> str:
        return f"{self._percentage:g}% off"


class FixedAmountDiscount(DiscountStrategy):
    """Takes a fixed amount off, never going below zero."""

    def __init__(self, amount: float):
        if not amount >= 0:
            raise InvalidArgumentError(
                f"Discount amount must be non-negative: {amount}"
            )
        self._amount = amount

    @property
    def amount(self) -> float:
        return self._amount

    def apply_discount(self, base_price: float) -> float:
        return max(0.0, base_price - self._amount)

    def describe(self) -> str:
        return f"${self._amount:.2f} off"


class LoyaltyPointsDiscount(DiscountStrategy):
    """
    Redeems loyalty points at a conversion rate (points per currency unit).

    Args:
        points: Points to redeem, non-negative
        conversion_rate: Points per dollar, positive (default 100)
    """

    DEFAULT_CONVERSION_RATE = 100

    def __init__(self, points: float, conversion_rate: float = DEFAULT_CONVERSION_RATE):
        if not points >= 0:
            raise InvalidArgumentError(f"Points must be non-negative: {points}")
        if not conversion_rate > 0:
            raise InvalidArgumentError(
                f"Conversion rate must be positive: {conversion_rate}"
            )
        self._points = points
        self._conversion_rate = conversion_rate

    @classmethod
    def from_config(cls, points: float, conversion_rate: Optional[float] = None) -> "LoyaltyPointsDiscount":
        """Build using the configured conversion rate unless one is given."""
        if conversion_rate is None:
            conversion_rate = get_config().discounts.loyalty_conversion_rate
        return cls(points, conversion_rate)

    @property
    def points(self) -> float:
        return self._points

    @property
    def conversion_rate(self) -> float:
        return self._conversion_rate

    @property
    def value(self) -> float:
        """Currency value of the redeemed points."""
        return self._points / self._conversion_rate

    def apply_discount(self, base_price: float) -> float:
        return max(0.0, base_price - self.value)

    def describe(self) -> str:
        return f"{self._points:g} loyalty points (${self.value:.2f} off)"
