"""Customization option tables shared by pricing, nutrition and inventory deduction.

All multipliers and deltas live here so that the three consumers cannot drift
apart. Bump ``OPTION_TABLES_VERSION`` whenever a value changes; it is echoed
in quote responses so the kiosk can tell which tables priced a cart.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

from boba_pos.core.errors import ValidationError

OPTION_TABLES_VERSION = "2024.1"

SIZES = ("small", "medium", "large")
SUGAR_LEVELS = ("no-sugar", "half-sugar", "normal", "extra-sugar")
ICE_LEVELS = ("less", "regular", "extra")
CATEGORIES = ("milk-tea", "fruit-tea", "specialty")
ORDER_STATUSES = ("pending", "preparing", "ready", "completed", "cancelled")
INITIAL_ORDER_STATUS = "pending"


@dataclass(frozen=True)
class ToppingRule:
    price: Decimal
    ingredient: str
    calories: float
    sugar: float
    protein: float


@dataclass(frozen=True)
class OptionTables:
    version: str
    size_price_delta: Mapping[str, Decimal]
    size_multiplier: Mapping[str, Decimal]
    # Nutrition keeps natural sugar at "no-sugar"; deduction does not.
    sugar_nutrition_multiplier: Mapping[str, Decimal]
    sugar_deduction_multiplier: Mapping[str, Decimal]
    ice_multiplier: Mapping[str, Decimal]
    toppings: Mapping[str, ToppingRule]
    # Ounces per medium drink
    base_usage_oz: Mapping[str, Decimal] = field(default_factory=dict)
    unit_ingredients: tuple[str, ...] = ()
    milk_keyword: str = "milk tea"


def _frozen(values: dict) -> Mapping:
    return MappingProxyType(dict(values))


DEFAULT_TABLES = OptionTables(
    version=OPTION_TABLES_VERSION,
    size_price_delta=_frozen(
        {"small": Decimal("0.00"), "medium": Decimal("0.50"), "large": Decimal("0.75")}
    ),
    size_multiplier=_frozen(
        {"small": Decimal("0.75"), "medium": Decimal("1.0"), "large": Decimal("1.3")}
    ),
    sugar_nutrition_multiplier=_frozen(
        {
            "no-sugar": Decimal("0.5"),
            "half-sugar": Decimal("0.75"),
            "normal": Decimal("1.0"),
            "extra-sugar": Decimal("1.5"),
        }
    ),
    sugar_deduction_multiplier=_frozen(
        {
            "no-sugar": Decimal("0"),
            "half-sugar": Decimal("0.5"),
            "normal": Decimal("1.0"),
            "extra-sugar": Decimal("1.5"),
        }
    ),
    ice_multiplier=_frozen(
        {"less": Decimal("0.5"), "regular": Decimal("1.0"), "extra": Decimal("1.5")}
    ),
    toppings=_frozen(
        {
            "boba": ToppingRule(Decimal("0.75"), "Boba", 80, 20, 0.5),
            "lychee-jelly": ToppingRule(Decimal("0.75"), "Lychee Jelly", 60, 15, 0.2),
            "pudding": ToppingRule(Decimal("0.75"), "Pudding", 100, 18, 2),
        }
    ),
    base_usage_oz=_frozen(
        {"Tea": Decimal("8"), "Milk": Decimal("4"), "Sugar": Decimal("1"), "Ice": Decimal("6")}
    ),
    unit_ingredients=("Cups", "Straws"),
)


def _require(value: str, allowed: tuple[str, ...], label: str) -> str:
    if value not in allowed:
        raise ValidationError(f"Invalid {label}: {value!r}. Expected one of: {', '.join(allowed)}")
    return value


def require_size(value: str) -> str:
    return _require(value, SIZES, "size")


def require_sugar_level(value: str) -> str:
    return _require(value, SUGAR_LEVELS, "sugarLevel")


def require_ice_level(value: str) -> str:
    return _require(value, ICE_LEVELS, "iceLevel")


def require_status(value: str) -> str:
    return _require(value, ORDER_STATUSES, "status")


def require_category(value: str) -> str:
    return _require(value, CATEGORIES, "category")


@dataclass(frozen=True)
class Customization:
    size: str = "medium"
    sugar_level: str = "normal"
    ice_level: str = "regular"
    toppings: tuple[str, ...] = ()

    def validated(self) -> "Customization":
        require_size(self.size)
        require_sugar_level(self.sugar_level)
        require_ice_level(self.ice_level)
        return self
