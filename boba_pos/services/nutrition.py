from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from boba_pos.core.options import DEFAULT_TABLES, Customization, OptionTables

CALORIES_PER_SUGAR_GRAM = Decimal("4")


@dataclass(frozen=True)
class Nutrition:
    calories: int
    sugar: float
    protein: float

    def to_dict(self) -> dict:
        return {"calories": self.calories, "sugar": self.sugar, "protein": self.protein}


def _topping_key(topping: Any) -> str:
    return str(getattr(topping, "id", topping))


def _one_decimal(value: Decimal) -> float:
    return float(value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def compute_nutrition(
    item: Any,
    customization: Customization,
    toppings: Iterable[Any],
    tables: OptionTables = DEFAULT_TABLES,
) -> Nutrition:
    """Estimate nutrition for a customized drink.

    The menu baseline describes a medium drink at normal sugar. Sugar
    calories are re-derived after scaling because even "no-sugar" keeps the
    tea's natural sugar (multiplier 0.5, not 0). Toppings add fixed deltas;
    unknown toppings add nothing.
    """
    customization.validated()
    size_multiplier = tables.size_multiplier[customization.size]
    sugar_multiplier = tables.sugar_nutrition_multiplier[customization.sugar_level]

    calories = Decimal(str(item.calories or 0)) * size_multiplier
    sugar = Decimal(str(item.sugar_grams or 0)) * size_multiplier
    protein = Decimal(str(item.protein_grams or 0)) * size_multiplier

    sugar_calories = sugar * CALORIES_PER_SUGAR_GRAM
    calories = calories - sugar_calories + sugar_calories * sugar_multiplier
    sugar = sugar * sugar_multiplier

    for topping in toppings:
        rule = tables.toppings.get(_topping_key(topping))
        if rule is None:
            continue
        calories += Decimal(str(rule.calories))
        sugar += Decimal(str(rule.sugar))
        protein += Decimal(str(rule.protein))

    zero = Decimal("0")
    return Nutrition(
        calories=int(max(calories, zero).quantize(Decimal("1"), rounding=ROUND_HALF_UP)),
        sugar=_one_decimal(max(sugar, zero)),
        protein=_one_decimal(max(protein, zero)),
    )
