from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Sequence

from boba_pos.core.config import TAX_RATE
from boba_pos.core.errors import ValidationError
from boba_pos.core.options import DEFAULT_TABLES, Customization, OptionTables

CENT = Decimal("0.01")


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax: Decimal
    total: Decimal


def to_money(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    return amount


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_unit_price(
    item: Any,
    customization: Customization,
    toppings: Iterable[Any],
    tables: OptionTables = DEFAULT_TABLES,
) -> Decimal:
    customization.validated()
    unit = to_money(item.base_price) + tables.size_price_delta[customization.size]
    for topping in toppings:
        unit += to_money(topping.price)
    return unit


def compute_line_price(
    item: Any,
    customization: Customization,
    toppings: Iterable[Any],
    quantity: int,
    tables: OptionTables = DEFAULT_TABLES,
) -> Decimal:
    """Line total for one customized drink: (base + size delta + toppings) x quantity."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError("quantity must be an integer >= 1")
    unit = compute_unit_price(item, customization, toppings, tables=tables)
    return quantize_money(unit * quantity)


def compute_order_total(line_totals: Sequence[Decimal], tax_rate: Decimal = TAX_RATE) -> OrderTotals:
    subtotal = quantize_money(sum((to_money(line) for line in line_totals), Decimal("0")))
    tax = quantize_money(subtotal * to_money(tax_rate))
    return OrderTotals(subtotal=subtotal, tax=tax, total=subtotal + tax)


def prices_match(claimed: Any, expected: Decimal, tolerance: Decimal) -> bool:
    return abs(to_money(claimed) - expected) <= tolerance
