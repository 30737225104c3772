from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from sqlalchemy import update
from sqlalchemy.orm import Session

from boba_pos.core.options import DEFAULT_TABLES, OptionTables
from boba_pos.models._time import utcnow
from boba_pos.models.inventory import InventoryItem, InventoryUsage
from boba_pos.models.order_item import OrderItem

logger = logging.getLogger(__name__)

DEDUCTED = "deducted"
SKIPPED_INSUFFICIENT = "skipped_insufficient"
SKIPPED_MISSING = "skipped_missing"


@dataclass(frozen=True)
class DeductionOutcome:
    ingredient: str
    amount: Decimal
    status: str
    order_item_id: int | None = None

    @property
    def skipped(self) -> bool:
        return self.status != DEDUCTED

    def to_dict(self) -> dict:
        return {
            "ingredient": self.ingredient,
            "amount": float(self.amount),
            "status": self.status,
            "orderItemId": self.order_item_id,
        }


def plan_item_usage(
    item_name: str,
    size: str,
    sugar_level: str,
    ice_level: str,
    toppings: Iterable[str],
    quantity: int,
    tables: OptionTables = DEFAULT_TABLES,
) -> list[tuple[str, Decimal]]:
    """Estimate raw-ingredient usage for one order line.

    Parametric model, not a recipe lookup: tea/milk/sugar/ice scale with the
    size multiplier (sugar and ice also with their level), cups and straws
    are one per drink, each known topping is one unit per drink.
    """
    size_multiplier = tables.size_multiplier[size]
    base = tables.base_usage_oz
    qty = Decimal(quantity)

    usage: list[tuple[str, Decimal]] = [("Tea", base["Tea"] * size_multiplier * qty)]
    if tables.milk_keyword in (item_name or "").lower():
        usage.append(("Milk", base["Milk"] * size_multiplier * qty))
    usage.append(
        ("Sugar", base["Sugar"] * size_multiplier * tables.sugar_deduction_multiplier[sugar_level] * qty)
    )
    usage.append(("Ice", base["Ice"] * size_multiplier * tables.ice_multiplier[ice_level] * qty))
    for ingredient in tables.unit_ingredients:
        usage.append((ingredient, qty))
    for topping_id in toppings:
        rule = tables.toppings.get(topping_id)
        if rule is not None:
            usage.append((rule.ingredient, qty))
    return usage


def apply_deduction(
    db: Session,
    ingredient: str,
    amount: Decimal,
    *,
    order_id: int | None = None,
    order_item_id: int | None = None,
    record_usage: bool = False,
) -> DeductionOutcome:
    """Relative, guarded decrement: only applies when stock covers ``amount``.

    A failed guard skips this ingredient entirely (no partial amount is
    taken) and is reported as an outcome instead of an error.
    """
    result = db.execute(
        update(InventoryItem)
        .where(
            InventoryItem.ingredient_name == ingredient,
            InventoryItem.quantity >= amount,
        )
        .values(quantity=InventoryItem.quantity - amount, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        if record_usage:
            inventory_id = (
                db.query(InventoryItem.id).filter(InventoryItem.ingredient_name == ingredient).scalar()
            )
            db.add(
                InventoryUsage(
                    inventory_id=inventory_id,
                    quantity_used=amount,
                    unit_cost=0,
                    order_id=order_id,
                    notes="order deduction",
                )
            )
        return DeductionOutcome(ingredient, amount, DEDUCTED, order_item_id)

    exists = db.query(InventoryItem.id).filter(InventoryItem.ingredient_name == ingredient).first()
    status = SKIPPED_INSUFFICIENT if exists else SKIPPED_MISSING
    logger.warning(
        "[INVENTORY] deduction skipped ingredient=%s amount=%s status=%s order_id=%s",
        ingredient,
        amount,
        status,
        order_id,
    )
    return DeductionOutcome(ingredient, amount, status, order_item_id)


def deduct_for_item(
    db: Session,
    order_item: OrderItem,
    *,
    record_usage: bool = False,
    tables: OptionTables = DEFAULT_TABLES,
) -> list[DeductionOutcome]:
    outcomes: list[DeductionOutcome] = []
    usage = plan_item_usage(
        order_item.item_name,
        order_item.size,
        order_item.sugar_level,
        order_item.ice_level,
        order_item.toppings or [],
        order_item.quantity,
        tables=tables,
    )
    for ingredient, amount in usage:
        if amount <= 0:
            continue
        outcomes.append(
            apply_deduction(
                db,
                ingredient,
                amount,
                order_id=order_item.order_id,
                order_item_id=order_item.id,
                record_usage=record_usage,
            )
        )
    return outcomes
