from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from boba_pos.core.errors import Conflict, FeatureUnavailable, NotFound, ValidationError
from boba_pos.models._time import utcnow
from boba_pos.models.inventory import InventoryItem, InventoryUsage
from boba_pos.models.order import Order

logger = logging.getLogger(__name__)

USAGE_LEDGER_TABLE = "inventory_usage"
DEFAULT_UNIT = "units"
DEFAULT_MIN_QUANTITY = Decimal("10")


def _decimal(value: Any, field: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except Exception as exc:
        raise ValidationError(f"{field} must be a number") from exc
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return amount


def usage_ledger_enabled(db: Session) -> bool:
    return sa_inspect(db.connection()).has_table(USAGE_LEDGER_TABLE)


def item_to_dict(item: InventoryItem) -> dict:
    return {
        "id": item.id,
        "ingredient_name": item.ingredient_name,
        "quantity": float(item.quantity),
        "unit": item.unit,
        "min_quantity": float(item.min_quantity),
        "is_low_stock": item.quantity <= item.min_quantity,
        "created_at": item.created_at.isoformat() if item.created_at else None,
        "updated_at": item.updated_at.isoformat() if item.updated_at else None,
    }


def usage_to_dict(usage: InventoryUsage) -> dict:
    return {
        "id": usage.id,
        "inventory_id": usage.inventory_id,
        "quantity_used": float(usage.quantity_used),
        "unit_cost": float(usage.unit_cost),
        "order_id": usage.order_id,
        "used_at": usage.used_at.isoformat() if usage.used_at else None,
        "notes": usage.notes,
        "created_by": usage.created_by,
    }


def list_items(db: Session) -> list[InventoryItem]:
    return db.query(InventoryItem).order_by(InventoryItem.ingredient_name.asc()).all()


def get_item(db: Session, item_id: int) -> InventoryItem:
    item = db.get(InventoryItem, item_id)
    if not item:
        raise NotFound("Inventory item not found")
    return item


def add_item(
    db: Session,
    name: str,
    quantity: Any = 0,
    unit: Optional[str] = None,
    min_quantity: Any = None,
) -> InventoryItem:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Ingredient name is required")
    quantity = _decimal(quantity if quantity is not None else 0, "quantity")
    min_quantity = _decimal(min_quantity, "min_quantity") if min_quantity is not None else DEFAULT_MIN_QUANTITY
    if quantity < 0 or min_quantity < 0:
        raise ValidationError("quantity and min_quantity must be >= 0")

    existing = db.query(InventoryItem.id).filter(InventoryItem.ingredient_name == name).first()
    if existing:
        raise Conflict("Ingredient already exists")

    item = InventoryItem(
        ingredient_name=name,
        quantity=quantity,
        unit=(unit or "").strip() or DEFAULT_UNIT,
        min_quantity=min_quantity,
    )
    db.add(item)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict("Ingredient already exists") from exc
    db.refresh(item)
    logger.info("[INVENTORY] item added id=%s name=%s quantity=%s", item.id, item.ingredient_name, item.quantity)
    return item


def update_item(
    db: Session,
    item_id: int,
    *,
    ingredient_name: Optional[str] = None,
    quantity: Any = None,
    unit: Optional[str] = None,
    min_quantity: Any = None,
) -> InventoryItem:
    item = get_item(db, item_id)

    if ingredient_name is not None:
        if not ingredient_name.strip():
            raise ValidationError("Ingredient name cannot be empty")
        item.ingredient_name = ingredient_name.strip()
    if quantity is not None:
        item.quantity = _decimal(quantity, "quantity")
    if unit is not None:
        item.unit = unit
    if min_quantity is not None:
        min_quantity = _decimal(min_quantity, "min_quantity")
        if min_quantity < 0:
            raise ValidationError("min_quantity must be >= 0")
        item.min_quantity = min_quantity

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict("Ingredient already exists") from exc
    db.refresh(item)
    logger.info("[INVENTORY] item updated id=%s quantity=%s", item.id, item.quantity)
    return item


def delete_item(db: Session, item_id: int) -> str:
    item = get_item(db, item_id)
    name = item.ingredient_name
    db.delete(item)
    db.commit()
    logger.info("[INVENTORY] item deleted id=%s name=%s", item_id, name)
    return name


def list_low_stock(db: Session) -> list[InventoryItem]:
    return (
        db.query(InventoryItem)
        .filter(InventoryItem.quantity <= InventoryItem.min_quantity)
        .order_by((InventoryItem.quantity - InventoryItem.min_quantity).asc(), InventoryItem.ingredient_name.asc())
        .all()
    )


def record_usage(
    db: Session,
    inventory_id: Optional[int],
    quantity_used: Any,
    unit_cost: Any = 0,
    order_id: Optional[int] = None,
    notes: Optional[str] = None,
    created_by: Optional[str] = None,
) -> InventoryUsage:
    if not inventory_id or not quantity_used:
        raise ValidationError("Inventory ID and quantity used are required")
    quantity_used = _decimal(quantity_used, "quantity_used")
    unit_cost = _decimal(unit_cost or 0, "unit_cost")
    if quantity_used <= 0 or unit_cost < 0:
        raise ValidationError("quantity_used must be > 0 and unit_cost >= 0")

    if not usage_ledger_enabled(db):
        raise FeatureUnavailable("Inventory usage tracking not enabled")

    get_item(db, inventory_id)
    if order_id is not None and db.get(Order, order_id) is None:
        raise NotFound("Order not found")

    usage = InventoryUsage(
        inventory_id=inventory_id,
        quantity_used=quantity_used,
        unit_cost=unit_cost,
        order_id=order_id,
        notes=notes,
        created_by=created_by,
    )
    db.add(usage)
    db.commit()
    db.refresh(usage)
    logger.info(
        "[INVENTORY] usage recorded inventory_id=%s quantity=%s order_id=%s",
        inventory_id,
        quantity_used,
        order_id,
    )
    return usage


def adjust_quantity(db: Session, item_id: int, delta: Any) -> InventoryItem:
    """Relative stock change (restock or write-off); never an absolute overwrite."""
    delta = _decimal(delta, "delta")
    if delta == 0:
        raise ValidationError("delta must be non-zero")
    result = db.execute(
        update(InventoryItem)
        .where(InventoryItem.id == item_id)
        .values(quantity=InventoryItem.quantity + delta, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        db.rollback()
        raise NotFound("Inventory item not found")
    db.commit()
    item = get_item(db, item_id)
    db.refresh(item)
    logger.info("[INVENTORY] quantity adjusted id=%s delta=%s quantity=%s", item_id, delta, item.quantity)
    return item
