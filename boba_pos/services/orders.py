from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from boba_pos.core.config import MAX_ORDER_ITEMS, PRICE_TOLERANCE, PRICE_VERIFICATION, TAX_RATE
from boba_pos.core.errors import DomainError, NotFound, PersistenceFailure, ValidationError
from boba_pos.core.options import (
    INITIAL_ORDER_STATUS,
    Customization,
    require_ice_level,
    require_size,
    require_status,
    require_sugar_level,
)
from boba_pos.models.menu_item import MenuItem
from boba_pos.models.order import Order
from boba_pos.models.order_item import OrderItem
from boba_pos.services import deduction
from boba_pos.services.catalog import resolve_toppings
from boba_pos.services.deduction import DeductionOutcome
from boba_pos.services.inventory import usage_ledger_enabled
from boba_pos.services.pricing import compute_line_price, compute_order_total, prices_match, to_money

logger = logging.getLogger(__name__)
ORDERS_PREFIX = "[ORDERS]"


@dataclass(frozen=True)
class OrderLineRequest:
    menu_item_id: Any
    item_name: Any
    quantity: Any
    size: Any
    sugar_level: Any
    ice_level: Any = "regular"
    toppings: Any = field(default_factory=list)
    price: Any = None


@dataclass
class OrderResult:
    order: Order
    warnings: list[DeductionOutcome]


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, Decimal)):
        return not isinstance(value, Decimal) or value.is_finite()
    if isinstance(value, float):
        return math.isfinite(value)
    return False


def _validate_line(index: int, line: OrderLineRequest) -> OrderLineRequest:
    where = f"items[{index}]"
    if isinstance(line.menu_item_id, bool) or not isinstance(line.menu_item_id, int):
        raise ValidationError(f"{where}.menuItemId is required")
    if not isinstance(line.item_name, str) or not line.item_name.strip():
        raise ValidationError(f"{where}.itemName is required")
    if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity < 1:
        raise ValidationError(f"{where}.quantity must be an integer >= 1")
    try:
        require_size(line.size)
        require_sugar_level(line.sugar_level)
        require_ice_level(line.ice_level)
    except ValidationError as exc:
        raise ValidationError(f"{where}: {exc.message}") from exc
    if not isinstance(line.toppings, (list, tuple)) or not all(isinstance(t, str) for t in line.toppings):
        raise ValidationError(f"{where}.toppings must be a list of topping ids")
    if not _is_number(line.price) or line.price < 0:
        raise ValidationError(f"{where}.price must be a finite number >= 0")
    return OrderLineRequest(
        menu_item_id=line.menu_item_id,
        item_name=line.item_name.strip(),
        quantity=line.quantity,
        size=line.size,
        sugar_level=line.sugar_level,
        ice_level=line.ice_level,
        toppings=list(line.toppings),
        price=to_money(line.price),
    )


def validate_order_request(
    items: Any,
    total_price: Any,
    max_items: int = MAX_ORDER_ITEMS,
) -> tuple[list[OrderLineRequest], Decimal]:
    if not isinstance(items, (list, tuple)) or len(items) == 0:
        raise ValidationError("Order items are required")
    if len(items) > max_items:
        raise ValidationError(f"An order may contain at most {max_items} items")
    if not _is_number(total_price):
        raise ValidationError("totalPrice must be a valid number")
    lines = [_validate_line(index, line) for index, line in enumerate(items)]
    return lines, to_money(total_price)


def verify_prices(
    db: Session,
    lines: Sequence[OrderLineRequest],
    total_price: Decimal,
    policy: str = PRICE_VERIFICATION,
    tolerance: Decimal = PRICE_TOLERANCE,
    tax_rate: Decimal = TAX_RATE,
) -> list[str]:
    """Compare caller prices with catalog prices.

    ``trust`` skips the check, ``warn`` logs mismatches, ``enforce`` rejects
    them. Stored values are always the caller's.
    """
    if policy == "trust":
        return []

    mismatches: list[str] = []
    expected_lines: list[Decimal] = []
    for index, line in enumerate(lines):
        item = db.get(MenuItem, line.menu_item_id)
        if item is None:
            mismatches.append(f"items[{index}]: unknown menu item {line.menu_item_id}")
            continue
        try:
            toppings = resolve_toppings(db, line.toppings)
        except ValidationError as exc:
            mismatches.append(f"items[{index}]: {exc.message}")
            continue
        customization = Customization(line.size, line.sugar_level, line.ice_level, tuple(line.toppings))
        expected = compute_line_price(item, customization, toppings, line.quantity)
        expected_lines.append(expected)
        if not prices_match(line.price, expected, tolerance):
            mismatches.append(f"items[{index}]: price {line.price} != {expected}")

    if not mismatches:
        expected_total = compute_order_total(expected_lines, tax_rate=tax_rate).total
        if not prices_match(total_price, expected_total, tolerance):
            mismatches.append(f"totalPrice {total_price} != {expected_total}")

    if mismatches:
        logger.warning("%s price verification mismatch policy=%s details=%s", ORDERS_PREFIX, policy, mismatches)
        if policy == "enforce":
            raise ValidationError("Submitted prices do not match the catalog: " + "; ".join(mismatches))
    return mismatches


def _rollback(db: Session) -> None:
    try:
        db.rollback()
    except Exception:
        logger.exception("%s rollback failed", ORDERS_PREFIX)


def create_order(
    db: Session,
    items: Any,
    total_price: Any,
    *,
    max_items: int = MAX_ORDER_ITEMS,
    price_policy: str = PRICE_VERIFICATION,
) -> OrderResult:
    """Persist an order, its line items and the inventory deduction as one unit.

    Validation happens before any write. Inside the transaction the header
    is inserted first, then each line followed by its deduction, in
    submission order. Any failure rolls everything back; the caller sees a
    single ``PersistenceFailure`` even if the rollback itself also fails.
    Deductions skipped for lack of stock do not fail the order and are
    returned as warnings.
    """
    lines, total = validate_order_request(items, total_price, max_items=max_items)
    verify_prices(db, lines, total, policy=price_policy)

    warnings: list[DeductionOutcome] = []
    try:
        record_usage = usage_ledger_enabled(db)
        order = Order(total_price=total, status=INITIAL_ORDER_STATUS)
        db.add(order)
        db.flush()

        for line in lines:
            order_item = OrderItem(
                menu_item_id=line.menu_item_id,
                item_name=line.item_name,
                quantity=line.quantity,
                size=line.size,
                sugar_level=line.sugar_level,
                ice_level=line.ice_level,
                toppings=line.toppings,
                price=line.price,
            )
            order.items.append(order_item)
            db.flush()
            outcomes = deduction.deduct_for_item(db, order_item, record_usage=record_usage)
            warnings.extend(outcome for outcome in outcomes if outcome.skipped)

        db.commit()
    except DomainError:
        _rollback(db)
        raise
    except Exception as exc:
        _rollback(db)
        logger.exception("%s create failed items=%s", ORDERS_PREFIX, len(lines))
        raise PersistenceFailure("Failed to create order") from exc

    db.refresh(order)
    logger.info(
        "%s created order_id=%s items=%s total=%s skipped_deductions=%s",
        ORDERS_PREFIX,
        order.id,
        len(lines),
        order.total_price,
        len(warnings),
    )
    return OrderResult(order=order, warnings=warnings)


def order_item_to_dict(item: OrderItem) -> dict:
    return {
        "id": item.id,
        "menuItemId": item.menu_item_id,
        "itemName": item.item_name,
        "quantity": item.quantity,
        "size": item.size,
        "sugarLevel": item.sugar_level,
        "iceLevel": item.ice_level,
        "toppings": list(item.toppings or []),
        "price": float(item.price),
    }


def order_to_dict(order: Order, items: Sequence[OrderItem] | None = None) -> dict:
    rows = order.items if items is None else items
    return {
        "id": order.id,
        "totalPrice": float(order.total_price),
        "status": order.status,
        "createdAt": order.created_at.isoformat() if order.created_at else None,
        # Outer-join rows for an order without items carry no item; never emit placeholders
        "items": [order_item_to_dict(item) for item in rows if item is not None],
    }


def _aggregate(rows: Sequence[tuple[Order, OrderItem | None]]) -> list[dict]:
    grouped: dict[int, tuple[Order, list[OrderItem | None]]] = {}
    for order, item in rows:
        grouped.setdefault(order.id, (order, []))[1].append(item)
    return [order_to_dict(order, items) for order, items in grouped.values()]


def _orders_with_items(db: Session):
    return (
        db.query(Order, OrderItem)
        .outerjoin(OrderItem, OrderItem.order_id == Order.id)
        .order_by(Order.created_at.desc(), Order.id.desc(), OrderItem.id.asc())
    )


def list_orders(db: Session) -> list[dict]:
    return _aggregate(_orders_with_items(db).all())


def get_order(db: Session, order_id: int) -> dict:
    rows = _orders_with_items(db).filter(Order.id == order_id).all()
    if not rows:
        raise NotFound("Order not found")
    return _aggregate(rows)[0]


def update_order_status(db: Session, order_id: int, new_status: Any) -> Order:
    if not isinstance(new_status, str):
        raise ValidationError("Invalid status")
    require_status(new_status)

    order = db.get(Order, order_id)
    if not order:
        raise NotFound("Order not found")

    previous_status = order.status
    order.status = new_status
    db.commit()
    db.refresh(order)
    logger.info("%s status order_id=%s %s -> %s", ORDERS_PREFIX, order_id, previous_status, new_status)
    return order


def delete_order(db: Session, order_id: int) -> None:
    """Delete the line items, then the order. Inventory is not restored."""
    try:
        db.query(OrderItem).filter(OrderItem.order_id == order_id).delete(synchronize_session=False)
        deleted = db.query(Order).filter(Order.id == order_id).delete(synchronize_session=False)
        if not deleted:
            _rollback(db)
            raise NotFound("Order not found")
        db.commit()
    except SQLAlchemyError:
        _rollback(db)
        raise
    logger.info("%s deleted order_id=%s", ORDERS_PREFIX, order_id)
