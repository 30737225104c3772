from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from boba_pos.core.config import TAX_RATE
from boba_pos.core.errors import NotFound, ValidationError
from boba_pos.core.options import DEFAULT_TABLES, Customization, OptionTables, require_category
from boba_pos.models.menu_item import MenuItem
from boba_pos.models.topping import Topping
from boba_pos.services.nutrition import compute_nutrition
from boba_pos.services.pricing import compute_line_price, compute_order_total, to_money

logger = logging.getLogger(__name__)

_MENU_FIELDS = (
    "name",
    "description",
    "base_price",
    "image_ref",
    "category",
    "calories",
    "sugar_grams",
    "protein_grams",
    "active",
)


@dataclass(frozen=True)
class QuoteLine:
    menu_item_id: int
    quantity: int
    customization: Customization


def menu_item_to_dict(item: MenuItem) -> dict:
    return {
        "id": item.id,
        "name": item.name,
        "description": item.description,
        "basePrice": float(item.base_price),
        "imageRef": item.image_ref,
        "category": item.category,
        "calories": item.calories,
        "sugar": item.sugar_grams,
        "protein": item.protein_grams,
        "active": item.active,
    }


def topping_to_dict(topping: Topping) -> dict:
    return {"id": topping.id, "name": topping.name, "price": float(topping.price)}


def list_menu_items(db: Session, category: Optional[str] = None, include_inactive: bool = False) -> list[MenuItem]:
    query = db.query(MenuItem)
    if category:
        query = query.filter(MenuItem.category == require_category(category))
    if not include_inactive:
        query = query.filter(MenuItem.active.is_(True))
    return query.order_by(MenuItem.category.asc(), MenuItem.name.asc()).all()


def get_menu_item(db: Session, menu_item_id: int) -> MenuItem:
    item = db.get(MenuItem, menu_item_id)
    if not item:
        raise NotFound("Menu item not found")
    return item


def _validate_menu_fields(fields: dict[str, Any]) -> dict[str, Any]:
    if "category" in fields:
        require_category(fields["category"])
    if "base_price" in fields:
        fields["base_price"] = to_money(fields["base_price"])
        if fields["base_price"] < 0:
            raise ValidationError("basePrice must be >= 0")
    for key in ("calories", "sugar_grams", "protein_grams"):
        if key in fields and fields[key] is not None and fields[key] < 0:
            raise ValidationError(f"{key} must be >= 0")
    return fields


def create_menu_item(db: Session, **fields: Any) -> MenuItem:
    data = _validate_menu_fields(
        {key: value for key, value in fields.items() if key in _MENU_FIELDS and value is not None}
    )
    item = MenuItem(**data)
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info("[CATALOG] menu item created id=%s name=%s", item.id, item.name)
    return item


def update_menu_item(db: Session, menu_item_id: int, **fields: Any) -> MenuItem:
    item = get_menu_item(db, menu_item_id)
    data = _validate_menu_fields(
        {key: value for key, value in fields.items() if key in _MENU_FIELDS and value is not None}
    )
    for key, value in data.items():
        setattr(item, key, value)
    db.commit()
    db.refresh(item)
    return item


def delete_menu_item(db: Session, menu_item_id: int) -> None:
    item = get_menu_item(db, menu_item_id)
    db.delete(item)
    db.commit()
    logger.info("[CATALOG] menu item deleted id=%s", menu_item_id)


def list_toppings(db: Session) -> list[Topping]:
    return db.query(Topping).order_by(Topping.name.asc()).all()


def resolve_toppings(db: Session, topping_ids: Iterable[str]) -> list[Topping]:
    ids = list(topping_ids)
    if not ids:
        return []
    rows = {row.id: row for row in db.query(Topping).filter(Topping.id.in_(set(ids))).all()}
    missing = sorted({topping_id for topping_id in ids if topping_id not in rows})
    if missing:
        raise ValidationError(f"Unknown toppings: {', '.join(missing)}")
    return [rows[topping_id] for topping_id in ids]


def quote_cart(
    db: Session,
    lines: Sequence[QuoteLine],
    tax_rate: Decimal = TAX_RATE,
    tables: OptionTables = DEFAULT_TABLES,
) -> dict:
    """Price and nutrition for a cart, computed from catalog truth."""
    if not lines:
        raise ValidationError("Cart is empty")

    quoted: list[dict] = []
    line_totals: list[Decimal] = []
    for line in lines:
        item = get_menu_item(db, line.menu_item_id)
        toppings = resolve_toppings(db, line.customization.toppings)
        line_total = compute_line_price(item, line.customization, toppings, line.quantity, tables=tables)
        nutrition = compute_nutrition(item, line.customization, toppings, tables=tables)
        line_totals.append(line_total)
        quoted.append(
            {
                "menuItemId": item.id,
                "itemName": item.name,
                "quantity": line.quantity,
                "size": line.customization.size,
                "sugarLevel": line.customization.sugar_level,
                "iceLevel": line.customization.ice_level,
                "toppings": list(line.customization.toppings),
                "unitPrice": float(line_total / line.quantity),
                "lineTotal": float(line_total),
                "nutrition": nutrition.to_dict(),
            }
        )

    totals = compute_order_total(line_totals, tax_rate=tax_rate)
    return {
        "optionsVersion": tables.version,
        "lines": quoted,
        "subtotal": float(totals.subtotal),
        "taxRate": float(tax_rate),
        "tax": float(totals.tax),
        "total": float(totals.total),
    }
