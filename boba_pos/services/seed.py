from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from boba_pos.core.options import DEFAULT_TABLES
from boba_pos.models.inventory import InventoryItem
from boba_pos.models.manager import Manager
from boba_pos.models.menu_item import MenuItem
from boba_pos.models.topping import Topping
from boba_pos.services.managers import add_manager, find_manager

logger = logging.getLogger(__name__)
SEED_PREFIX = "[SEED]"

TOPPING_NAMES = {"boba": "Boba Pearls", "lychee-jelly": "Lychee Jelly", "pudding": "Pudding"}

SAMPLE_MENU = (
    {
        "name": "Classic Milk Tea",
        "description": "Black tea with creamy milk",
        "base_price": Decimal("4.50"),
        "category": "milk-tea",
        "calories": 240,
        "sugar_grams": 30,
        "protein_grams": 3,
    },
    {
        "name": "Taro Milk Tea",
        "description": "Taro root blended with milk tea",
        "base_price": Decimal("5.00"),
        "category": "milk-tea",
        "calories": 280,
        "sugar_grams": 34,
        "protein_grams": 3,
    },
    {
        "name": "Mango Green Tea",
        "description": "Jasmine green tea with mango",
        "base_price": Decimal("4.75"),
        "category": "fruit-tea",
        "calories": 160,
        "sugar_grams": 32,
        "protein_grams": 0,
    },
    {
        "name": "Strawberry Matcha",
        "description": "Layered matcha latte over strawberry puree",
        "base_price": Decimal("5.75"),
        "category": "specialty",
        "calories": 300,
        "sugar_grams": 36,
        "protein_grams": 5,
    },
)

# name -> (quantity, unit, min_quantity)
DEFAULT_INGREDIENTS = {
    "Tea": (Decimal("2000"), "oz", Decimal("200")),
    "Milk": (Decimal("1000"), "oz", Decimal("100")),
    "Sugar": (Decimal("500"), "oz", Decimal("50")),
    "Ice": (Decimal("3000"), "oz", Decimal("300")),
    "Cups": (Decimal("500"), "units", Decimal("50")),
    "Straws": (Decimal("500"), "units", Decimal("50")),
    "Boba": (Decimal("300"), "units", Decimal("30")),
    "Lychee Jelly": (Decimal("200"), "units", Decimal("20")),
    "Pudding": (Decimal("200"), "units", Decimal("20")),
}


def seed_catalog(db: Session, manager_email: Optional[str] = None) -> dict[str, int]:
    """Insert default toppings, sample menu, ingredients and a first manager.

    Existing rows (matched by id or name) are left untouched, so running it
    twice is harmless.
    """
    created = {"toppings": 0, "menu_items": 0, "ingredients": 0, "managers": 0}

    for topping_id, rule in DEFAULT_TABLES.toppings.items():
        if db.get(Topping, topping_id) is None:
            db.add(Topping(id=topping_id, name=TOPPING_NAMES.get(topping_id, rule.ingredient), price=rule.price))
            created["toppings"] += 1

    existing_names = {name for (name,) in db.query(MenuItem.name).all()}
    for fields in SAMPLE_MENU:
        if fields["name"] not in existing_names:
            db.add(MenuItem(**fields))
            created["menu_items"] += 1

    existing_ingredients = {name for (name,) in db.query(InventoryItem.ingredient_name).all()}
    for name, (quantity, unit, min_quantity) in DEFAULT_INGREDIENTS.items():
        if name not in existing_ingredients:
            db.add(InventoryItem(ingredient_name=name, quantity=quantity, unit=unit, min_quantity=min_quantity))
            created["ingredients"] += 1

    db.commit()

    if manager_email and find_manager(db, manager_email) is None:
        add_manager(db, manager_email)
        created["managers"] += 1

    logger.info("%s done created=%s managers_total=%s", SEED_PREFIX, created, db.query(Manager).count())
    return created
