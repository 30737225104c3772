from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from boba_pos.core.database import get_db
from boba_pos.deps import require_manager
from boba_pos.models.manager import Manager
from boba_pos.schemas.catalog import MenuItemCreate, MenuItemUpdate, QuoteRequest
from boba_pos.services import catalog as catalog_service

router = APIRouter(prefix="/api", tags=["menu"])


@router.get("/menu")
def list_menu(
    category: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return [catalog_service.menu_item_to_dict(item) for item in catalog_service.list_menu_items(db, category)]


@router.post("/menu/quote")
def quote(payload: QuoteRequest, db: Session = Depends(get_db)):
    return catalog_service.quote_cart(db, [item.to_line() for item in payload.items])


@router.get("/menu/{menu_item_id}")
def get_menu_item(menu_item_id: int, db: Session = Depends(get_db)):
    return catalog_service.menu_item_to_dict(catalog_service.get_menu_item(db, menu_item_id))


@router.post("/menu", status_code=status.HTTP_201_CREATED)
def create_menu_item(
    payload: MenuItemCreate,
    db: Session = Depends(get_db),
    _manager: Manager = Depends(require_manager),
):
    item = catalog_service.create_menu_item(db, **payload.model_dump())
    return catalog_service.menu_item_to_dict(item)


@router.put("/menu/{menu_item_id}")
def update_menu_item(
    menu_item_id: int,
    payload: MenuItemUpdate,
    db: Session = Depends(get_db),
    _manager: Manager = Depends(require_manager),
):
    item = catalog_service.update_menu_item(db, menu_item_id, **payload.model_dump(exclude_unset=True))
    return catalog_service.menu_item_to_dict(item)


@router.delete("/menu/{menu_item_id}")
def delete_menu_item(
    menu_item_id: int,
    db: Session = Depends(get_db),
    _manager: Manager = Depends(require_manager),
):
    catalog_service.delete_menu_item(db, menu_item_id)
    return {"message": "Menu item deleted successfully", "id": menu_item_id}


@router.get("/toppings")
def list_toppings(db: Session = Depends(get_db)):
    return [catalog_service.topping_to_dict(topping) for topping in catalog_service.list_toppings(db)]
