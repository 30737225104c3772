from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from boba_pos.core.database import get_db
from boba_pos.deps import require_manager
from boba_pos.models.manager import Manager
from boba_pos.services import inventory as inventory_service
from boba_pos.services.reports import inventory_usage_report

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


class InventoryItemCreate(BaseModel):
    ingredient_name: str = Field(..., min_length=1)
    quantity: float = Field(0, ge=0, allow_inf_nan=False)
    unit: Optional[str] = None
    min_quantity: Optional[float] = Field(None, ge=0, allow_inf_nan=False)


class InventoryItemUpdate(BaseModel):
    ingredient_name: Optional[str] = Field(None, min_length=1)
    quantity: Optional[float] = Field(None, allow_inf_nan=False)
    unit: Optional[str] = None
    min_quantity: Optional[float] = Field(None, ge=0, allow_inf_nan=False)


class QuantityAdjustment(BaseModel):
    delta: float = Field(..., allow_inf_nan=False)


class UsageCreate(BaseModel):
    inventory_id: Optional[int] = None
    quantity_used: Optional[float] = Field(None, allow_inf_nan=False)
    unit_cost: float = Field(0, ge=0, allow_inf_nan=False)
    order_id: Optional[int] = None
    notes: Optional[str] = None


@router.get("")
def list_inventory(db: Session = Depends(get_db), _manager: Manager = Depends(require_manager)):
    return [inventory_service.item_to_dict(item) for item in inventory_service.list_items(db)]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_inventory_item(
    payload: InventoryItemCreate,
    db: Session = Depends(get_db),
    _manager: Manager = Depends(require_manager),
):
    item = inventory_service.add_item(
        db,
        payload.ingredient_name,
        quantity=payload.quantity,
        unit=payload.unit,
        min_quantity=payload.min_quantity,
    )
    return inventory_service.item_to_dict(item)


@router.get("/alerts/low-stock")
def low_stock_alerts(db: Session = Depends(get_db), _manager: Manager = Depends(require_manager)):
    return [inventory_service.item_to_dict(item) for item in inventory_service.list_low_stock(db)]


@router.post("/usage", status_code=status.HTTP_201_CREATED)
def record_usage(
    payload: UsageCreate,
    db: Session = Depends(get_db),
    manager: Manager = Depends(require_manager),
):
    usage = inventory_service.record_usage(
        db,
        payload.inventory_id,
        payload.quantity_used,
        unit_cost=payload.unit_cost,
        order_id=payload.order_id,
        notes=payload.notes,
        created_by=manager.email,
    )
    return inventory_service.usage_to_dict(usage)


@router.get("/reports/usage")
def usage_report(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    _manager: Manager = Depends(require_manager),
):
    return inventory_usage_report(db, start_date, end_date)


@router.get("/{item_id}")
def get_inventory_item(item_id: int, db: Session = Depends(get_db), _manager: Manager = Depends(require_manager)):
    return inventory_service.item_to_dict(inventory_service.get_item(db, item_id))


@router.put("/{item_id}")
def update_inventory_item(
    item_id: int,
    payload: InventoryItemUpdate,
    db: Session = Depends(get_db),
    _manager: Manager = Depends(require_manager),
):
    item = inventory_service.update_item(
        db,
        item_id,
        ingredient_name=payload.ingredient_name,
        quantity=payload.quantity,
        unit=payload.unit,
        min_quantity=payload.min_quantity,
    )
    return inventory_service.item_to_dict(item)


@router.post("/{item_id}/adjust")
def adjust_inventory_item(
    item_id: int,
    payload: QuantityAdjustment,
    db: Session = Depends(get_db),
    _manager: Manager = Depends(require_manager),
):
    item = inventory_service.adjust_quantity(db, item_id, payload.delta)
    return inventory_service.item_to_dict(item)


@router.delete("/{item_id}")
def delete_inventory_item(
    item_id: int,
    db: Session = Depends(get_db),
    _manager: Manager = Depends(require_manager),
):
    name = inventory_service.delete_item(db, item_id)
    return {"message": "Inventory item deleted successfully", "ingredient_name": name}
