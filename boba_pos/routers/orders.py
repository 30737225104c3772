from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from boba_pos.core.config import PRICE_VERIFICATION
from boba_pos.core.database import get_db
from boba_pos.deps import require_manager
from boba_pos.models.manager import Manager
from boba_pos.schemas.orders import OrderCreate, StatusUpdate
from boba_pos.services import orders as order_service

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_order(payload: OrderCreate, db: Session = Depends(get_db)):
    result = order_service.create_order(
        db,
        [item.to_line() for item in payload.items],
        payload.total_price,
        price_policy=PRICE_VERIFICATION,
    )
    body = order_service.order_to_dict(result.order)
    body["warnings"] = [outcome.to_dict() for outcome in result.warnings]
    return body


@router.get("")
def list_orders(db: Session = Depends(get_db)):
    return order_service.list_orders(db)


@router.get("/{order_id}")
def get_order(order_id: int, db: Session = Depends(get_db)):
    return order_service.get_order(db, order_id)


@router.patch("/{order_id}/status")
def update_status(
    order_id: int,
    body: StatusUpdate,
    db: Session = Depends(get_db),
    _manager: Manager = Depends(require_manager),
):
    order = order_service.update_order_status(db, order_id, body.status)
    return order_service.order_to_dict(order)


@router.delete("/{order_id}")
def delete_order(
    order_id: int,
    db: Session = Depends(get_db),
    _manager: Manager = Depends(require_manager),
):
    order_service.delete_order(db, order_id)
    return {"message": "Order deleted successfully", "id": order_id}
