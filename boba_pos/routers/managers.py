from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from boba_pos.core.database import get_db
from boba_pos.deps import require_manager
from boba_pos.models.manager import Manager
from boba_pos.services import managers as manager_service

router = APIRouter(prefix="/api/managers", tags=["managers"])


class ManagerCreate(BaseModel):
    email: Optional[str] = None


@router.get("")
def list_managers(db: Session = Depends(get_db), _manager: Manager = Depends(require_manager)):
    return [manager_service.manager_to_dict(manager) for manager in manager_service.list_managers(db)]


@router.get("/check/{email}")
def check_manager(email: str, db: Session = Depends(get_db)):
    return manager_service.check_manager(db, email)


@router.post("", status_code=status.HTTP_201_CREATED)
def add_manager(
    payload: ManagerCreate,
    db: Session = Depends(get_db),
    _manager: Manager = Depends(require_manager),
):
    return manager_service.manager_to_dict(manager_service.add_manager(db, payload.email))


@router.delete("/{manager_id}")
def delete_manager(
    manager_id: int,
    db: Session = Depends(get_db),
    _manager: Manager = Depends(require_manager),
):
    manager_service.delete_manager(db, manager_id)
    return {"message": "Manager removed successfully", "id": manager_id}
