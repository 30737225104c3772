from __future__ import annotations

import logging
import re
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from boba_pos.core.errors import Conflict, NotFound, ValidationError
from boba_pos.models.manager import Manager

logger = logging.getLogger(__name__)
MANAGERS_PREFIX = "[MANAGERS]"

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def manager_to_dict(manager: Manager) -> dict:
    return {
        "id": manager.id,
        "email": manager.email,
        "createdAt": manager.created_at.isoformat() if manager.created_at else None,
    }


def list_managers(db: Session) -> list[Manager]:
    return db.query(Manager).order_by(Manager.created_at.desc(), Manager.id.desc()).all()


def find_manager(db: Session, email: Optional[str]) -> Optional[Manager]:
    normalized = normalize_email(email)
    if not normalized:
        return None
    return db.query(Manager).filter(Manager.email == normalized).first()


def check_manager(db: Session, email: str) -> dict:
    manager = find_manager(db, email)
    if manager is None:
        return {"isManager": False}
    return {"isManager": True, "manager": manager_to_dict(manager)}


def add_manager(db: Session, email: Optional[str]) -> Manager:
    normalized = normalize_email(email)
    if not EMAIL_RE.match(normalized):
        raise ValidationError("A valid email is required")
    if find_manager(db, normalized):
        raise Conflict("Manager already exists")

    manager = Manager(email=normalized)
    db.add(manager)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict("Manager already exists") from exc
    db.refresh(manager)
    logger.info("%s added id=%s email=%s", MANAGERS_PREFIX, manager.id, manager.email)
    return manager


def delete_manager(db: Session, manager_id: int) -> None:
    """Remove a manager, refusing to remove the last one.

    The manager rows are locked before counting, so two concurrent deletes
    cannot both observe two remaining managers.
    """
    try:
        managers = db.query(Manager).order_by(Manager.id).with_for_update().all()
        if len(managers) <= 1:
            raise Conflict("Cannot delete the last manager")
        target = next((manager for manager in managers if manager.id == manager_id), None)
        if target is None:
            raise NotFound("Manager not found")
        db.delete(target)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("%s deleted id=%s", MANAGERS_PREFIX, manager_id)
