from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from boba_pos.core.config import MANAGER_EMAIL_HEADER
from boba_pos.core.database import get_db
from boba_pos.core.request_context import set_request_context
from boba_pos.models.manager import Manager
from boba_pos.services.managers import find_manager

logger = logging.getLogger(__name__)


def get_manager_email(request: Request) -> Optional[str]:
    """Identity asserted by the upstream credential check, if any."""
    value = request.headers.get(MANAGER_EMAIL_HEADER)
    return value.strip() if value and value.strip() else None


def require_manager(
    email: Optional[str] = Depends(get_manager_email),
    db: Session = Depends(get_db),
) -> Manager:
    if not email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Manager identity required",
        )

    manager = find_manager(db, email)
    if manager is None:
        logger.warning("[AUTH] rejected non-manager email=%s", email)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized as manager",
        )

    set_request_context(manager_email=manager.email)
    return manager
