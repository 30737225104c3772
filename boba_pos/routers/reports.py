from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from boba_pos.core.config import POPULAR_ITEMS_LIMIT
from boba_pos.core.database import get_db
from boba_pos.deps import require_manager
from boba_pos.models.manager import Manager
from boba_pos.services import reports as report_service

router = APIRouter(prefix="/api/reports", tags=["reports"])


def _bounds(
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
) -> tuple[Optional[str], Optional[str]]:
    # Both spellings are accepted; start/end win when both are sent
    return start or start_date, end or end_date


@router.get("/sales")
def sales(
    bounds: tuple = Depends(_bounds),
    db: Session = Depends(get_db),
    _manager: Manager = Depends(require_manager),
):
    range_ = report_service.resolve_range(*bounds, default=report_service.DEFAULT_ALL_TIME)
    return report_service.sales_summary(db, range_)


@router.get("/popular")
def popular(
    bounds: tuple = Depends(_bounds),
    limit: int = Query(POPULAR_ITEMS_LIMIT, ge=1, le=100),
    db: Session = Depends(get_db),
    _manager: Manager = Depends(require_manager),
):
    range_ = report_service.resolve_range(*bounds, default=report_service.DEFAULT_TODAY)
    return report_service.popular_items(db, range_, limit=limit)


@router.get("/status")
def status_breakdown(
    bounds: tuple = Depends(_bounds),
    db: Session = Depends(get_db),
    _manager: Manager = Depends(require_manager),
):
    range_ = report_service.resolve_range(*bounds, default=report_service.DEFAULT_TODAY)
    return report_service.orders_by_status(db, range_)
