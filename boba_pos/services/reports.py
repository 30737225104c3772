"""Read-only aggregations over orders, line items and the inventory ledger.

Range bounds are interpreted in ``REPORT_TIMEZONE`` and compared in UTC.
Defaults when no bound is given: ``popular_items`` and ``orders_by_status``
cover today (local midnight to end of day), ``sales_summary`` covers all
time. The inventory usage report always needs both bounds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from boba_pos.core.config import POPULAR_ITEMS_LIMIT, REPORT_TIMEZONE
from boba_pos.core.errors import ValidationError
from boba_pos.models.inventory import InventoryItem, InventoryUsage
from boba_pos.models.menu_item import MenuItem
from boba_pos.models.order import Order
from boba_pos.models.order_item import OrderItem
from boba_pos.services.inventory import usage_ledger_enabled

logger = logging.getLogger(__name__)
REPORTS_PREFIX = "[REPORTS]"

DEFAULT_TODAY = "today"
DEFAULT_ALL_TIME = "all"


@dataclass(frozen=True)
class DateRange:
    start: Optional[datetime]
    end: Optional[datetime]

    def apply(self, query, column):
        if self.start is not None:
            query = query.filter(column >= self.start)
        if self.end is not None:
            query = query.filter(column <= self.end)
        return query


def report_timezone(name: str = REPORT_TIMEZONE) -> tzinfo:
    if not name or name.lower() == "local":
        return datetime.now().astimezone().tzinfo or timezone.utc
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        logger.warning("%s unknown REPORT_TIMEZONE=%s, using UTC", REPORTS_PREFIX, name)
        return timezone.utc


def _now() -> datetime:
    return datetime.now(report_timezone())


def _iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    # SQLite hands back naive values; everything is stored in UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=report_timezone())
    return value.astimezone(timezone.utc)


def parse_bound(value: str, *, end: bool = False) -> datetime:
    """Parse an ISO date or datetime into a UTC instant.

    A date-only end bound is inclusive, so it extends to the last
    microsecond of that day.
    """
    text = (value or "").strip()
    if not text:
        raise ValidationError("Date bound is empty")
    if len(text) == 10:
        try:
            day = date.fromisoformat(text)
        except ValueError as exc:
            raise ValidationError(f"Invalid date: {value}") from exc
        return _to_utc(datetime.combine(day, time.max if end else time.min))
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return _to_utc(datetime.fromisoformat(text))
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {value}") from exc


def today_range() -> DateRange:
    today = _now().date()
    return DateRange(
        start=_to_utc(datetime.combine(today, time.min)),
        end=_to_utc(datetime.combine(today, time.max)),
    )


def resolve_range(
    start: Optional[str] = None,
    end: Optional[str] = None,
    default: str = DEFAULT_TODAY,
) -> DateRange:
    if not start and not end:
        if default == DEFAULT_TODAY:
            return today_range()
        return DateRange(start=None, end=None)

    range_ = DateRange(
        start=parse_bound(start) if start else None,
        end=parse_bound(end, end=True) if end else None,
    )
    if range_.start and range_.end and range_.start > range_.end:
        raise ValidationError("Start date must not be after end date")
    return range_


def _money(value) -> float:
    return round(float(value or 0), 2)


def sales_summary(db: Session, range_: DateRange) -> dict:
    query = db.query(
        func.count(Order.id),
        func.coalesce(func.sum(Order.total_price), 0),
        func.min(Order.created_at),
        func.max(Order.created_at),
    )
    total_orders, total_revenue, first_order, last_order = range_.apply(query, Order.created_at).one()
    total_orders = int(total_orders or 0)
    revenue = _money(total_revenue)
    return {
        "totalOrders": total_orders,
        "totalRevenue": revenue,
        "avgOrderValue": round(revenue / total_orders, 2) if total_orders else 0.0,
        "firstOrder": _iso(first_order),
        "lastOrder": _iso(last_order),
    }


def popular_items(db: Session, range_: DateRange, limit: int = POPULAR_ITEMS_LIMIT) -> list[dict]:
    if limit < 1:
        raise ValidationError("limit must be >= 1")
    times_ordered = func.count(OrderItem.id).label("times_ordered")
    total_quantity = func.coalesce(func.sum(OrderItem.quantity), 0).label("total_quantity")
    query = (
        db.query(MenuItem.id, MenuItem.name, times_ordered, total_quantity)
        .join(OrderItem, OrderItem.menu_item_id == MenuItem.id)
        .join(Order, Order.id == OrderItem.order_id)
    )
    rows = (
        range_.apply(query, Order.created_at)
        .group_by(MenuItem.id, MenuItem.name)
        .order_by(times_ordered.desc(), total_quantity.desc(), MenuItem.name.asc())
        .limit(limit)
        .all()
    )
    return [
        {
            "menuItemId": row.id,
            "name": row.name,
            "timesOrdered": int(row.times_ordered),
            "totalQuantity": int(row.total_quantity or 0),
        }
        for row in rows
    ]


def orders_by_status(db: Session, range_: DateRange) -> list[dict]:
    count = func.count(Order.id).label("count")
    total_value = func.coalesce(func.sum(Order.total_price), 0).label("total_value")
    query = db.query(Order.status, count, total_value)
    rows = range_.apply(query, Order.created_at).group_by(Order.status).order_by(count.desc(), Order.status.asc()).all()
    return [{"status": row.status, "count": int(row.count), "totalValue": _money(row.total_value)} for row in rows]


def inventory_usage_report(db: Session, start: Optional[str], end: Optional[str]) -> dict:
    if not start or not end:
        raise ValidationError("Start date and end date are required")
    range_ = resolve_range(start, end)
    date_range = {"startDate": start, "endDate": end}

    if not usage_ledger_enabled(db):
        orders_query = db.query(func.count(Order.id), func.coalesce(func.sum(Order.total_price), 0))
        total_orders, total_revenue = range_.apply(orders_query, Order.created_at).one()
        snapshot = db.query(InventoryItem).order_by(InventoryItem.ingredient_name.asc()).all()
        logger.info("%s usage report basic range=%s", REPORTS_PREFIX, date_range)
        return {
            "reportType": "basic",
            "dateRange": date_range,
            "summary": {
                "totalOrders": int(total_orders or 0),
                "totalRevenue": _money(total_revenue),
                "message": "Detailed inventory usage tracking not enabled",
            },
            "currentInventory": [
                {
                    "id": item.id,
                    "ingredient_name": item.ingredient_name,
                    "quantity": float(item.quantity),
                    "unit": item.unit,
                    "min_quantity": float(item.min_quantity),
                }
                for item in snapshot
            ],
        }

    line_cost = InventoryUsage.quantity_used * InventoryUsage.unit_cost
    total_cost = func.coalesce(func.sum(line_cost), 0).label("total_cost")
    rows = (
        db.query(
            InventoryItem.ingredient_name,
            InventoryItem.unit,
            func.coalesce(func.sum(InventoryUsage.quantity_used), 0).label("total_used"),
            func.coalesce(func.avg(InventoryUsage.unit_cost), 0).label("avg_unit_cost"),
            total_cost,
            func.count(InventoryUsage.id).label("usage_count"),
        )
        # Range lives in the join condition so unused ingredients still appear
        .outerjoin(
            InventoryUsage,
            and_(
                InventoryUsage.inventory_id == InventoryItem.id,
                InventoryUsage.used_at >= range_.start,
                InventoryUsage.used_at <= range_.end,
            ),
        )
        .group_by(InventoryItem.id, InventoryItem.ingredient_name, InventoryItem.unit)
        .order_by(total_cost.desc(), InventoryItem.ingredient_name.asc())
        .all()
    )
    items = [
        {
            "ingredientName": row.ingredient_name,
            "unit": row.unit,
            "totalUsed": float(row.total_used or 0),
            "avgUnitCost": float(row.avg_unit_cost or 0),
            "totalCost": float(row.total_cost or 0),
            "usageCount": int(row.usage_count or 0),
        }
        for row in rows
    ]
    logger.info("%s usage report detailed range=%s ingredients=%s", REPORTS_PREFIX, date_range, len(items))
    return {
        "reportType": "detailed",
        "dateRange": date_range,
        "summary": {
            "itemsUsed": sum(1 for item in items if item["usageCount"]),
            "totalCost": round(sum(item["totalCost"] for item in items), 2),
            "totalUnitsUsed": sum(item["totalUsed"] for item in items),
        },
        "items": items,
    }
