from datetime import date, datetime, time, timezone
from decimal import Decimal

import pytest

from boba_pos.core.errors import ValidationError
from boba_pos.models.menu_item import MenuItem
from boba_pos.models.order import Order
from boba_pos.models.order_item import OrderItem
from boba_pos.services import reports


def _local(day: date, hour: int = 12) -> datetime:
    return datetime.combine(day, time(hour=hour), tzinfo=reports.report_timezone())


def _place_order(db, when: datetime, lines, status="completed"):
    """Insert an order directly so created_at can be pinned to a given day."""
    total = sum(Decimal(str(price)) for _, _, price in lines)
    order = Order(total_price=total, status=status, created_at=when.astimezone(timezone.utc))
    for menu_item_id, quantity, price in lines:
        name = db.get(MenuItem, menu_item_id).name
        order.items.append(
            OrderItem(
                menu_item_id=menu_item_id,
                item_name=name,
                quantity=quantity,
                size="medium",
                sugar_level="normal",
                ice_level="regular",
                toppings=[],
                price=Decimal(str(price)),
            )
        )
    db.add(order)
    db.commit()
    return order.id


def _freeze_today(monkeypatch, day: date):
    monkeypatch.setattr(reports, "_now", lambda: _local(day, hour=15))


def test_sales_summary_defaults_to_all_time(client, db, catalog):
    _place_order(db, _local(date(2024, 1, 5)), [(catalog["Classic Milk Tea"], 1, 5.40)])
    _place_order(db, _local(date(2024, 2, 5)), [(catalog["Mango Green Tea"], 2, 10.80)])

    response = client.get("/api/reports/sales")

    assert response.status_code == 200
    body = response.json()
    assert body["totalOrders"] == 2
    assert body["totalRevenue"] == 16.2
    assert body["avgOrderValue"] == 8.1
    assert body["firstOrder"] < body["lastOrder"]


def test_sales_summary_accepts_both_range_spellings(client, db, catalog):
    _place_order(db, _local(date(2024, 1, 5)), [(catalog["Classic Milk Tea"], 1, 5.40)])
    _place_order(db, _local(date(2024, 2, 5)), [(catalog["Mango Green Tea"], 2, 10.80)])

    short = client.get("/api/reports/sales", params={"start": "2024-02-01", "end": "2024-02-05"}).json()
    long = client.get("/api/reports/sales", params={"startDate": "2024-02-01", "endDate": "2024-02-05"}).json()

    assert short == long
    assert short["totalOrders"] == 1
    assert short["totalRevenue"] == 10.8


def test_sales_summary_with_no_orders(client):
    body = client.get("/api/reports/sales").json()

    assert body == {"totalOrders": 0, "totalRevenue": 0.0, "avgOrderValue": 0.0, "firstOrder": None, "lastOrder": None}


def test_date_only_end_bound_includes_whole_day(client, db, catalog):
    _place_order(db, _local(date(2024, 3, 1), hour=23), [(catalog["Classic Milk Tea"], 1, 5.40)])

    body = client.get("/api/reports/sales", params={"startDate": "2024-03-01", "endDate": "2024-03-01"}).json()

    assert body["totalOrders"] == 1


def test_reversed_or_malformed_range_is_rejected(client):
    reversed_range = client.get("/api/reports/sales", params={"start": "2024-03-02", "end": "2024-03-01"})
    malformed = client.get("/api/reports/status", params={"start": "yesterday"})

    assert reversed_range.status_code == 400
    assert malformed.status_code == 400


def test_popular_items_ranked_by_times_ordered(client, db, catalog, monkeypatch):
    today = date(2024, 5, 20)
    _freeze_today(monkeypatch, today)
    classic, mango = catalog["Classic Milk Tea"], catalog["Mango Green Tea"]
    _place_order(db, _local(today, 9), [(classic, 1, 5.0), (mango, 4, 20.0)])
    _place_order(db, _local(today, 10), [(classic, 2, 10.0)])

    body = client.get("/api/reports/popular").json()

    assert [row["name"] for row in body] == ["Classic Milk Tea", "Mango Green Tea"]
    assert body[0] == {"menuItemId": classic, "name": "Classic Milk Tea", "timesOrdered": 2, "totalQuantity": 3}
    assert body[1]["totalQuantity"] == 4


def test_popular_items_limit_is_configurable(client, db, catalog, monkeypatch):
    today = date(2024, 5, 20)
    _freeze_today(monkeypatch, today)
    _place_order(db, _local(today), [(catalog["Classic Milk Tea"], 1, 5.0), (catalog["Mango Green Tea"], 1, 5.0)])

    assert len(client.get("/api/reports/popular", params={"limit": 1}).json()) == 1
    assert client.get("/api/reports/popular", params={"limit": 0}).status_code == 400


def test_popular_items_default_to_today_on_each_day(client, db, catalog, monkeypatch):
    day_one, day_two = date(2024, 6, 1), date(2024, 6, 2)
    _place_order(db, _local(day_one), [(catalog["Classic Milk Tea"], 1, 5.0)])
    _place_order(db, _local(day_two), [(catalog["Mango Green Tea"], 1, 5.0)])

    _freeze_today(monkeypatch, day_one)
    first = client.get("/api/reports/popular").json()
    _freeze_today(monkeypatch, day_two)
    second = client.get("/api/reports/popular").json()

    assert [row["name"] for row in first] == ["Classic Milk Tea"]
    assert [row["name"] for row in second] == ["Mango Green Tea"]
    assert not {row["menuItemId"] for row in first} & {row["menuItemId"] for row in second}


def test_orders_by_status_groups_today(client, db, catalog, monkeypatch):
    today = date(2024, 7, 4)
    _freeze_today(monkeypatch, today)
    classic = catalog["Classic Milk Tea"]
    _place_order(db, _local(today, 8), [(classic, 1, 5.0)], status="pending")
    _place_order(db, _local(today, 9), [(classic, 1, 6.0)], status="pending")
    _place_order(db, _local(today, 10), [(classic, 1, 7.0)], status="completed")
    _place_order(db, _local(date(2024, 7, 3)), [(classic, 1, 9.0)], status="cancelled")

    body = client.get("/api/reports/status").json()

    assert body == [
        {"status": "pending", "count": 2, "totalValue": 11.0},
        {"status": "completed", "count": 1, "totalValue": 7.0},
    ]


def test_reports_are_idempotent(client, db, catalog, monkeypatch):
    today = date(2024, 8, 1)
    _freeze_today(monkeypatch, today)
    _place_order(db, _local(today), [(catalog["Classic Milk Tea"], 2, 10.0)])

    for path in ("/api/reports/sales", "/api/reports/popular", "/api/reports/status"):
        assert client.get(path).json() == client.get(path).json()


def test_parse_bound_handles_dates_and_datetimes():
    start = reports.parse_bound("2024-01-01")
    end = reports.parse_bound("2024-01-01", end=True)
    zulu = reports.parse_bound("2024-01-01T10:30:00Z")

    assert end > start
    assert (end - start).total_seconds() == pytest.approx(86400, abs=1)
    assert zulu == datetime(2024, 1, 1, 10, 30, tzinfo=timezone.utc)
    with pytest.raises(ValidationError):
        reports.parse_bound("01/02/2024")
