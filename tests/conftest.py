from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from boba_pos.core.database import StorageClient
from boba_pos.deps import require_manager
from boba_pos.main import create_app
from boba_pos.models.inventory import InventoryItem
from boba_pos.models.manager import Manager
from boba_pos.models.menu_item import MenuItem
from boba_pos.models.topping import Topping
from tests.fixtures_data import MANAGER_EMAIL, MENU_ITEMS, STOCK, TOPPINGS


@pytest.fixture
def storage():
    client = StorageClient("sqlite+pysqlite:///:memory:")
    client.create_all()
    yield client
    client.dispose()


@pytest.fixture
def db(storage):
    session = storage.session()
    yield session
    session.close()


@pytest.fixture
def app(storage):
    application = create_app(storage)
    application.dependency_overrides[require_manager] = lambda: Manager(id=1, email=MANAGER_EMAIL)
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def catalog(db):
    """Menu items and toppings; returns menu item ids keyed by name."""
    for topping in TOPPINGS:
        db.add(Topping(id=topping["id"], name=topping["name"], price=Decimal(topping["price"])))
    items = [MenuItem(**{**fields, "base_price": Decimal(fields["base_price"])}) for fields in MENU_ITEMS]
    db.add_all(items)
    db.commit()
    return {item.name: item.id for item in items}


@pytest.fixture
def stock(db):
    for name, quantity in STOCK.items():
        db.add(InventoryItem(ingredient_name=name, quantity=Decimal(quantity), unit="oz", min_quantity=Decimal("1")))
    db.commit()
    return dict(STOCK)

