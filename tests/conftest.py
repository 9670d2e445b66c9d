from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from inventario.core.dependencies import get_api_client
from inventario.core.exceptions import ExternalApiError
from inventario.main import app
from inventario.modules.logistics.quantity import normalize_products
from inventario.modules.logistics.schemas import Department, Movement, ProductSelection


class FakeApiClient:
    """API remota en memoria; registra las llamadas recibidas."""

    def __init__(self, products=None, movements=None, departments=None):
        self.raw_products = products or []
        self.movements = movements or []
        self.departments = departments or []
        self.calls = []
        self.fail_on = set()

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.fail_on:
            raise ExternalApiError("servidor caído", errors=["timeout"])

    def get_products(self):
        self._call("get_products")
        return normalize_products(self.raw_products)

    def update_product(self, product_id, data):
        self._call("update_product", product_id, data)
        return {"success": True}

    def add_quantities(self, items):
        self._call("add_quantities", [i.model_dump(by_alias=True) for i in items])
        return {"success": True}

    def remove_quantities(self, items, taken_by=None):
        self._call("remove_quantities", [i.model_dump(by_alias=True) for i in items], taken_by)
        return {"success": True}

    def create_movement(self, payload):
        self._call("create_movement", payload)
        return {"success": True, "message": "Movimiento creado", "data": {"id": "MOV000001"}}

    def get_movements(self, **filters):
        self._call("get_movements", filters)
        return list(self.movements)

    def get_all_movements(self, **filters):
        self._call("get_all_movements", filters)
        return list(self.movements)

    def get_statistics(self, period="month"):
        self._call("get_statistics", period)
        return {"totalMovements": len(self.movements)}

    def get_departments(self):
        self._call("get_departments")
        return list(self.departments)

    def create_department(self, payload):
        self._call("create_department", payload)
        return Department(id="DEPT000099", **payload)


@pytest.fixture
def raw_products():
    return [
        {"id": "P1", "name": "Flour", "unit": "kg", "quantity": 20, "price": 1.5},
        {"id": "P2", "name": "Sugar", "unit": "kg", "q": 5},
        {"id": "P3", "name": "Milk", "unit": "bottles", "stock": 0},
    ]


@pytest.fixture
def departments():
    return [
        Department(id="DEPT1", name="Bakery", icon="🍞", color="#f59e0b"),
        Department(id="DEPT2", name="Pastry", icon="🥐", color="#84cc16"),
    ]


@pytest.fixture
def movements():
    return [
        Movement(
            id="M1", type="stock_in", timestamp=datetime(2025, 10, 30, 14, 0),
            stockManager="Ana", supplier="Molinos SA",
            products=[{"productId": "P1", "productName": "Flour", "quantity": 10, "unit": "kg", "unitPrice": 1.5}],
        ),
        Movement(
            id="M2", type="distribution", timestamp=datetime(2025, 10, 30, 9, 30),
            stockManager="Luis", department="DEPT1",
            products=[
                {"productId": "P1", "productName": "Flour", "quantity": 4, "unit": "kg"},
                {"productId": "P2", "productName": "Sugar", "quantity": 2, "unit": "kg"},
            ],
        ),
        Movement(
            id="M3", type="distribution", timestamp=datetime(2025, 10, 29, 14, 0),
            stockManager="Luis", department="DEPT2", notes="evento",
            products=[{"productId": "P2", "productName": "Sugar", "quantity": 3, "unit": "kg"}],
        ),
        Movement(
            id="M4", type="stock_in", timestamp=datetime(2025, 10, 10, 8, 0),
            stockManager="Ana",
            products=[{"productId": "P3", "productName": "Milk", "quantity": 12, "unit": "bottles"}],
        ),
    ]


@pytest.fixture
def fake_api(raw_products, movements, departments):
    return FakeApiClient(raw_products, movements, departments)


@pytest.fixture
def client(fake_api):
    app.dependency_overrides[get_api_client] = lambda: fake_api
    yield TestClient(app)
    app.dependency_overrides.clear()


def rows(*specs):
    """(product_id, quantity, action) -> ProductSelection"""
    return [
        ProductSelection(product_id=pid, quantity=qty, action=action)
        for pid, qty, action in specs
    ]


@pytest.fixture
def make_rows():
    return rows
