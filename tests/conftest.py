"""
Shared fixtures for order search tests
"""
from datetime import datetime
from typing import Dict, List, Optional

import pytest

from order_search.database.repository import OrderRepository
from order_search.search.models import SearchDocument


def build_document(**overrides) -> SearchDocument:
    data = {
        "id": "1",
        "order_number": "ORD-2024-001",
        "customer_name": "Alice Smith",
        "customer_email": "alice@example.com",
        "status": "PENDING",
        "payment_status": "PAID",
        "fulfillment_status": "UNFULFILLED",
        "total_amount": 100.0,
        "created_at": datetime(2024, 1, 15, 10, 30),
        "updated_at": datetime(2024, 1, 15, 10, 30),
        "shipping_address": {
            "name": "Alice Smith",
            "email": "alice@example.com",
            "street": "1 Main St",
            "city": "Austin",
            "state": "TX",
            "country": "US",
            "postalCode": "73301",
        },
        "billing_address": None,
        "notes": "",
    }
    data.update(overrides)
    return SearchDocument(**data)


def build_order(**overrides) -> Dict:
    data = {
        "id": "1",
        "order_number": "ORD-2024-001",
        "status": "PENDING",
        "payment_status": "PAID",
        "fulfillment_status": "UNFULFILLED",
        "total_amount": 100,
        "shipping_address": {"name": "Alice Smith", "email": "alice@example.com", "city": "Austin"},
        "billing_address": None,
        "notes": None,
        "created_at": datetime(2024, 1, 15, 10, 30),
        "updated_at": datetime(2024, 1, 15, 10, 30),
    }
    data.update(overrides)
    return data


class FakeOrderRepository(OrderRepository):
    """In-memory order source"""

    def __init__(self, orders: Optional[List[Dict]] = None):
        self.orders: Dict[str, Dict] = {str(o["id"]): o for o in (orders or [])}
        self.fail = False
        self.changed_since_calls: List[datetime] = []

    def _check(self):
        if self.fail:
            raise ConnectionError("order store unreachable")

    def fetch_changed_since(self, timestamp):
        self._check()
        self.changed_since_calls.append(timestamp)
        return list(self.orders.values())

    def fetch_all(self):
        self._check()
        return list(self.orders.values())

    def fetch_one(self, order_id):
        self._check()
        return self.orders.get(str(order_id))

    def count_all(self):
        self._check()
        return len(self.orders)


@pytest.fixture
def make_document():
    return build_document


@pytest.fixture
def make_order():
    return build_order


@pytest.fixture
def fake_repository():
    return FakeOrderRepository([
        build_order(id="1", order_number="ORD-2024-001"),
        build_order(id="2", order_number="ORD-2024-002", status="SHIPPED", total_amount=500),
    ])


@pytest.fixture
def make_repository():
    return FakeOrderRepository
