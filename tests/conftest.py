"""Pytest configuration and fixtures."""

import os
from unittest.mock import AsyncMock

import pytest

# Set test environment variables before importing settings
os.environ.pop("STORE_API_URL", None)
os.environ.pop("STORE_API_KEY", None)
os.environ.setdefault("STORE_OWNER_ID", "owner-1")
os.environ.setdefault("CURRENCY_SYMBOL", "₹")

from billstock.models import BillRow, Entity, Field  # noqa: E402
from billstock.sync.remote import InMemoryStore  # noqa: E402


def _entity(entity_id: str, *pairs: tuple[str, str]) -> Entity:
    return Entity(
        id=entity_id,
        fields=tuple(
            Field(id=f"{entity_id}-f{i}", label=label, value=value)
            for i, (label, value) in enumerate(pairs)
        ),
    )


@pytest.fixture
def rice_row():
    """Two units at 10."""
    return BillRow(id="r1", name="Rice", price="10", qty="2")


@pytest.fixture
def customers():
    return (
        _entity("c1", ("Name", "Rahul Sharma"), ("Phone", "9876543210")),
        _entity("c2", ("Name", "Priya Patel"), ("GST", "29ABCDE1234F1Z5")),
    )


@pytest.fixture
def items():
    return (
        _entity("i1", ("Item Name", "Basmati Rice"), ("Net Rate", "65"), ("Unit", "kg")),
        _entity("i2", ("Item Name", "Refined Oil"), ("Net Rate", "130"), ("Unit", "litre")),
        _entity("i3", ("Item Name", "Sugar"), ("Price", "45")),
    )


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def mock_store():
    """A store whose calls are recorded by AsyncMocks."""
    store = AsyncMock()
    store.upsert = AsyncMock(return_value=None)
    store.delete = AsyncMock(return_value=None)
    store.fetch_all = AsyncMock(return_value=[])
    return store


@pytest.fixture
def mock_httpx_client():
    """Create a mock httpx AsyncClient."""
    client = AsyncMock()
    client.request = AsyncMock()
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def mock_bill_record():
    """Bill row as stored remotely."""
    return {
        "id": "b7",
        "user_id": "owner-1",
        "num": 7,
        "rows": [{"id": "r1", "name": "Sugar", "price": "45", "qty": "2"}],
        "customer": "Priya Patel",
        "saved_at": 1700000000000,
        "total_amount": 90,
        "payments": [
            {"id": "p1", "amount": 50, "mode": "upi", "paid_at": 1700000000000},
            {"id": "p2", "amount": 40, "mode": "cash", "paid_at": 1700000500000, "note": "rest"},
        ],
        "paid_amount": None,
    }
