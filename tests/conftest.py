"""Pytest fixtures for trackpage tests."""

import os
import random
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from trackpage.carriers import classify
from trackpage.config import Settings
from trackpage.errors import OrderNotFoundError, UpstreamError
from trackpage.models import (
    Fulfillment,
    Order,
    ReplacementTrackingMetafield,
    ShippingAddress,
    StatusPage,
    TrackingEvent,
)

# A Friday afternoon
NOW = datetime(2025, 3, 14, 15, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable stand-in for utc_now()."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeMonotonic:
    def __init__(self):
        self.value = 1000.0

    def __call__(self) -> float:
        return self.value


class FakeGateway:
    """In-memory commerce backend."""

    def __init__(self):
        self.orders: dict[str, Order] = {}
        self.replacements: dict[str, ReplacementTrackingMetafield] = {}
        self.fail = False
        self.order_calls = 0

    def add(self, order: Order, replacement: ReplacementTrackingMetafield | None = None) -> Order:
        self.orders[order.order_number.lstrip("#")] = order
        if replacement is not None:
            self.replacements[str(order.id)] = replacement
        return order

    def fetch_order(self, order_number: str) -> Order:
        self.order_calls += 1
        if self.fail:
            raise UpstreamError("fetch order", "connection refused")
        try:
            return self.orders[order_number.strip().lstrip("#")]
        except KeyError:
            raise OrderNotFoundError(order_number)

    def fetch_replacement_tracking(self, order_id):
        if self.fail:
            raise UpstreamError("fetch metafields", "connection refused")
        return self.replacements.get(str(order_id))


def make_order(
    order_number: str = "#1001",
    created_at: str = "2025-03-03T10:00:00Z",
    tracking_number: str | None = "1Z12345E0205271688",
    fulfilled_at: str | None = "2025-03-05T12:00:00Z",
    delivered_at: str | None = None,
    city: str = "Austin",
    province_code: str = "TX",
) -> Order:
    fulfillments = []
    if tracking_number:
        fulfillments.append(
            Fulfillment(
                status="success",
                shipment_status="delivered" if delivered_at else "in_transit",
                tracking_number=tracking_number,
                tracking_numbers=[tracking_number],
                created_at=fulfilled_at,
                updated_at=delivered_at or fulfilled_at,
            )
        )
    return Order(
        id=4500001,
        order_number=order_number,
        created_at=created_at,
        fulfillment_status="fulfilled" if tracking_number else None,
        financial_status="paid",
        is_delivered=delivered_at is not None,
        delivery_date=delivered_at,
        shipping_address=ShippingAddress(
            name="Jane Doe",
            address1="1 Main St",
            city=city,
            province="Texas",
            province_code=province_code,
            country="United States",
            zip="78701",
        ),
        customer_first_name="Jane",
        customer_last_name="Doe",
        customer_email="jane@example.com",
        fulfillments=fulfillments,
    )


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the host environment out of Settings."""
    for name in list(os.environ):
        if name.upper().startswith(("TRACKPAGE_", "SHOPIFY_", "ADMIN_")):
            monkeypatch.delenv(name)


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def rng():
    """Seeded random source so timelines are reproducible."""
    return random.Random(1234)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def monotonic():
    return FakeMonotonic()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def settings(temp_dir):
    return Settings(
        data_dir=temp_dir / "data",
        shopify_shop_domain="example.myshopify.com",
        shopify_access_token="shpat_test",
        admin_username="admin",
        admin_password="secret",
    )


def make_status_page(page_id="abc123", created_at="2025-03-14T15:00:00Z", saved=False) -> StatusPage:
    return StatusPage(
        id=page_id,
        customer_name="Jane Doe",
        order_number="#1001",
        tracking_number="1Z12345E0205271688",
        carrier=classify("1Z12345E0205271688"),
        destination="Austin, TX 78701",
        shipping_address=ShippingAddress(city="Austin", province_code="TX", zip="78701"),
        fulfillment_status="fulfilled",
        is_delivered=False,
        delivery_date=None,
        events=[TrackingEvent("Order Confirmed", "Online", "Mon, Mar 3, 2025", "9:15 AM")],
        saved=saved,
        created_at=created_at,
        last_updated=created_at,
    )
