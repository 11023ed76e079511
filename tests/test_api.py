"""Tests for the session API."""

import asyncio
from datetime import date

from fastapi.testclient import TestClient

from booking_client.api.app import create_app
from booking_client.config import Settings
from booking_client.domain.catalog import ItemKind
from booking_client.domain.errors import RemoteCallError, SessionExpiredError
from tests.conftest import (
    FakeNotificationClient,
    FakeOrderClient,
    FakeStockNotificationClient,
    make_record,
)

SESSION = {"user_id": "0771234567", "user_type": "CLIENT", "token": "token"}

CHAIR = {
    "kind": "inventory",
    "item_id": "i-1",
    "name": "Folding chair",
    "price": 25.0,
    "business_id": "biz-1",
    "business_name": "Bloom Events",
}

PLATE = {
    "kind": "plate",
    "item_id": "p-1",
    "name": "Deluxe plate",
    "price": 500.0,
    "business_id": "biz-2",
    "business_name": "Feast Catering",
    "selected_dishes": [
        {"dish_id": "d-1", "dish_name": "Rice", "dish_price": 100.0, "quantity": 2},
        {"dish_id": "d-2", "dish_name": "Curry", "dish_price": 50.0},
    ],
}

CHECKOUT = {
    "customer_name": "Amal Perera",
    "customer_email": "amal@example.com",
    "customer_phone": "0771234567",
    "delivery_address": "12 Lake Rd",
    "delivery_date": "2026-12-01",
}


def test_health(settings: Settings, session_factory) -> None:
    client = TestClient(create_app(settings, session_factory))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_requests_without_session_are_unauthorized(
    settings: Settings, session_factory
) -> None:
    with TestClient(create_app(settings, session_factory)) as client:
        response = client.get("/cart")

    assert response.status_code == 401


def test_cart_and_checkout_flow(
    settings: Settings, session_factory, order_client: FakeOrderClient
) -> None:
    order_client.failures = {"biz-2": RemoteCallError("Vendor closed")}

    with TestClient(create_app(settings, session_factory)) as client:
        assert client.post("/session", json=SESSION).status_code == 200
        client.post("/cart/items", json=CHAIR)
        client.post("/cart/items", json=CHAIR)
        cart = client.post("/cart/items", json=PLATE).json()

        assert cart["total_items"] == 3
        assert cart["total_price"] == 800.0
        assert cart["business_id"] is None

        patched = client.patch(
            "/cart/items/inventory/i-1",
            json={"quantity": 4, "booking_date": "2026-12-01"},
        ).json()
        assert patched["items"][0]["quantity"] == 4
        assert patched["items"][0]["booking_date"] == "2026-12-01"

        response = client.post("/checkout", json=CHECKOUT)

    assert response.status_code == 200
    body = response.json()
    assert body["partial"] is True
    assert [order["title"] for order in body["orders"]] == ["Folding chair"]
    assert body["failed"][0]["business_name"] == "Feast Catering"
    assert body["cart"]["items"] == []


def test_checkout_validation_and_total_failure(
    settings: Settings, session_factory, order_client: FakeOrderClient
) -> None:
    order_client.failures = {"biz-1": RemoteCallError("Out of stock")}

    with TestClient(create_app(settings, session_factory)) as client:
        client.post("/session", json=SESSION)
        empty = client.post("/checkout", json=CHECKOUT)
        client.post("/cart/items", json=CHAIR)
        invalid = client.post("/checkout", json={**CHECKOUT, "customer_email": ""})
        failed = client.post("/checkout", json=CHECKOUT)
        cart = client.get("/cart").json()

    assert empty.status_code == 422
    assert empty.json()["detail"] == "Cart is empty"
    assert invalid.json()["detail"] == "Customer email is required"
    assert failed.status_code == 502
    assert failed.json()["detail"] == "Failed to create orders. Bloom Events: Out of stock"
    assert failed.json()["failed"][0]["error"] == "Out of stock"
    assert len(cart["items"]) == 1


def test_remove_and_clear_cart(settings: Settings, session_factory) -> None:
    with TestClient(create_app(settings, session_factory)) as client:
        client.post("/session", json=SESSION)
        client.post("/cart/items", json=CHAIR)
        client.post("/cart/items", json=PLATE)
        removed = client.delete("/cart/items/plate/p-1").json()
        cleared = client.delete("/cart").json()
        bad_kind = client.delete("/cart/items/widget/p-1")

    assert [item["item_id"] for item in removed["items"]] == ["i-1"]
    assert cleared["items"] == []
    assert bad_kind.status_code == 422


def test_notifications_mark_read(
    settings: Settings,
    session_factory,
    notification_client: FakeNotificationClient,
) -> None:
    notification_client.seed(make_record(1), make_record(2))

    with TestClient(create_app(settings, session_factory)) as client:
        client.post("/session", json=SESSION)
        feed = client.get("/notifications", params={"refresh": True}).json()
        after_one = client.post("/notifications/1/read").json()
        after_all = client.post("/notifications/read-all").json()

    assert feed["unread_count"] == 2
    assert after_one["unread_count"] == 1
    assert after_all["unread_count"] == 0
    assert notification_client.read_calls == [1]
    assert notification_client.read_all_calls == ["0771234567"]


def test_session_expiry_closes_session(
    settings: Settings,
    session_factory,
    notification_client: FakeNotificationClient,
) -> None:
    with TestClient(create_app(settings, session_factory)) as client:
        client.post("/session", json=SESSION)
        notification_client.fail_fetch = SessionExpiredError("Session expired", 401)
        expired = client.get("/notifications", params={"refresh": True})
        after = client.get("/cart")

    assert expired.status_code == 401
    assert after.status_code == 401
    assert "0771234567" in session_factory.closed


def test_orders_and_status_updates(
    settings: Settings, session_factory, order_client: FakeOrderClient
) -> None:
    with TestClient(create_app(settings, session_factory)) as client:
        client.post("/session", json=SESSION)
        client.post("/cart/items", json=CHAIR)
        client.post("/checkout", json=CHECKOUT)
        orders = client.get("/orders").json()["orders"]
        forbidden = client.get("/orders", params={"business_id": "biz-1"})
        updated = client.put("/orders/1/status", json={"status": "cancelled"})
        unknown = client.put("/orders/1/status", json={"status": "lost"})

    assert [order["order_id"] for order in orders] == [1]
    assert forbidden.status_code == 403
    assert updated.json()["status"] == "CANCELLED"
    assert unknown.status_code == 422


def test_logout_closes_session(settings: Settings, session_factory) -> None:
    with TestClient(create_app(settings, session_factory)) as client:
        client.post("/session", json=SESSION)
        assert client.delete("/session").status_code == 200
        response = client.get("/cart")

    assert response.status_code == 401
    assert session_factory.closed == ["0771234567"]


def test_stock_subscriptions_list_and_cancel(
    settings: Settings,
    session_factory,
    stock_client: FakeStockNotificationClient,
) -> None:
    asyncio.run(
        stock_client.subscribe(
            "0771234567", "p-1", ItemKind.PLATE, "Deluxe plate", "biz-2", date(2026, 12, 1)
        )
    )

    with TestClient(create_app(settings, session_factory)) as client:
        client.post("/session", json=SESSION)
        listed = client.get("/stock-subscriptions").json()["subscriptions"]
        cancelled = client.delete("/stock-subscriptions/plate/p-1")
        after = client.get("/stock-subscriptions").json()["subscriptions"]

    assert listed[0]["item_type"] == "PLATE"
    assert listed[0]["requested_date"] == "2026-12-01"
    assert cancelled.status_code == 200
    assert after == []
