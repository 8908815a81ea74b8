from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from payproof.adapters.filesystem import LocalScreenshotStore
from payproof.app import CheckoutServices
from payproof.domain.model import OrderStatus
from payproof.domain.ports import ExtractionFailure
from payproof.web import create_app
from tests.helpers.checkout import (
    CheckoutState,
    FakeExtractor,
    RecordingNotifier,
    fake_unit_of_work_factory,
    seed_order,
    seed_payment,
    seed_stock,
)

if TYPE_CHECKING:
    from pathlib import Path

    import httpx

    from payproof.domain.model import Order

PRODUCT = uuid4()
USER = uuid4()
USER_HEADERS = {"X-User-Id": str(USER)}
ADMIN_HEADERS = {"X-User-Id": str(uuid4()), "X-User-Role": "admin"}
GOOD_TEXT = "Sent $50.00\nTrxID: 9876543210"


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor(GOOD_TEXT)


@pytest.fixture
def client(checkout_state: CheckoutState, extractor: FakeExtractor, tmp_path: Path) -> TestClient:
    seed_stock(checkout_state, PRODUCT, 5)
    services = CheckoutServices(
        unit_of_work_factory=fake_unit_of_work_factory(checkout_state),
        screenshots=LocalScreenshotStore(tmp_path),
        extractor=extractor,
        notifier=RecordingNotifier(),
    )
    return TestClient(create_app(services))


def _pending(state: CheckoutState) -> Order:
    return seed_order(state, user_id=USER, lines=[(PRODUCT, 2, "25.00")])


def _upload(
    client: TestClient, order: Order, *, content_type: str = "image/png"
) -> httpx.Response:
    return client.post(
        f"/api/orders/{order.id}/screenshot",
        files={"screenshot": ("receipt.png", b"png-bytes", content_type)},
        headers=USER_HEADERS,
    )


def test_requests_without_identity_are_unauthorized(client: TestClient) -> None:
    assert client.get("/api/orders/mine").status_code == 401
    assert client.get("/api/orders/mine", headers={"X-User-Id": "nope"}).status_code == 401


def test_create_order(client: TestClient, checkout_state: CheckoutState) -> None:
    response = client.post(
        "/api/orders",
        json={"items": [{"productId": str(PRODUCT), "qty": 2, "price": "25.00"}], "amount": 50},
        headers=USER_HEADERS,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert Decimal(body["amount"]) == Decimal("50.00")
    assert len(checkout_state.orders) == 1


def test_create_order_for_someone_else_is_forbidden(client: TestClient) -> None:
    response = client.post(
        "/api/orders",
        json={"userId": str(uuid4()), "items": [{"productId": str(PRODUCT), "qty": 1, "price": 1}]},
        headers=USER_HEADERS,
    )

    assert response.status_code == 403
    assert response.json() == {
        "success": False,
        "error": "permission_denied",
        "message": "Cannot place an order for another user",
    }


def test_create_order_with_insufficient_stock(client: TestClient) -> None:
    response = client.post(
        "/api/orders",
        json={"items": [{"productId": str(PRODUCT), "qty": 6, "price": 1}]},
        headers=USER_HEADERS,
    )

    assert response.status_code == 409
    assert response.json()["error"] == "insufficient_stock"


def test_create_order_requires_items(client: TestClient) -> None:
    response = client.post("/api/orders", json={"items": []}, headers=USER_HEADERS)

    assert response.status_code == 422


def test_screenshot_upload_pays_order(client: TestClient, checkout_state: CheckoutState) -> None:
    order = _pending(checkout_state)

    response = _upload(client, order)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == "paid"
    assert body["transaction_id"] == "9876543210"
    assert checkout_state.stock[PRODUCT].quantity == 3


def test_screenshot_mismatch_is_a_client_error(
    client: TestClient, checkout_state: CheckoutState, extractor: FakeExtractor
) -> None:
    order = _pending(checkout_state)
    extractor.text = "Sent $10.00\nTrxID: 9876543210"

    response = _upload(client, order)

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["reason"] == "amount_mismatch"
    assert body["status"] == "pending"


def test_screenshot_backend_outage_is_retryable(
    client: TestClient, checkout_state: CheckoutState, extractor: FakeExtractor
) -> None:
    order = _pending(checkout_state)
    extractor.failure = ExtractionFailure.BACKEND_UNAVAILABLE

    response = _upload(client, order)

    assert response.status_code == 503
    assert response.json()["retryable"] is True


def test_screenshot_must_be_an_image(client: TestClient, checkout_state: CheckoutState) -> None:
    order = _pending(checkout_state)

    response = _upload(client, order, content_type="application/pdf")

    assert response.status_code == 422
    assert response.json()["message"] == "Only image files are allowed"


def test_screenshot_for_unknown_order(client: TestClient) -> None:
    response = client.post(
        f"/api/orders/{uuid4()}/screenshot",
        files={"screenshot": ("receipt.png", b"png", "image/png")},
        headers=USER_HEADERS,
    )

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_order_details_and_payment_status(
    client: TestClient, checkout_state: CheckoutState
) -> None:
    order = _pending(checkout_state)
    seed_payment(checkout_state, order)

    details = client.get(f"/api/orders/{order.id}", headers=USER_HEADERS)
    status = client.get(f"/api/orders/{order.id}/payment-status", headers=USER_HEADERS)

    assert details.status_code == 200
    assert details.json()["lines"][0]["quantity"] == 2
    assert details.json()["payment"]["status"] == "pending"
    assert status.status_code == 200
    assert status.json()["payment_status"] == "pending"


def test_order_listings(client: TestClient, checkout_state: CheckoutState) -> None:
    mine = _pending(checkout_state)
    seed_order(checkout_state, user_id=uuid4(), lines=[(PRODUCT, 1, "1.00")])

    own = client.get("/api/orders/mine", headers=USER_HEADERS)
    every = client.get("/api/orders", headers=ADMIN_HEADERS)

    assert [row["order_id"] for row in own.json()] == [str(mine.id)]
    assert len(every.json()) == 2
    assert client.get("/api/orders", headers=USER_HEADERS).status_code == 403


def test_pending_dashboard_is_admin_only(client: TestClient, checkout_state: CheckoutState) -> None:
    order = _pending(checkout_state)

    assert client.get("/api/orders/pending", headers=USER_HEADERS).status_code == 403
    response = client.get("/api/orders/pending", headers=ADMIN_HEADERS)

    assert response.status_code == 200
    assert response.json()[0]["order_id"] == str(order.id)
    assert response.json()[0]["payment_method"] == "N/A"


def test_cancel_order(client: TestClient, checkout_state: CheckoutState) -> None:
    order = _pending(checkout_state)

    response = client.delete(f"/api/orders/{order.id}", headers=USER_HEADERS)
    again = client.delete(f"/api/orders/{order.id}", headers=USER_HEADERS)

    assert response.status_code == 200
    assert response.json()["status"] == "failed"
    assert again.status_code == 409
    assert again.json()["error"] == "invalid_transition"


def test_admin_confirms_payment(client: TestClient, checkout_state: CheckoutState) -> None:
    order = _pending(checkout_state)
    seed_payment(checkout_state, order)

    response = client.put(f"/api/orders/{order.id}/confirm-payment", headers=ADMIN_HEADERS)

    assert response.status_code == 200
    assert response.json()["status"] == "paid"
    assert checkout_state.stock[PRODUCT].quantity == 3


def test_admin_rejects_payment(client: TestClient, checkout_state: CheckoutState) -> None:
    order = _pending(checkout_state)
    seed_payment(checkout_state, order)

    response = client.put(
        f"/api/orders/{order.id}/reject-payment",
        json={"reason": "unreadable"},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 200
    assert checkout_state.orders[order.id].status is OrderStatus.FAILED
    assert checkout_state.stock[PRODUCT].quantity == 5


def test_review_without_payment_record(client: TestClient, checkout_state: CheckoutState) -> None:
    order = _pending(checkout_state)

    response = client.put(f"/api/orders/{order.id}/confirm-payment", headers=ADMIN_HEADERS)

    assert response.status_code == 404


def test_gateway_callback(client: TestClient, checkout_state: CheckoutState) -> None:
    order = _pending(checkout_state)
    seed_payment(checkout_state, order)

    bad = client.post(
        f"/api/orders/{order.id}/payment-callback",
        json={"status": "refunded"},
        headers=ADMIN_HEADERS,
    )
    good = client.post(
        f"/api/orders/{order.id}/payment-callback",
        json={"status": "success", "transactionRef": "GW00012345"},
        headers=ADMIN_HEADERS,
    )

    assert bad.status_code == 422
    assert bad.json()["message"] == "Invalid payment status: refunded"
    assert good.status_code == 200
    assert good.json()["status"] == "paid"


def test_gateway_callback_reusing_transaction_ref_conflicts(
    client: TestClient, checkout_state: CheckoutState
) -> None:
    seed_payment(checkout_state, _pending(checkout_state), transaction_id="GW00012345")
    order = _pending(checkout_state)
    seed_payment(checkout_state, order)

    response = client.post(
        f"/api/orders/{order.id}/payment-callback",
        json={"status": "success", "transactionRef": "GW00012345"},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 409
    assert response.json()["error"] == "duplicate_transaction"
    assert checkout_state.orders[order.id].status is OrderStatus.PENDING
    assert checkout_state.stock[PRODUCT].quantity == 5


def test_stock_changes(client: TestClient) -> None:
    product = uuid4()

    registered = client.post(
        f"/api/stock/{product}", json={"quantity": 2, "register": True}, headers=ADMIN_HEADERS
    )
    restocked = client.post(f"/api/stock/{product}", json={"quantity": 3}, headers=ADMIN_HEADERS)
    forbidden = client.post(f"/api/stock/{product}", json={"quantity": 3}, headers=USER_HEADERS)

    assert registered.json() == {"product_id": str(product), "quantity": 2}
    assert restocked.json() == {"product_id": str(product), "quantity": 5}
    assert forbidden.status_code == 403
