from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from payproof.adapters.filesystem import LocalScreenshotStore
from payproof.adapters.sqlalchemy.repositories import SqlAlchemyPaymentRepository
from payproof.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCheckoutUnitOfWork,
    build_engine,
    shutdown,
    startup,
)
from payproof.domain.errors import InsufficientStockError, StaleOrderError
from payproof.domain.inventory import register_stock, stock_level
from payproof.domain.model import OrderStatus, PaymentStatus
from payproof.domain.ordering import (
    OrderItemRequest,
    PlaceOrderRequest,
    get_order_details,
    get_payment_status,
    place_order,
)
from payproof.domain.reconciliation import (
    FailureReason,
    ScreenshotReconciler,
    ScreenshotUpload,
    ScreenshotVerification,
)
from payproof.domain.review import confirm_payment
from tests.helpers.checkout import FakeExtractor, admin, owner

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

    from payproof.domain.model import Order, Requester

    UnitOfWorkFactory = Callable[[], SqlAlchemyCheckoutUnitOfWork]

PRODUCT = uuid4()


def _place(factory: UnitOfWorkFactory, requester: Requester, quantity: int = 1) -> Order:
    return place_order(
        PlaceOrderRequest(
            user_id=requester.user_id,
            items=[
                OrderItemRequest(product_id=PRODUCT, quantity=quantity, unit_price=Decimal("50"))
            ],
        ),
        unit_of_work_factory=factory,
    )


def _upload(order: Order, requester: Requester) -> ScreenshotUpload:
    return ScreenshotUpload(
        order_id=order.id,
        requester=requester,
        image=b"png",
        filename="receipt.png",
        content_type="image/png",
    )


@pytest.mark.integration
def test_screenshot_payment_round_trip(
    sqlite_unit_of_work: UnitOfWorkFactory, tmp_path: Path
) -> None:
    register_stock(PRODUCT, 2, requester=admin(), unit_of_work_factory=sqlite_unit_of_work)
    buyer = owner()
    order = _place(sqlite_unit_of_work, buyer)
    reconciler = ScreenshotReconciler(
        unit_of_work_factory=sqlite_unit_of_work,
        extractor=FakeExtractor("You received $50.00\nTrxID: 9876543210\nMar 5, 2025 | 3:45 PM"),
        screenshots=LocalScreenshotStore(tmp_path),
    )

    result = reconciler.verify(_upload(order, buyer))

    assert result.success
    details = get_order_details(order.id, requester=buyer, unit_of_work_factory=sqlite_unit_of_work)
    assert details.status is OrderStatus.PAID
    assert details.payment is not None
    assert details.payment.status is PaymentStatus.PAID
    assert details.payment.transaction_id == "9876543210"
    assert details.payment.screenshot_path == result.screenshot_path
    assert stock_level(PRODUCT, unit_of_work_factory=sqlite_unit_of_work) == 1


@pytest.mark.integration
def test_reused_transaction_id_is_rejected(
    sqlite_unit_of_work: UnitOfWorkFactory, tmp_path: Path
) -> None:
    register_stock(PRODUCT, 5, requester=admin(), unit_of_work_factory=sqlite_unit_of_work)
    first_buyer, second_buyer = owner(), owner()
    first = _place(sqlite_unit_of_work, first_buyer)
    second = _place(sqlite_unit_of_work, second_buyer)
    reconciler = ScreenshotReconciler(
        unit_of_work_factory=sqlite_unit_of_work,
        extractor=FakeExtractor("Sent $50.00\nTrxID: 9876543210"),
        screenshots=LocalScreenshotStore(tmp_path),
    )

    assert reconciler.verify(_upload(first, first_buyer)).success
    result = reconciler.verify(_upload(second, second_buyer))

    assert result.reason is FailureReason.DUPLICATE_TRANSACTION
    status = get_payment_status(
        second.id, requester=second_buyer, unit_of_work_factory=sqlite_unit_of_work
    )
    assert status.order_status is OrderStatus.PENDING
    assert status.payment_status is PaymentStatus.PENDING
    assert stock_level(PRODUCT, unit_of_work_factory=sqlite_unit_of_work) == 4
    assert len(list(tmp_path.iterdir())) == 1


@pytest.mark.integration
def test_stale_stock_check_cannot_oversell(
    sqlite_unit_of_work: UnitOfWorkFactory, tmp_path: Path
) -> None:
    register_stock(PRODUCT, 1, requester=admin(), unit_of_work_factory=sqlite_unit_of_work)
    first_buyer, second_buyer = owner(), owner()
    # both orders pass the advisory check against the same single unit
    first = _place(sqlite_unit_of_work, first_buyer)
    second = _place(sqlite_unit_of_work, second_buyer)
    reconciler = ScreenshotReconciler(
        unit_of_work_factory=sqlite_unit_of_work,
        extractor=FakeExtractor("Sent $50.00\nTrxID: 1111111111"),
        screenshots=LocalScreenshotStore(tmp_path),
    )
    assert reconciler.verify(_upload(first, first_buyer)).success

    reconciler.extractor = FakeExtractor("Sent $50.00\nTrxID: 2222222222")
    result = reconciler.verify(_upload(second, second_buyer))

    assert result.reason is FailureReason.INSUFFICIENT_STOCK
    assert stock_level(PRODUCT, unit_of_work_factory=sqlite_unit_of_work) == 0
    with pytest.raises(InsufficientStockError):
        confirm_payment(second.id, requester=admin(), unit_of_work_factory=sqlite_unit_of_work)
    status = get_payment_status(
        second.id, requester=second_buyer, unit_of_work_factory=sqlite_unit_of_work
    )
    assert status.order_status is OrderStatus.PENDING


@pytest.fixture
def file_unit_of_work(tmp_path: Path) -> Iterator[UnitOfWorkFactory]:
    # separate connections per unit of work, unlike the shared in-memory database
    startup(engine=build_engine(f"sqlite+pysqlite:///{tmp_path / 'checkout.db'}"), force=True)
    try:
        yield SqlAlchemyCheckoutUnitOfWork
    finally:
        shutdown()


def _interleave_before_duplicate_check(
    monkeypatch: pytest.MonkeyPatch, action: Callable[[], object]
) -> list[object]:
    """Run ``action`` once, after the order was loaded but before the commit."""

    original = SqlAlchemyPaymentRepository.transaction_id_exists
    started: list[bool] = []
    results: list[object] = []

    def interleaved(self: SqlAlchemyPaymentRepository, transaction_id: str) -> bool:
        if not started:
            started.append(True)
            results.append(action())
        return original(self, transaction_id)

    monkeypatch.setattr(SqlAlchemyPaymentRepository, "transaction_id_exists", interleaved)
    return results


@pytest.mark.integration
def test_admin_confirm_during_upload_settles_order_once(
    file_unit_of_work: UnitOfWorkFactory, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    register_stock(PRODUCT, 5, requester=admin(), unit_of_work_factory=file_unit_of_work)
    buyer = owner()
    order = _place(file_unit_of_work, buyer)
    uploads = tmp_path / "uploads"
    reconciler = ScreenshotReconciler(
        unit_of_work_factory=file_unit_of_work,
        extractor=FakeExtractor("Sent $50.00\nTrxID: 9876543210"),
        screenshots=LocalScreenshotStore(uploads),
    )
    confirmed = _interleave_before_duplicate_check(
        monkeypatch,
        lambda: confirm_payment(
            order.id, requester=admin(), unit_of_work_factory=file_unit_of_work
        ),
    )

    with pytest.raises(StaleOrderError):
        reconciler.verify(_upload(order, buyer))

    assert len(confirmed) == 1
    assert stock_level(PRODUCT, unit_of_work_factory=file_unit_of_work) == 4
    details = get_order_details(order.id, requester=buyer, unit_of_work_factory=file_unit_of_work)
    assert details.status is OrderStatus.PAID
    assert details.payment is not None
    assert details.payment.transaction_id is None
    assert list(uploads.iterdir()) == []


@pytest.mark.integration
def test_two_uploads_for_one_order_settle_it_once(
    file_unit_of_work: UnitOfWorkFactory, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    register_stock(PRODUCT, 5, requester=admin(), unit_of_work_factory=file_unit_of_work)
    buyer = owner()
    order = _place(file_unit_of_work, buyer)
    uploads = tmp_path / "uploads"
    first = ScreenshotReconciler(
        unit_of_work_factory=file_unit_of_work,
        extractor=FakeExtractor("Sent $50.00\nTrxID: 1111111111"),
        screenshots=LocalScreenshotStore(uploads),
    )
    second = ScreenshotReconciler(
        unit_of_work_factory=file_unit_of_work,
        extractor=FakeExtractor("Sent $50.00\nTrxID: 2222222222"),
        screenshots=LocalScreenshotStore(uploads),
    )
    winners = _interleave_before_duplicate_check(
        monkeypatch, lambda: second.verify(_upload(order, buyer))
    )

    with pytest.raises(StaleOrderError):
        first.verify(_upload(order, buyer))

    (winner,) = winners
    assert isinstance(winner, ScreenshotVerification)
    assert winner.success
    assert stock_level(PRODUCT, unit_of_work_factory=file_unit_of_work) == 4
    status = get_payment_status(order.id, requester=buyer, unit_of_work_factory=file_unit_of_work)
    assert status.order_status is OrderStatus.PAID
    details = get_order_details(order.id, requester=buyer, unit_of_work_factory=file_unit_of_work)
    assert details.payment is not None
    assert details.payment.transaction_id == "2222222222"
    assert len(list(uploads.iterdir())) == 1
