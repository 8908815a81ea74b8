from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from payproof.domain.errors import (
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    StaleOrderError,
    ValidationError,
)
from payproof.domain.model import OrderStatus, PaymentStatus
from payproof.domain.ordering import fail_order
from payproof.domain.review import apply_gateway_callback, confirm_payment, reject_payment
from tests.helpers.checkout import (
    CheckoutState,
    RecordingNotifier,
    admin,
    fake_unit_of_work_factory,
    owner,
    seed_order,
    seed_payment,
    seed_stock,
)

if TYPE_CHECKING:
    from payproof.domain.model import Order, Payment

PRODUCT = uuid4()


def _order_with_payment(state: CheckoutState, *, stock: int = 5) -> tuple[Order, Payment]:
    seed_stock(state, PRODUCT, stock)
    order = seed_order(state, user_id=uuid4(), lines=[(PRODUCT, 2, "10.00")])
    payment = seed_payment(state, order)
    return order, payment


def test_confirm_payment_settles_order(checkout_state: CheckoutState) -> None:
    order, payment = _order_with_payment(checkout_state)
    notifier = RecordingNotifier()

    confirm_payment(
        order.id,
        requester=admin(),
        unit_of_work_factory=fake_unit_of_work_factory(checkout_state),
        transaction_id="MANUAL00001",
        notifier=notifier,
    )

    assert checkout_state.orders[order.id].status is OrderStatus.PAID
    stored = checkout_state.payments[payment.id]
    assert stored.status is PaymentStatus.PAID
    assert stored.transaction_id == "MANUAL00001"
    assert stored.paid_at is not None
    assert checkout_state.stock[PRODUCT].quantity == 3
    assert notifier.verified == [(order.id, "MANUAL00001")]


def test_confirm_payment_without_stock_leaves_everything_pending(
    checkout_state: CheckoutState,
) -> None:
    order, payment = _order_with_payment(checkout_state, stock=1)

    with pytest.raises(InsufficientStockError):
        confirm_payment(
            order.id,
            requester=admin(),
            unit_of_work_factory=fake_unit_of_work_factory(checkout_state),
        )

    assert checkout_state.orders[order.id].status is OrderStatus.PENDING
    assert checkout_state.payments[payment.id].status is PaymentStatus.PENDING
    assert checkout_state.stock[PRODUCT].quantity == 1


def test_reject_payment_fails_order_without_touching_stock(
    checkout_state: CheckoutState,
) -> None:
    order, payment = _order_with_payment(checkout_state)
    notifier = RecordingNotifier()

    reject_payment(
        order.id,
        requester=admin(),
        unit_of_work_factory=fake_unit_of_work_factory(checkout_state),
        reason="blurry screenshot",
        notifier=notifier,
    )

    assert checkout_state.orders[order.id].status is OrderStatus.FAILED
    assert checkout_state.payments[payment.id].status is PaymentStatus.FAILED
    assert checkout_state.stock[PRODUCT].quantity == 5
    assert notifier.rejected == [(order.id, "blurry screenshot")]


def test_review_requires_admin(checkout_state: CheckoutState) -> None:
    order, _ = _order_with_payment(checkout_state)
    factory = fake_unit_of_work_factory(checkout_state)

    with pytest.raises(PermissionDeniedError, match="Only admins"):
        confirm_payment(order.id, requester=owner(), unit_of_work_factory=factory)
    with pytest.raises(PermissionDeniedError):
        reject_payment(order.id, requester=owner(), unit_of_work_factory=factory)


def test_review_requires_payment_record(checkout_state: CheckoutState) -> None:
    order = seed_order(checkout_state, user_id=uuid4(), lines=[(PRODUCT, 1, "1.00")])

    with pytest.raises(NotFoundError, match="Payment not found"):
        confirm_payment(
            order.id,
            requester=admin(),
            unit_of_work_factory=fake_unit_of_work_factory(checkout_state),
        )


def test_review_requires_pending_order(checkout_state: CheckoutState) -> None:
    order, _ = _order_with_payment(checkout_state)
    factory = fake_unit_of_work_factory(checkout_state)
    reject_payment(order.id, requester=admin(), unit_of_work_factory=factory)

    with pytest.raises(InvalidTransitionError, match="Current status: failed"):
        confirm_payment(order.id, requester=admin(), unit_of_work_factory=factory)


def test_review_of_unknown_order(checkout_state: CheckoutState) -> None:
    with pytest.raises(NotFoundError, match="Order not found"):
        reject_payment(
            uuid4(),
            requester=admin(),
            unit_of_work_factory=fake_unit_of_work_factory(checkout_state),
        )


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        ("success", OrderStatus.PAID),
        ("PAID", OrderStatus.PAID),
        ("failed", OrderStatus.FAILED),
        (" rejected ", OrderStatus.FAILED),
    ],
)
def test_gateway_callback_maps_status(
    checkout_state: CheckoutState, status: str, expected: OrderStatus
) -> None:
    order, _ = _order_with_payment(checkout_state)

    apply_gateway_callback(
        order.id,
        status,
        requester=admin(),
        unit_of_work_factory=fake_unit_of_work_factory(checkout_state),
        transaction_ref="GW12345678",
    )

    assert checkout_state.orders[order.id].status is expected


def test_gateway_callback_rejects_unknown_status(checkout_state: CheckoutState) -> None:
    order, _ = _order_with_payment(checkout_state)

    with pytest.raises(ValidationError, match="Invalid payment status: refunded"):
        apply_gateway_callback(
            order.id,
            "refunded",
            requester=admin(),
            unit_of_work_factory=fake_unit_of_work_factory(checkout_state),
        )

    assert checkout_state.orders[order.id].status is OrderStatus.PENDING


def test_reject_loses_to_confirm_committed_first(checkout_state: CheckoutState) -> None:
    order, payment = _order_with_payment(checkout_state)
    factory = fake_unit_of_work_factory(checkout_state)

    with factory() as late:
        loaded = late.repositories.orders.get(order.id)
        assert loaded is not None
        confirm_payment(order.id, requester=admin(), unit_of_work_factory=factory)

        fail_order(loaded, late.repositories.payments.get_for_order(order.id))
        with pytest.raises(StaleOrderError):
            late.commit()

    assert checkout_state.orders[order.id].status is OrderStatus.PAID
    assert checkout_state.payments[payment.id].status is PaymentStatus.PAID
    assert checkout_state.stock[PRODUCT].quantity == 3
