"""Order lifecycle operations.

``place_order`` and ``cancel_order`` open their own unit of work. ``settle_order``
and ``fail_order`` only mutate what they are given, so callers can compose them
with other writes inside one transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from payproof.domain.errors import (
    InsufficientStockError,
    NotFoundError,
    PermissionDeniedError,
)
from payproof.domain.model import Order, OrderLine, OrderStatus, PaymentStatus, utcnow

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from decimal import Decimal
    from uuid import UUID

    from payproof.domain.model import Clock, Payment, Requester
    from payproof.domain.ports import (
        CheckoutRepositories,
        CheckoutUnitOfWorkFactory,
        StockLedger,
    )

log = logging.getLogger(__name__)

NO_PAYMENT_METHOD = "N/A"


@dataclass(frozen=True, slots=True)
class OrderItemRequest:
    product_id: UUID
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True, slots=True)
class PlaceOrderRequest:
    user_id: UUID
    items: Sequence[OrderItemRequest]
    amount: Decimal | None = None
    address_id: UUID | None = None


@dataclass(frozen=True, slots=True)
class OrderLineView:
    product_id: UUID
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


@dataclass(frozen=True, slots=True)
class PaymentView:
    payment_id: UUID
    amount: Decimal
    method: str
    currency: str
    status: PaymentStatus
    transaction_id: str | None
    transaction_date: datetime | None
    screenshot_path: str | None
    paid_at: datetime | None
    created_at: datetime

    @classmethod
    def of(cls, payment: Payment) -> PaymentView:
        return cls(
            payment_id=payment.id,
            amount=payment.amount,
            method=payment.method,
            currency=payment.currency,
            status=payment.status,
            transaction_id=payment.transaction_id,
            transaction_date=payment.transaction_date,
            screenshot_path=payment.screenshot_path,
            paid_at=payment.paid_at,
            created_at=payment.created_at,
        )


@dataclass(frozen=True, slots=True)
class OrderDetails:
    order_id: UUID
    user_id: UUID
    amount: Decimal
    status: OrderStatus
    address_id: UUID | None
    created_at: datetime
    updated_at: datetime
    lines: tuple[OrderLineView, ...] = ()
    payment: PaymentView | None = None


@dataclass(frozen=True, slots=True)
class OrderSummary:
    order_id: UUID
    user_id: UUID
    amount: Decimal
    status: OrderStatus
    created_at: datetime
    item_count: int
    paid_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class PendingOrderSummary:
    """Row of the admin dashboard of orders awaiting payment review."""

    order_id: UUID
    user_id: UUID
    amount: Decimal
    created_at: datetime
    item_count: int
    payment_method: str = NO_PAYMENT_METHOD
    screenshot_path: str | None = None


@dataclass(frozen=True, slots=True)
class PaymentStatusView:
    order_id: UUID
    order_status: OrderStatus
    payment_status: PaymentStatus
    amount: Decimal
    method: str
    created_at: datetime


def place_order(
    request: PlaceOrderRequest,
    *,
    unit_of_work_factory: CheckoutUnitOfWorkFactory,
    clock: Clock = utcnow,
) -> Order:
    """Create a pending order once every product passes the advisory stock check.

    Nothing is written when any line fails validation or the stock check.
    """

    lines = [
        OrderLine(product_id=item.product_id, quantity=item.quantity, unit_price=item.unit_price)
        for item in request.items
    ]
    order = Order.place(
        user_id=request.user_id,
        lines=lines,
        amount=request.amount,
        address_id=request.address_id,
        now=clock(),
    )
    with unit_of_work_factory() as uow:
        _check_stock(order, uow.repositories.stock)
        uow.repositories.orders.add(order)
        uow.commit()
    log.info("Placed order %s for user %s (amount %s)", order.id, order.user_id, order.amount)
    return order


def settle_order(order: Order, ledger: StockLedger, *, now: datetime | None = None) -> None:
    """Decrement stock for every product on ``order`` and mark it paid.

    Must run inside the caller's unit of work; a failed decrement aborts all of it.
    """

    order.require_pending("settle")
    for product_id, quantity in order.quantities_by_product().items():
        ledger.decrement(product_id, quantity)
    order.mark_paid(now=now)


def fail_order(
    order: Order, payment: Payment | None = None, *, now: datetime | None = None
) -> None:
    order.mark_failed(now=now)
    if payment is not None:
        payment.mark_failed()


def cancel_order(
    order_id: UUID,
    *,
    requester: Requester,
    unit_of_work_factory: CheckoutUnitOfWorkFactory,
    clock: Clock = utcnow,
) -> Order:
    """Cancel a pending order on behalf of its owner or an admin."""

    with unit_of_work_factory() as uow:
        order = load_owned_order(uow.repositories, order_id, requester=requester, action="cancel")
        payment = uow.repositories.payments.get_for_order(order_id)
        fail_order(order, payment, now=clock())
        uow.commit()
    log.info("Order %s cancelled by %s", order_id, requester.user_id)
    return order


def get_order_details(
    order_id: UUID,
    *,
    requester: Requester,
    unit_of_work_factory: CheckoutUnitOfWorkFactory,
) -> OrderDetails:
    with unit_of_work_factory() as uow:
        order = load_owned_order(
            uow.repositories, order_id, requester=requester, require_pending=False
        )
        payment = uow.repositories.payments.get_for_order(order_id)
        return OrderDetails(
            order_id=order.id,
            user_id=order.user_id,
            amount=order.amount,
            status=order.status,
            address_id=order.address_id,
            created_at=order.created_at,
            updated_at=order.updated_at,
            lines=tuple(
                OrderLineView(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    subtotal=line.subtotal,
                )
                for line in order.lines
            ),
            payment=PaymentView.of(payment) if payment is not None else None,
        )


def list_order_summaries(
    *,
    requester: Requester,
    unit_of_work_factory: CheckoutUnitOfWorkFactory,
    all_users: bool = False,
) -> list[OrderSummary]:
    """Summaries newest first; ``all_users`` is reserved for admins."""

    if all_users and not requester.is_admin:
        raise PermissionDeniedError("Only admins can list every order")
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        if all_users:
            orders = repositories.orders.list_all()
        else:
            orders = repositories.orders.list_for_user(requester.user_id)
        summaries: list[OrderSummary] = []
        for order in orders:
            payment = repositories.payments.get_for_order(order.id)
            summaries.append(
                OrderSummary(
                    order_id=order.id,
                    user_id=order.user_id,
                    amount=order.amount,
                    status=order.status,
                    created_at=order.created_at,
                    item_count=order.item_count,
                    paid_at=payment.paid_at if payment is not None else None,
                )
            )
        return summaries


def list_pending_orders(
    *,
    requester: Requester,
    unit_of_work_factory: CheckoutUnitOfWorkFactory,
) -> list[PendingOrderSummary]:
    if not requester.is_admin:
        raise PermissionDeniedError("Only admins can review pending orders")
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        pending: list[PendingOrderSummary] = []
        for order in repositories.orders.list_by_status(OrderStatus.PENDING):
            payment = repositories.payments.get_for_order(order.id)
            pending.append(
                PendingOrderSummary(
                    order_id=order.id,
                    user_id=order.user_id,
                    amount=order.amount,
                    created_at=order.created_at,
                    item_count=order.item_count,
                    payment_method=payment.method if payment is not None else NO_PAYMENT_METHOD,
                    screenshot_path=payment.screenshot_path if payment is not None else None,
                )
            )
        return pending


def get_payment_status(
    order_id: UUID,
    *,
    requester: Requester,
    unit_of_work_factory: CheckoutUnitOfWorkFactory,
) -> PaymentStatusView:
    with unit_of_work_factory() as uow:
        order = load_owned_order(
            uow.repositories, order_id, requester=requester, require_pending=False
        )
        payment = uow.repositories.payments.get_for_order(order_id)
        if payment is None:
            raise NotFoundError(f"Payment not found for order: {order_id}")
        return PaymentStatusView(
            order_id=order.id,
            order_status=order.status,
            payment_status=payment.status,
            amount=payment.amount,
            method=payment.method,
            created_at=payment.created_at,
        )


def load_owned_order(
    repositories: CheckoutRepositories,
    order_id: UUID,
    *,
    requester: Requester,
    require_pending: bool = True,
    action: str = "update",
) -> Order:
    """Load an order the requester may act on, failing with a domain error otherwise."""

    order = repositories.orders.get(order_id)
    if order is None:
        raise NotFoundError(f"Order not found: {order_id}")
    if not requester.may_act_for(order.user_id):
        raise PermissionDeniedError(f"Order {order_id} does not belong to the requester")
    if require_pending:
        order.require_pending(action)
    return order


def _check_stock(order: Order, ledger: StockLedger) -> None:
    for product_id, quantity in order.quantities_by_product().items():
        if ledger.check_available(product_id, quantity):
            continue
        stock = ledger.get(product_id)
        raise InsufficientStockError(
            product_id,
            requested=quantity,
            available=stock.quantity if stock is not None else None,
        )
