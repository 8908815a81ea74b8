"""Admin override path: confirm or reject a payment by hand.

Both operations act only on pending orders with an existing payment record.
Confirmation deducts stock exactly like an automatic verification.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from payproof.domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from payproof.domain.model import utcnow
from payproof.domain.notify import deliver
from payproof.domain.ordering import fail_order, load_owned_order, settle_order

if TYPE_CHECKING:
    from uuid import UUID

    from payproof.domain.model import Clock, Order, Payment, Requester
    from payproof.domain.ports import (
        CheckoutRepositories,
        CheckoutUnitOfWorkFactory,
        Notifier,
    )

log = logging.getLogger(__name__)


class GatewayStatus(StrEnum):
    SUCCESS = "success"
    PAID = "paid"
    FAILED = "failed"
    REJECTED = "rejected"


_CONFIRMING = frozenset({GatewayStatus.SUCCESS, GatewayStatus.PAID})


def confirm_payment(
    order_id: UUID,
    *,
    requester: Requester,
    unit_of_work_factory: CheckoutUnitOfWorkFactory,
    transaction_id: str | None = None,
    notifier: Notifier | None = None,
    clock: Clock = utcnow,
) -> Order:
    """Mark the payment paid and settle the order in one transaction."""

    _require_admin(requester)
    now = clock()
    with unit_of_work_factory() as uow:
        order, payment = _load_for_review(
            uow.repositories, order_id, requester, "confirm payment for"
        )
        if transaction_id and payment.transaction_id is None:
            payment.transaction_id = transaction_id
        payment.mark_paid(now=now)
        settle_order(order, uow.repositories.stock, now=now)
        uow.commit()
    log.info("Admin %s confirmed payment for order %s", requester.user_id, order_id)
    if notifier is not None:
        deliver("payment_verified", lambda: notifier.payment_verified(order, payment))
    return order


def reject_payment(
    order_id: UUID,
    *,
    requester: Requester,
    unit_of_work_factory: CheckoutUnitOfWorkFactory,
    reason: str | None = None,
    notifier: Notifier | None = None,
    clock: Clock = utcnow,
) -> Order:
    """Fail both payment and order; stock is never touched."""

    _require_admin(requester)
    with unit_of_work_factory() as uow:
        order, payment = _load_for_review(
            uow.repositories, order_id, requester, "reject payment for"
        )
        fail_order(order, payment, now=clock())
        uow.commit()
    log.info(
        "Admin %s rejected payment for order %s (reason: %s)",
        requester.user_id,
        order_id,
        reason or "none given",
    )
    if notifier is not None:
        deliver("payment_rejected", lambda: notifier.payment_rejected(order, reason))
    return order


def apply_gateway_callback(
    order_id: UUID,
    status: str,
    *,
    requester: Requester,
    unit_of_work_factory: CheckoutUnitOfWorkFactory,
    transaction_ref: str | None = None,
    notifier: Notifier | None = None,
    clock: Clock = utcnow,
) -> Order:
    """Translate a payment gateway status into a confirm or a reject."""

    try:
        gateway_status = GatewayStatus(status.strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid payment status: {status}") from None
    if gateway_status in _CONFIRMING:
        return confirm_payment(
            order_id,
            requester=requester,
            unit_of_work_factory=unit_of_work_factory,
            transaction_id=transaction_ref,
            notifier=notifier,
            clock=clock,
        )
    return reject_payment(
        order_id,
        requester=requester,
        unit_of_work_factory=unit_of_work_factory,
        reason=f"Gateway reported {gateway_status}",
        notifier=notifier,
        clock=clock,
    )


def _load_for_review(
    repositories: CheckoutRepositories,
    order_id: UUID,
    requester: Requester,
    action: str,
) -> tuple[Order, Payment]:
    order = load_owned_order(repositories, order_id, requester=requester, require_pending=False)
    payment = repositories.payments.get_for_order(order_id)
    if payment is None:
        raise NotFoundError(f"Payment not found for order: {order_id}")
    order.require_pending(action)
    return order, payment


def _require_admin(requester: Requester) -> None:
    if not requester.is_admin:
        raise PermissionDeniedError("Only admins can review payments")
