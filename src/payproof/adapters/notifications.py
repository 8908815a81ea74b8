"""Notifier that records payment events in the application log."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from payproof.domain.model import Order, Payment

log = getLogger(__name__)


class LoggingNotifier:
    def payment_verified(self, order: Order, payment: Payment) -> None:
        log.info(
            "Payment verified: order=%s user=%s amount=%s %s transaction=%s",
            order.id,
            order.user_id,
            payment.amount,
            payment.currency,
            payment.transaction_id,
        )

    def payment_rejected(self, order: Order, reason: str | None) -> None:
        log.info(
            "Payment rejected: order=%s user=%s reason=%s",
            order.id,
            order.user_id,
            reason or "not given",
        )
