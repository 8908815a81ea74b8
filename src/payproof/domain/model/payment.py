"""Payment record: created on demand, one per order at most."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from payproof.domain.model.base import Entity, utcnow
from payproof.domain.model.enums import PaymentStatus

if TYPE_CHECKING:
    from datetime import datetime
    from decimal import Decimal
    from uuid import UUID

    from payproof.domain.model.order import Order


@dataclass(eq=False, kw_only=True)
class Payment(Entity):
    order_id: UUID
    user_id: UUID
    amount: Decimal
    method: str
    currency: str
    status: PaymentStatus = PaymentStatus.PENDING
    screenshot_path: str | None = None
    transaction_id: str | None = None
    # Wall-clock time printed on the screenshot; no zone information
    transaction_date: datetime | None = None
    paid_at: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def open_for(
        cls,
        order: Order,
        *,
        method: str,
        currency: str,
        now: datetime | None = None,
    ) -> Payment:
        return cls(
            order_id=order.id,
            user_id=order.user_id,
            amount=order.amount,
            method=method,
            currency=currency,
            created_at=now or utcnow(),
        )

    def record_verification(
        self,
        *,
        transaction_id: str,
        transaction_date: datetime | None,
        screenshot_path: str,
        now: datetime | None = None,
    ) -> None:
        self.transaction_id = transaction_id
        self.transaction_date = transaction_date
        self.screenshot_path = screenshot_path
        self.mark_paid(now=now)

    def mark_paid(self, *, now: datetime | None = None) -> None:
        self.status = PaymentStatus.PAID
        self.paid_at = now or utcnow()

    def mark_failed(self) -> None:
        self.status = PaymentStatus.FAILED
