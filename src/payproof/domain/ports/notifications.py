"""Port for fire-and-forget payment notifications."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from payproof.domain.model import Order, Payment


@runtime_checkable
class Notifier(Protocol):
    def payment_verified(self, order: Order, payment: Payment) -> None: ...

    def payment_rejected(self, order: Order, reason: str | None) -> None: ...


__all__ = ["Notifier"]
