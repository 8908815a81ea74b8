"""Ports for persisting orders, payments and stock."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from payproof.domain.model import Order, OrderStatus, Payment, Stock

if TYPE_CHECKING:
    from uuid import UUID


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class OrderRepository(Repository[Order], Protocol):
    """Persistence contract for orders; listings are newest first."""

    def get(self, order_id: UUID) -> Order | None: ...

    def list_for_user(self, user_id: UUID) -> list[Order]: ...

    def list_all(self) -> list[Order]: ...

    def list_by_status(self, status: OrderStatus) -> list[Order]: ...


@runtime_checkable
class PaymentRepository(Repository[Payment], Protocol):
    """Persistence contract for payment records."""

    def get_for_order(self, order_id: UUID) -> Payment | None: ...

    def transaction_id_exists(self, transaction_id: str) -> bool: ...


@runtime_checkable
class StockLedger(Repository[Stock], Protocol):
    """Per-product stock counters.

    ``check_available`` is advisory only. ``decrement`` must re-check the current
    quantity atomically and raise ``InsufficientStockError`` when it is short;
    both raise ``NotFoundError`` for unknown products.
    """

    def get(self, product_id: UUID) -> Stock | None: ...

    def check_available(self, product_id: UUID, quantity: int) -> bool: ...

    def decrement(self, product_id: UUID, quantity: int) -> None: ...

    def increment(self, product_id: UUID, quantity: int) -> None: ...
