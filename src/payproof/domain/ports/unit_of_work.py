"""Transaction boundary shared by ordering, reconciliation and review."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from payproof.domain.ports.persistence import (
        OrderRepository,
        PaymentRepository,
        StockLedger,
    )


@dataclass(slots=True)
class CheckoutRepositories:
    orders: OrderRepository
    payments: PaymentRepository
    stock: StockLedger


class CheckoutUnitOfWork(Protocol):
    """One database transaction over orders, payments and stock.

    Nothing is persisted unless ``commit`` is called; leaving the block without
    committing, or with an exception, discards every change including stock
    decrements. ``commit`` raises ``DuplicateTransactionError`` when a payment
    claims a transaction id that another order already holds, and ``StaleOrderError``
    when another unit of work changed the status of an order this one also changed.
    """

    @property
    def repositories(self) -> CheckoutRepositories: ...

    def __enter__(self) -> CheckoutUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


type CheckoutUnitOfWorkFactory = Callable[[], CheckoutUnitOfWork]
