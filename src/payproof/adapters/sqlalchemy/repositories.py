"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select, update

from payproof.adapters.sqlalchemy.mappings import order_table, payment_table, stock_table
from payproof.domain.errors import InsufficientStockError, NotFoundError, ValidationError
from payproof.domain.model import Order, OrderStatus, Payment, Stock

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.orm import Session
    from sqlalchemy.sql import Select


class SqlAlchemyOrderRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Order) -> None:
        self.session.add(entity)

    def get(self, order_id: UUID) -> Order | None:
        return self.session.get(Order, order_id)

    def list_for_user(self, user_id: UUID) -> list[Order]:
        return self._newest_first(select(Order).where(order_table.c.user_id == user_id))

    def list_all(self) -> list[Order]:
        return self._newest_first(select(Order))

    def list_by_status(self, status: OrderStatus) -> list[Order]:
        return self._newest_first(select(Order).where(order_table.c.status == status))

    def _newest_first(self, stmt: Select[tuple[Order]]) -> list[Order]:
        stmt = stmt.order_by(order_table.c.created_at.desc(), order_table.c.id)
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyPaymentRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Payment) -> None:
        self.session.add(entity)

    def get_for_order(self, order_id: UUID) -> Payment | None:
        stmt = select(Payment).where(payment_table.c.order_id == order_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def transaction_id_exists(self, transaction_id: str) -> bool:
        stmt = (
            select(payment_table.c.id)
            .where(payment_table.c.transaction_id == transaction_id)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none() is not None


class SqlAlchemyStockLedger:
    """Stock counters updated with conditional UPDATE statements.

    ``decrement`` only succeeds while the row still holds enough stock, so two
    transactions racing for the last units cannot both win.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Stock) -> None:
        self.session.add(entity)

    def get(self, product_id: UUID) -> Stock | None:
        stmt = (
            select(Stock)
            .where(stock_table.c.product_id == product_id)
            .execution_options(populate_existing=True)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def check_available(self, product_id: UUID, quantity: int) -> bool:
        return self._current_quantity(product_id) >= quantity

    def decrement(self, product_id: UUID, quantity: int) -> None:
        _require_positive(quantity)
        stmt = (
            update(stock_table)
            .where(stock_table.c.product_id == product_id)
            .where(stock_table.c.quantity >= quantity)
            .values(quantity=stock_table.c.quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        if self.session.execute(stmt).rowcount == 1:
            return
        raise InsufficientStockError(
            product_id,
            requested=quantity,
            available=self._current_quantity(product_id),
        )

    def increment(self, product_id: UUID, quantity: int) -> None:
        _require_positive(quantity)
        stmt = (
            update(stock_table)
            .where(stock_table.c.product_id == product_id)
            .values(quantity=stock_table.c.quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        if self.session.execute(stmt).rowcount == 0:
            raise NotFoundError(f"Stock not found for product: {product_id}")

    def _current_quantity(self, product_id: UUID) -> int:
        stmt = select(stock_table.c.quantity).where(stock_table.c.product_id == product_id)
        current = self.session.execute(stmt).scalar_one_or_none()
        if current is None:
            raise NotFoundError(f"Stock not found for product: {product_id}")
        return current


def _require_positive(quantity: int) -> None:
    if quantity <= 0:
        raise ValidationError(f"Stock change must be positive, got {quantity}")
