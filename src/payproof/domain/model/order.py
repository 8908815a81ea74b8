"""Order aggregate: an order owns its lines; status changes only through transitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from payproof.domain.errors import InvalidTransitionError, ValidationError
from payproof.domain.model.base import Entity, to_money, utcnow
from payproof.domain.model.enums import OrderStatus

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime
    from decimal import Decimal
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class OrderLine(Entity):
    """Product, quantity, and the unit price captured when the order was placed."""

    product_id: UUID
    quantity: int
    unit_price: Decimal

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValidationError(f"Quantity must be positive, got {self.quantity}")
        if self.unit_price < 0:
            raise ValidationError(f"Unit price must not be negative, got {self.unit_price}")
        self.unit_price = to_money(self.unit_price)

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(eq=False, kw_only=True)
class Order(Entity):
    user_id: UUID
    amount: Decimal
    status: OrderStatus = OrderStatus.PENDING
    address_id: UUID | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    # Owned children; fixed at creation
    _lines: list[OrderLine] = field(default_factory=list["OrderLine"], repr=False)

    @classmethod
    def place(
        cls,
        *,
        user_id: UUID,
        lines: Iterable[OrderLine],
        amount: Decimal | None = None,
        address_id: UUID | None = None,
        now: datetime | None = None,
    ) -> Order:
        """Build a pending order whose amount is the sum of its line subtotals.

        A caller-supplied ``amount`` is accepted only when it agrees with that sum.
        """

        owned = list(lines)
        if not owned:
            raise ValidationError("An order needs at least one line")
        total = to_money(sum((line.subtotal for line in owned), start=to_money(0)))
        if amount is not None and to_money(amount) != total:
            raise ValidationError(
                f"Order amount {to_money(amount)} does not match line total {total}"
            )
        created = now or utcnow()
        return cls(
            user_id=user_id,
            amount=total,
            address_id=address_id,
            created_at=created,
            updated_at=created,
            _lines=owned,
        )

    @property
    def lines(self) -> tuple[OrderLine, ...]:
        return tuple(self._lines)

    @property
    def item_count(self) -> int:
        return len(self._lines)

    @property
    def is_pending(self) -> bool:
        return self.status is OrderStatus.PENDING

    def quantities_by_product(self) -> dict[UUID, int]:
        """Total requested quantity per product, in first-seen line order."""
        totals: dict[UUID, int] = {}
        for line in self._lines:
            totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
        return totals

    def require_pending(self, action: str) -> None:
        if not self.is_pending:
            raise InvalidTransitionError(
                f"Cannot {action} order {self.id}. Current status: {self.status}"
            )

    def mark_paid(self, *, now: datetime | None = None) -> None:
        self.require_pending("mark paid")
        self.status = OrderStatus.PAID
        self.updated_at = now or utcnow()

    def mark_failed(self, *, now: datetime | None = None) -> None:
        self.require_pending("fail")
        self.status = OrderStatus.FAILED
        self.updated_at = now or utcnow()
