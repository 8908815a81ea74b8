"""Administrative stock operations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from payproof.domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from payproof.domain.model import Stock

if TYPE_CHECKING:
    from uuid import UUID

    from payproof.domain.model import Requester
    from payproof.domain.ports import CheckoutUnitOfWorkFactory

log = logging.getLogger(__name__)


def register_stock(
    product_id: UUID,
    quantity: int,
    *,
    requester: Requester,
    unit_of_work_factory: CheckoutUnitOfWorkFactory,
) -> Stock:
    """Create the stock row for a product that has none yet."""

    _require_admin(requester)
    with unit_of_work_factory() as uow:
        ledger = uow.repositories.stock
        if ledger.get(product_id) is not None:
            raise ValidationError(f"Stock already registered for product {product_id}")
        stock = Stock(product_id=product_id, quantity=quantity)
        ledger.add(stock)
        uow.commit()
    log.info("Registered stock for product %s: %d", product_id, quantity)
    return stock


def restock(
    product_id: UUID,
    quantity: int,
    *,
    requester: Requester,
    unit_of_work_factory: CheckoutUnitOfWorkFactory,
) -> int:
    """Replenish stock and return the new quantity."""

    _require_admin(requester)
    if quantity <= 0:
        raise ValidationError(f"Restock quantity must be positive, got {quantity}")
    with unit_of_work_factory() as uow:
        ledger = uow.repositories.stock
        ledger.increment(product_id, quantity)
        uow.commit()
    level = stock_level(product_id, unit_of_work_factory=unit_of_work_factory)
    log.info("Restocked product %s by %d (now %d)", product_id, quantity, level)
    return level


def stock_level(product_id: UUID, *, unit_of_work_factory: CheckoutUnitOfWorkFactory) -> int:
    with unit_of_work_factory() as uow:
        stock = uow.repositories.stock.get(product_id)
        if stock is None:
            raise NotFoundError(f"Stock not found for product: {product_id}")
        return stock.quantity


def _require_admin(requester: Requester) -> None:
    if not requester.is_admin:
        raise PermissionDeniedError("Only admins can change stock levels")
