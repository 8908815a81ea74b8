"""SQLAlchemy adapter package for payproof."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyOrderRepository,
    SqlAlchemyPaymentRepository,
    SqlAlchemyStockLedger,
)
from .unit_of_work import SqlAlchemyCheckoutUnitOfWork, shutdown, startup

__all__ = [
    "SqlAlchemyCheckoutUnitOfWork",
    "SqlAlchemyOrderRepository",
    "SqlAlchemyPaymentRepository",
    "SqlAlchemyStockLedger",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
