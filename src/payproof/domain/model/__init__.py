"""Public domain model surface."""

from __future__ import annotations

from payproof.domain.model.base import Clock, Entity, new_id, to_money, utcnow
from payproof.domain.model.enums import OrderStatus, PaymentStatus, Role
from payproof.domain.model.identity import Requester
from payproof.domain.model.order import Order, OrderLine
from payproof.domain.model.payment import Payment
from payproof.domain.model.stock import Stock

__all__ = [
    "Clock",
    "Entity",
    "Order",
    "OrderLine",
    "OrderStatus",
    "Payment",
    "PaymentStatus",
    "Requester",
    "Role",
    "Stock",
    "new_id",
    "to_money",
    "utcnow",
]
