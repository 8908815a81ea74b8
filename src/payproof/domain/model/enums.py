"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class OrderStatus(StrEnum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not OrderStatus.PENDING


class PaymentStatus(StrEnum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class Role(StrEnum):
    """Role attached to a verified identity by the authentication capability."""

    USER = "user"
    ADMIN = "admin"
