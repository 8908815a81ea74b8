"""Per-product inventory counter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from payproof.domain.errors import ValidationError
from payproof.domain.model.base import Entity

if TYPE_CHECKING:
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class Stock(Entity):
    product_id: UUID
    quantity: int = 0

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValidationError(f"Stock quantity must not be negative, got {self.quantity}")

    def covers(self, quantity: int) -> bool:
        return self.quantity >= quantity
