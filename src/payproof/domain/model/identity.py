"""Verified caller identity handed in by the authentication layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from payproof.domain.model.enums import Role

if TYPE_CHECKING:
    from uuid import UUID


@dataclass(frozen=True, slots=True)
class Requester:
    user_id: UUID
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def may_act_for(self, owner_id: UUID) -> bool:
        return self.is_admin or self.user_id == owner_id
