"""Inputs and results of a screenshot reconciliation attempt."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from payproof.domain.model import OrderStatus

if TYPE_CHECKING:
    from datetime import datetime
    from decimal import Decimal
    from uuid import UUID

    from payproof.domain.model import Requester


class ReconciliationStage(StrEnum):
    UPLOADED = "uploaded"
    TEXT_EXTRACTED = "text_extracted"
    FACTS_PARSED = "facts_parsed"
    DUPLICATE_CHECKED = "duplicate_checked"
    AMOUNT_VERIFIED = "amount_verified"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class FailureReason(StrEnum):
    EXTRACTION_FAILED = "extraction_failed"
    MISSING_TRANSACTION_ID = "missing_transaction_id"
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    AMOUNT_MISMATCH = "amount_mismatch"
    INSUFFICIENT_STOCK = "insufficient_stock"


@dataclass(frozen=True, slots=True)
class ScreenshotUpload:
    order_id: UUID
    requester: Requester
    image: bytes
    filename: str
    content_type: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ScreenshotVerification:
    """Outcome of one upload attempt.

    Business failures are reported here with the order still pending; they are
    never raised.
    """

    order_id: UUID
    success: bool
    status: OrderStatus
    reason: FailureReason | None = None
    message: str | None = None
    retryable: bool = False
    transaction_id: str | None = None
    transaction_date: datetime | None = None
    amount_found: Decimal | None = None
    screenshot_path: str | None = None
    stages: tuple[ReconciliationStage, ...] = field(default_factory=tuple)

    @property
    def final_stage(self) -> ReconciliationStage | None:
        return self.stages[-1] if self.stages else None


@dataclass(slots=True)
class StageTrace:
    """Ordered record of the stages one attempt has reached."""

    order_id: UUID
    stages: list[ReconciliationStage] = field(default_factory=list["ReconciliationStage"])

    def reach(self, stage: ReconciliationStage) -> None:
        self.stages.append(stage)

    def failure(
        self,
        reason: FailureReason,
        message: str,
        *,
        retryable: bool = False,
        transaction_id: str | None = None,
        amount_found: Decimal | None = None,
    ) -> ScreenshotVerification:
        self.reach(ReconciliationStage.ROLLED_BACK)
        return ScreenshotVerification(
            order_id=self.order_id,
            success=False,
            status=OrderStatus.PENDING,
            reason=reason,
            message=message,
            retryable=retryable,
            transaction_id=transaction_id,
            amount_found=amount_found,
            stages=tuple(self.stages),
        )
