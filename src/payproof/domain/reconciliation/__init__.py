"""Screenshot-driven payment reconciliation."""

from __future__ import annotations

from .engine import ScreenshotGuard, ScreenshotReconciler
from .facts import (
    PaymentFacts,
    extract_amount,
    extract_transaction_date,
    extract_transaction_id,
    parse_payment_facts,
)
from .outcomes import (
    FailureReason,
    ReconciliationStage,
    ScreenshotUpload,
    ScreenshotVerification,
)

__all__ = [
    "FailureReason",
    "PaymentFacts",
    "ReconciliationStage",
    "ScreenshotGuard",
    "ScreenshotReconciler",
    "ScreenshotUpload",
    "ScreenshotVerification",
    "extract_amount",
    "extract_transaction_date",
    "extract_transaction_id",
    "parse_payment_facts",
]
