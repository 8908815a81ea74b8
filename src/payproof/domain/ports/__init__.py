"""Domain port definitions for adapters."""

from __future__ import annotations

from .file_storage import ScreenshotStorageError, ScreenshotStore, StoredScreenshot
from .notifications import Notifier
from .persistence import OrderRepository, PaymentRepository, Repository, StockLedger
from .text_extraction import ExtractionFailure, TextExtractionError, TextExtractor
from .unit_of_work import (
    CheckoutRepositories,
    CheckoutUnitOfWork,
    CheckoutUnitOfWorkFactory,
)

__all__ = [
    "CheckoutRepositories",
    "CheckoutUnitOfWork",
    "CheckoutUnitOfWorkFactory",
    "ExtractionFailure",
    "Notifier",
    "OrderRepository",
    "PaymentRepository",
    "Repository",
    "ScreenshotStorageError",
    "ScreenshotStore",
    "StockLedger",
    "StoredScreenshot",
    "TextExtractionError",
    "TextExtractor",
]
