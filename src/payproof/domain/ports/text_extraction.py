"""Port for turning an image into recognised text."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol, runtime_checkable


class ExtractionFailure(StrEnum):
    NO_TEXT = "no_text"
    BACKEND_UNAVAILABLE = "backend_unavailable"
    TIMEOUT = "timeout"


class TextExtractionError(RuntimeError):
    """Raised by text extractors; ``retryable`` separates backend trouble from bad input."""

    def __init__(self, reason: ExtractionFailure, message: str | None = None) -> None:
        super().__init__(message or f"Text extraction failed: {reason}")
        self.reason = reason

    @property
    def retryable(self) -> bool:
        return self.reason is not ExtractionFailure.NO_TEXT


@runtime_checkable
class TextExtractor(Protocol):
    """Return the text recognised in ``image`` or raise ``TextExtractionError``."""

    def __call__(self, image: bytes) -> str: ...


__all__ = ["ExtractionFailure", "TextExtractionError", "TextExtractor"]
