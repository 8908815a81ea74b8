"""Port for storing uploaded payment screenshots."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pathlib import Path


class ScreenshotStorageError(RuntimeError):
    """The screenshot could not be written or removed."""


@dataclass(frozen=True, slots=True)
class StoredScreenshot:
    name: str
    path: Path
    public_path: str


@runtime_checkable
class ScreenshotStore(Protocol):
    """Validate and persist screenshot bytes.

    Invalid uploads raise ``ValidationError`` before anything is written.
    """

    def store(
        self, data: bytes, *, filename: str, content_type: str | None
    ) -> StoredScreenshot: ...

    def delete(self, stored: StoredScreenshot) -> None: ...


__all__ = ["ScreenshotStorageError", "ScreenshotStore", "StoredScreenshot"]
