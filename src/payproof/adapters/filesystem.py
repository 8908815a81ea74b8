"""Local-disk storage for payment screenshots."""

from __future__ import annotations

from logging import getLogger
from pathlib import PurePath
from typing import TYPE_CHECKING
from uuid import uuid4

from payproof.config.checkout import CheckoutConfig
from payproof.config.storage import PAYMENT_PUBLIC_PREFIX
from payproof.domain.errors import ValidationError
from payproof.domain.ports import ScreenshotStorageError, StoredScreenshot

if TYPE_CHECKING:
    from pathlib import Path

log = getLogger(__name__)


class LocalScreenshotStore:
    """Write screenshots as ``<uuid>.<ext>`` below one directory."""

    def __init__(
        self,
        directory: Path,
        *,
        config: CheckoutConfig | None = None,
        public_prefix: str = PAYMENT_PUBLIC_PREFIX,
    ) -> None:
        self.directory = directory
        self._config = config or CheckoutConfig()
        self._public_prefix = public_prefix

    def store(self, data: bytes, *, filename: str, content_type: str | None) -> StoredScreenshot:
        extension = self._validate(data, filename=filename, content_type=content_type)
        name = f"{uuid4()}.{extension}"
        path = self.directory / name
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise ScreenshotStorageError(f"Could not store screenshot {name}: {exc}") from exc
        log.debug("Stored %d bytes at %s", len(data), path)
        return StoredScreenshot(name=name, path=path, public_path=f"{self._public_prefix}{name}")

    def delete(self, stored: StoredScreenshot) -> None:
        try:
            stored.path.unlink(missing_ok=True)
        except OSError as exc:
            msg = f"Could not delete screenshot {stored.name}: {exc}"
            raise ScreenshotStorageError(msg) from exc

    def _validate(self, data: bytes, *, filename: str, content_type: str | None) -> str:
        if not data:
            raise ValidationError("Please select a file to upload")
        if len(data) > self._config.max_screenshot_bytes:
            limit_mb = self._config.max_screenshot_bytes // (1024 * 1024)
            raise ValidationError(f"File size must be less than {limit_mb}MB")
        if not content_type or not content_type.lower().startswith("image/"):
            raise ValidationError("Only image files are allowed")
        extension = PurePath(filename).suffix.lower().removeprefix(".")
        if extension not in self._config.allowed_extensions:
            allowed = ", ".join(sorted(self._config.allowed_extensions))
            raise ValidationError(f"Invalid file extension. Allowed: {allowed}")
        return extension
