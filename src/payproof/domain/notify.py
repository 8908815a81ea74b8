"""Fire-and-forget delivery of notifier calls."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

log = logging.getLogger(__name__)


def deliver(event: str, send: Callable[[], None]) -> None:
    """Run ``send`` after a commit; failures are logged and never reach the caller."""

    try:
        send()
    except Exception:  # noqa: BLE001
        log.exception("Notification %s could not be delivered", event)
