"""Checkout defaults shared by the payment pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_PAYMENT_METHOD = "Bank Transfer"
DEFAULT_CURRENCY = "USD"
MAX_SCREENSHOT_BYTES = 5 * 1024 * 1024
ALLOWED_SCREENSHOT_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "webp"})


@dataclass(frozen=True, slots=True)
class CheckoutConfig:
    payment_method: str = DEFAULT_PAYMENT_METHOD
    currency: str = DEFAULT_CURRENCY
    max_screenshot_bytes: int = MAX_SCREENSHOT_BYTES
    allowed_extensions: frozenset[str] = field(
        default_factory=lambda: ALLOWED_SCREENSHOT_EXTENSIONS
    )


def get_checkout_config() -> CheckoutConfig:
    return CheckoutConfig(
        payment_method=os.getenv("PAYPROOF_PAYMENT_METHOD") or DEFAULT_PAYMENT_METHOD,
        currency=os.getenv("PAYPROOF_CURRENCY") or DEFAULT_CURRENCY,
    )
