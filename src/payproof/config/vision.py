"""Google Cloud Vision configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import float_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

VISION_BASE_URL = "https://vision.googleapis.com/v1/"
VISION_TIMEOUT_SECONDS = 20.0


@dataclass(frozen=True)
class VisionConfig:
    """Holds the text-detection backend configuration."""

    api_key: str
    timeout_seconds: float
    resilience: ResilienceConfig


def default_vision_resilience(timeout_seconds: float = VISION_TIMEOUT_SECONDS) -> ResilienceConfig:
    return ResilienceConfig(
        name="vision",
        base_url=VISION_BASE_URL,
        timeout_seconds=timeout_seconds,
        retry=RetryPolicy(),
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
    )


def get_vision_config(*, resilience: ResilienceConfig | None = None) -> VisionConfig:
    values = require_env_vars(("VISION_API_KEY",))
    timeout_seconds = float_env_var("VISION_TIMEOUT_SECONDS", VISION_TIMEOUT_SECONDS)
    return VisionConfig(
        api_key=values["VISION_API_KEY"],
        timeout_seconds=timeout_seconds,
        resilience=resilience or default_vision_resilience(timeout_seconds),
    )
