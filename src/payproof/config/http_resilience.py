"""Retry and rate-limit settings for outbound HTTP calls."""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx

TRANSIENT_STATUSES = frozenset({408, 429, 500, 502, 503, 504})


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """How often and how patiently a failed request is replayed.

    Only POST is retried by default: every outbound call payproof makes is a text
    detection request, which has no side effects on the remote end.
    """

    total: int = 2
    backoff_factor: float = 0.25
    max_backoff_wait: float = 4.0
    backoff_jitter: float = 0.5
    respect_retry_after_header: bool = True
    allowed_methods: frozenset[str] = frozenset({"POST"})
    status_forcelist: frozenset[int] = TRANSIENT_STATUSES
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str
    timeout_seconds: float = 15.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
