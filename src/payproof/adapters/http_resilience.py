"""Async JSON client with replayed transient failures and a client-side call budget."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import Retry, RetryTransport

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from payproof.config.http_resilience import RateLimit, ResilienceConfig, RetryPolicy

log = getLogger(__name__)


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        backoff_jitter=policy.backoff_jitter,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=sorted(policy.allowed_methods),
        status_forcelist=sorted(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
    )


def build_limiter(ratelimit: RateLimit | None) -> AsyncLimiter | None:
    if ratelimit is None:
        return None
    return AsyncLimiter(ratelimit.max_calls, ratelimit.per_seconds)


class ResilientClient:
    """Thin wrapper around ``httpx.AsyncClient`` for one remote API.

    Retries happen inside the transport, so a single ``post_json`` call may hit the
    network several times but only takes one slot of the rate limit. ``transport``
    swaps the network layer underneath the retries (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter = build_limiter(config.ratelimit)
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            transport=RetryTransport(transport=transport, retry=build_retry(config.retry)),
        )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def post_json(
        self,
        path: str,
        body: object,
        *,
        params: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """POST ``body`` as JSON to ``path`` relative to the configured base URL."""

        if self._limiter is None:
            return await self._client.post(path, json=body, params=params)
        if not self._limiter.has_capacity():
            log.debug("%s: waiting for rate limit capacity", self.config.name)
        async with self._limiter:
            return await self._client.post(path, json=body, params=params)


__all__ = ["ResilientClient", "build_limiter", "build_retry"]
