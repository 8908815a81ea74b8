"""Cloud Vision text detection behind the ``TextExtractor`` port."""

from __future__ import annotations

import asyncio
import base64
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from payproof.adapters.http_resilience import ResilientClient
from payproof.domain.ports import ExtractionFailure, TextExtractionError

from .schema import (
    AnnotateImageRequest,
    BatchAnnotateRequest,
    BatchAnnotateResponse,
    ImagePayload,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from payproof.config.http_resilience import ResilienceConfig
    from payproof.config.vision import VisionConfig

log = getLogger(__name__)

ANNOTATE_PATH = "images:annotate"


class VisionTextExtractor:
    """Synchronous text extractor; each call runs one bounded annotate request."""

    def __init__(
        self,
        *,
        config: VisionConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    def __call__(self, image: bytes) -> str:
        return asyncio.run(self._detect_text_async(image))

    async def _detect_text_async(self, image: bytes) -> str:
        try:
            return await asyncio.wait_for(
                self._annotate(image), timeout=self._config.timeout_seconds
            )
        except TimeoutError as exc:
            log.warning("Vision text detection timed out after %ss", self._config.timeout_seconds)
            raise TextExtractionError(
                ExtractionFailure.TIMEOUT, "Text detection timed out"
            ) from exc

    async def _annotate(self, image: bytes) -> str:
        body = BatchAnnotateRequest(
            requests=[
                AnnotateImageRequest(
                    image=ImagePayload(content=base64.b64encode(image).decode("ascii"))
                )
            ]
        )
        async with self._client_factory(self._resilience) as client:
            try:
                response = await client.post_json(
                    ANNOTATE_PATH,
                    body.model_dump(by_alias=True),
                    params={"key": self._config.api_key},
                )
                response.raise_for_status()
            except httpx.TimeoutException as exc:
                raise TextExtractionError(
                    ExtractionFailure.TIMEOUT, "Text detection timed out"
                ) from exc
            except httpx.HTTPError as exc:
                log.warning("Vision request failed: %s", exc)
                raise TextExtractionError(
                    ExtractionFailure.BACKEND_UNAVAILABLE, f"Vision request failed: {exc}"
                ) from exc

        try:
            payload = BatchAnnotateResponse.model_validate(response.json())
        except ValueError as exc:  # malformed JSON or schema mismatch
            raise TextExtractionError(
                ExtractionFailure.BACKEND_UNAVAILABLE, "Unexpected Vision response payload"
            ) from exc

        if not payload.responses:
            raise TextExtractionError(ExtractionFailure.NO_TEXT, "No text detected in image")
        result = payload.responses[0]
        if result.error is not None and result.error.code:
            raise TextExtractionError(
                ExtractionFailure.BACKEND_UNAVAILABLE,
                f"Vision error {result.error.code}: {result.error.message}",
            )
        text = result.text
        if not text.strip():
            raise TextExtractionError(ExtractionFailure.NO_TEXT, "No text detected in image")
        log.debug("Vision detected %d characters of text", len(text))
        return text
