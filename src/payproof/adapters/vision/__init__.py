"""Cloud Vision text extraction adapter."""

from __future__ import annotations

from .client import VisionTextExtractor

__all__ = ["VisionTextExtractor"]
