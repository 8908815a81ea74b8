"""Root logger setup shared by the CLI and the HTTP server."""

from __future__ import annotations

import logging

from .env import log_level_env_var

LOG_LEVEL_ENV = "PAYPROOF_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# httpx logs each request URL at INFO; Vision URLs carry the API key as a query parameter.
QUIET_LOGGERS = ("httpx", "httpcore")


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Configure the root logger.

    ``level`` falls back to ``PAYPROOF_LOG_LEVEL`` and then INFO. Transport loggers are
    held at WARNING whatever the root level is. ``force=True`` replaces existing handlers.
    """

    resolved = level if level is not None else log_level_env_var(LOG_LEVEL_ENV)
    logging.basicConfig(level=resolved, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
