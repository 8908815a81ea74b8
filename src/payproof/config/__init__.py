"""Application configuration helpers."""

from __future__ import annotations

from .checkout import CheckoutConfig, get_checkout_config
from .env import float_env_var, log_level_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_storage_config,
)
from .vision import VisionConfig, default_vision_resilience, get_vision_config

__all__ = [
    "CheckoutConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "VisionConfig",
    "configure_logging",
    "default_vision_resilience",
    "float_env_var",
    "get_checkout_config",
    "get_database_config",
    "get_database_uri",
    "get_storage_config",
    "get_vision_config",
    "log_level_env_var",
    "require_env_var",
    "require_env_vars",
]
