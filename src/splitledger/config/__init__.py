"""Application configuration helpers."""

from __future__ import annotations

from .env import int_env_var, optional_env_var, require_env_vars
from .errors import ConfigurationError, InvalidConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .mail import MailConfig, get_mail_config, get_signup_url
from .migration import MigrationConfig, get_migration_config
from .splitwise import SplitwiseConfig, get_splitwise_config, get_splitwise_token_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "InvalidConfigurationError",
    "MailConfig",
    "MigrationConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SplitwiseConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_mail_config",
    "get_migration_config",
    "get_signup_url",
    "get_splitwise_config",
    "get_splitwise_token_config",
    "get_storage_config",
    "int_env_var",
    "optional_env_var",
    "require_env_vars",
]
