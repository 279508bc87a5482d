"""Errors raised while reading settings."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Base class for unusable settings."""


class MissingConfigurationError(ConfigurationError):
    """Required environment variables are absent or blank."""


class InvalidConfigurationError(ConfigurationError):
    def __init__(self, name: str, value: str, expected: str) -> None:
        super().__init__(f"Invalid {name}: {value!r} (expected {expected})")
        self.name = name
        self.value = value
