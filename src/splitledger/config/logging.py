"""Logging setup for the command line entry point."""

from __future__ import annotations

import logging

from .env import optional_env_var
from .errors import InvalidConfigurationError

LOG_LEVEL_ENV = "SPLITLEDGER_LOG_LEVEL"

# chatty at INFO: one line per HTTP request or schema step
_NOISY_LOGGERS = ("httpx", "httpcore", "hishel", "alembic")


def resolve_log_level(level: int | None = None) -> int:
    if level is not None:
        return level
    name = optional_env_var(LOG_LEVEL_ENV)
    if name is None:
        return logging.INFO
    resolved = logging.getLevelNamesMapping().get(name.upper())
    if resolved is None:
        raise InvalidConfigurationError(LOG_LEVEL_ENV, name, "a logging level name")
    return resolved


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger with a terse CLI format.

    ``level`` defaults to ``SPLITLEDGER_LOG_LEVEL`` or INFO. Third-party HTTP and
    migration loggers stay at WARNING unless debugging.
    """

    effective = resolve_log_level(level)
    logging.basicConfig(
        level=effective,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    library_level = logging.WARNING if effective > logging.DEBUG else effective
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
