"""Defaults for foreign-ledger migrations."""

from __future__ import annotations

from dataclasses import dataclass

from .env import int_env_var

DEFAULT_EXPENSE_PAGE_SIZE = 100


@dataclass(frozen=True, slots=True)
class MigrationConfig:
    expense_page_size: int = DEFAULT_EXPENSE_PAGE_SIZE


def get_migration_config() -> MigrationConfig:
    return MigrationConfig(
        expense_page_size=int_env_var("SPLITWISE_PAGE_SIZE", DEFAULT_EXPENSE_PAGE_SIZE, minimum=1)
    )
