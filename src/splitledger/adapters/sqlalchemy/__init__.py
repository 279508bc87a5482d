"""SQLAlchemy adapter package for the ledger store."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyExpenseRepository,
    SqlAlchemyGroupRepository,
    SqlAlchemyUserRepository,
)

__all__ = [
    "SqlAlchemyExpenseRepository",
    "SqlAlchemyGroupRepository",
    "SqlAlchemyUserRepository",
    "create_all_tables",
    "mapper_registry",
    "start_mappers",
]
