"""Domain port definitions for adapters."""

from __future__ import annotations

from .foreign_ledger import (
    ForeignExpense,
    ForeignGroup,
    ForeignLedger,
    ForeignLedgerFactory,
    ForeignMember,
    ForeignShare,
    TokenExchanger,
)
from .notifications import NotificationSink
from .persistence import ExpenseRepository, GroupRepository, Repository, UserRepository
from .unit_of_work import LedgerRepositories, LedgerUnitOfWork

__all__ = [
    "ExpenseRepository",
    "ForeignExpense",
    "ForeignGroup",
    "ForeignLedger",
    "ForeignLedgerFactory",
    "ForeignMember",
    "ForeignShare",
    "GroupRepository",
    "LedgerRepositories",
    "LedgerUnitOfWork",
    "NotificationSink",
    "Repository",
    "TokenExchanger",
    "UserRepository",
]
