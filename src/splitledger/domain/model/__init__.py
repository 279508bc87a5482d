"""Public domain model surface."""

from __future__ import annotations

from splitledger.domain.model.entity import Entity, new_id
from splitledger.domain.model.enums import AccountState, LedgerSource, MigrationStatus
from splitledger.domain.model.expense import Expense, Obligation, Split
from splitledger.domain.model.group import Group
from splitledger.domain.model.user import User, UserStateError, normalize_email

__all__ = [  # noqa: RUF022
    # base
    "Entity",
    "new_id",
    # aggregates
    "User",
    "Group",
    "Expense",
    "Split",
    "Obligation",
    # enums
    "AccountState",
    "LedgerSource",
    "MigrationStatus",
    # helpers
    "UserStateError",
    "normalize_email",
]
