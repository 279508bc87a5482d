"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class AccountState(StrEnum):
    """Lifecycle of a user account.

    Ghost accounts are placeholders created while importing a foreign ledger; they hold
    real references but no usable credentials.
    """

    GHOST = "ghost"
    ACTIVE = "active"


class MigrationStatus(StrEnum):
    NONE = "none"
    PENDING = "pending"
    COMPLETED = "completed"


class LedgerSource(StrEnum):
    SPLITWISE = "splitwise"
