"""Foreign ledger migration."""

from __future__ import annotations

from .errors import (
    ForeignAuthError,
    ForeignLedgerError,
    MigrationFailedError,
    UpstreamUnavailableError,
)
from .pagination import ExpensePages
from .pipeline import (
    DEFAULT_EXPENSE_DESCRIPTION,
    IMPORTED_GROUP_NOTE,
    UNGROUPED_GROUP_NAME,
    MigrationCredentials,
    MigrationResult,
    authenticate,
    run_migration,
)

__all__ = [
    "DEFAULT_EXPENSE_DESCRIPTION",
    "IMPORTED_GROUP_NOTE",
    "UNGROUPED_GROUP_NAME",
    "ExpensePages",
    "ForeignAuthError",
    "ForeignLedgerError",
    "MigrationCredentials",
    "MigrationFailedError",
    "MigrationResult",
    "UpstreamUnavailableError",
    "authenticate",
    "run_migration",
]
