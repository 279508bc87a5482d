"""Transaction boundary around the ledger repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Self, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from splitledger.domain.ports.persistence import (
        ExpenseRepository,
        GroupRepository,
        UserRepository,
    )


@dataclass(slots=True, frozen=True)
class LedgerRepositories:
    users: UserRepository
    groups: GroupRepository
    expenses: ExpenseRepository


@runtime_checkable
class LedgerUnitOfWork(Protocol):
    """One transaction over users, groups and expenses.

    Leaving the block without ``commit()`` discards pending changes; an exception
    inside the block rolls back and propagates.
    """

    @property
    def repositories(self) -> LedgerRepositories: ...

    def __enter__(self) -> Self: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
