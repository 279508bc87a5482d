"""Ports for persisting ledger aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from splitledger.domain.model import Expense, Group, User

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import date, datetime
    from uuid import UUID


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...

    def get(self, entity_id: UUID) -> TEntity | None: ...


@runtime_checkable
class UserRepository(Repository[User], Protocol):
    """Persistence contract for users; email lookups are case-insensitive."""

    def get_by_email(self, email: str) -> User | None: ...

    def get_by_username(self, username: str) -> User | None: ...


@runtime_checkable
class GroupRepository(Repository[Group], Protocol):
    """Persistence contract for groups."""

    def find_by_name_for_member(self, name: str, member: User) -> Group | None: ...

    def for_member(self, member: User) -> Sequence[Group]: ...

    def settling_on(self, day: date) -> Sequence[Group]: ...


@runtime_checkable
class ExpenseRepository(Repository[Expense], Protocol):
    """Persistence contract for expenses."""

    def remove(self, expense: Expense) -> None: ...

    def for_group(self, group: Group) -> Sequence[Expense]: ...

    def between_users(self, first: User, second: User) -> Sequence[Expense]: ...

    def find_matching(
        self,
        *,
        description: str,
        amount: float,
        date: datetime,
        group: Group | None,
        without_source: bool = False,
    ) -> Expense | None: ...

    def find_by_source_id(
        self,
        source_expense_id: str,
        *,
        group: Group | None,
    ) -> Expense | None: ...

    def count(self) -> int: ...
