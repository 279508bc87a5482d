"""Recording, editing and removing expenses."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from splitledger.domain.model import Expense, Split

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

    from splitledger.domain.model import Group, User
    from splitledger.domain.ports.unit_of_work import LedgerUnitOfWork

log = getLogger(__name__)


class ExpensePermissionError(PermissionError):
    """Raised when someone other than the expense's author edits or deletes it."""


def _user(uow: LedgerUnitOfWork, user_id: UUID) -> User:
    user = uow.repositories.users.get(user_id)
    if user is None:
        raise LookupError(f"unknown user {user_id}")
    return user


def _editable_expense(uow: LedgerUnitOfWork, expense_id: UUID, user_id: UUID) -> Expense:
    expense = uow.repositories.expenses.get(expense_id)
    if expense is None:
        raise LookupError(f"unknown expense {expense_id}")
    if not expense.can_be_modified_by(_user(uow, user_id)):
        raise ExpensePermissionError(
            f"only the user who added expense {expense_id} may change it"
        )
    return expense


def _check_participants(group: Group, participants: list[User]) -> None:
    outsiders = [user.username for user in participants if not group.has_member(user)]
    if outsiders:
        raise ValueError(f"not members of group {group.name!r}: {', '.join(outsiders)}")


def add_expense(
    uow: LedgerUnitOfWork,
    *,
    added_by_id: UUID,
    description: str,
    amount: float,
    splits: Mapping[UUID, float],
    payer_id: UUID | None = None,
    group_id: UUID | None = None,
    when: datetime | None = None,
) -> Expense:
    """Record an expense paid by ``payer_id`` (default: the author).

    ``splits`` maps debtor ids to their share; shares need not cover the full amount.
    Within a group, the author, the payer and every debtor must be active members.
    """

    author = _user(uow, added_by_id)
    payer = author if payer_id is None else _user(uow, payer_id)
    debtors = [(_user(uow, debtor_id), share) for debtor_id, share in splits.items()]

    group = None
    if group_id is not None:
        group = uow.repositories.groups.get(group_id)
        if group is None:
            raise LookupError(f"unknown group {group_id}")
        _check_participants(group, [author, payer, *(debtor for debtor, _ in debtors)])

    expense = Expense(
        description=description.strip(),
        amount=amount,
        payer=payer,
        added_by=author,
        date=when or datetime.now(UTC),
        group=group,
        splits=[Split(debtor=debtor, amount=share) for debtor, share in debtors],
    )
    uow.repositories.expenses.add(expense)
    uow.commit()
    log.info("User %s added expense %s (%.2f)", author.id, expense.id, amount)
    return expense


def edit_expense(
    uow: LedgerUnitOfWork,
    *,
    expense_id: UUID,
    user_id: UUID,
    description: str | None = None,
    amount: float | None = None,
) -> Expense:
    """Change the description and/or amount; a new amount rescales every split."""

    expense = _editable_expense(uow, expense_id, user_id)
    if description:
        expense.description = description.strip()
    if amount is not None and amount != expense.amount:
        expense.rescale(amount)
    uow.commit()
    log.info("User %s edited expense %s", user_id, expense.id)
    return expense


def delete_expense(uow: LedgerUnitOfWork, *, expense_id: UUID, user_id: UUID) -> None:
    expense = _editable_expense(uow, expense_id, user_id)
    uow.repositories.expenses.remove(expense)
    uow.commit()
    log.info("User %s deleted expense %s", user_id, expense_id)
