"""Bidirectional friend links."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from splitledger.domain.balances import friend_balance

if TYPE_CHECKING:
    from uuid import UUID

    from splitledger.domain.model import User
    from splitledger.domain.ports.persistence import ExpenseRepository
    from splitledger.domain.ports.unit_of_work import LedgerUnitOfWork

log = getLogger(__name__)


def link_friends(first: User, second: User) -> bool:
    """Write both sides of a friend link.

    The two sides are independent references. A link found on one side only is
    repaired. Returns True when either side changed.
    """
    added_forward = first._attach_friend(second)  # noqa: SLF001
    added_backward = second._attach_friend(first)  # noqa: SLF001
    if added_forward != added_backward:
        log.warning("Repaired one-sided friend link between %s and %s", first.id, second.id)
    return added_forward or added_backward


def are_friends(first: User, second: User) -> bool:
    return first.has_friend(second) and second.has_friend(first)


def balance_with_friend(user: User, friend: User, expenses: ExpenseRepository) -> float:
    """Signed balance with ``friend``; positive when the friend owes ``user``."""

    return friend_balance(user.id, friend.id, expenses.between_users(user, friend))


def add_friend(uow: LedgerUnitOfWork, *, user_id: UUID, friend_id: UUID) -> bool:
    """Befriend another account; returns False when the two already were friends."""

    if user_id == friend_id:
        raise ValueError("users cannot befriend themselves")
    users = uow.repositories.users
    user = users.get(user_id)
    friend = users.get(friend_id)
    if user is None or friend is None:
        raise LookupError("unknown user")
    if not link_friends(user, friend):
        return False
    uow.commit()
    log.info("Users %s and %s are now friends", user.id, friend.id)
    return True
