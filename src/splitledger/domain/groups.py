"""Group creation, membership changes and the balances they depend on."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from splitledger.domain.balances import (
    MemberSummary,
    NetMatrix,
    build_member_summary,
    compute_net_matrix,
    is_zero,
    member_totals,
)
from splitledger.domain.model import Group, normalize_email

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from splitledger.domain.model import User
    from splitledger.domain.ports.notifications import NotificationSink
    from splitledger.domain.ports.persistence import ExpenseRepository
    from splitledger.domain.ports.unit_of_work import LedgerUnitOfWork

log = getLogger(__name__)


class GroupAccessError(PermissionError):
    """Raised when a user acts on a group they are not an active member of."""


class MemberInviteOutcome(StrEnum):
    ADDED = "added"
    ALREADY_MEMBER = "already_member"
    INVITED = "invited"
    INVITE_FAILED = "invite_failed"


@dataclass(frozen=True, slots=True)
class GroupBalances:
    group: Group
    matrix: NetMatrix
    totals: dict[UUID, float]
    summaries: dict[UUID, MemberSummary]


def group_balances(group: Group, expenses: ExpenseRepository) -> GroupBalances:
    """Balances over active and past members of ``group``."""

    members = group.all_members
    group_expenses = list(expenses.for_group(group))
    matrix = compute_net_matrix(group_expenses, members)
    return GroupBalances(
        group=group,
        matrix=matrix,
        totals=member_totals(group_expenses, members),
        summaries={member.id: build_member_summary(member.id, matrix) for member in members},
    )


def leave_group(group: Group, user: User, expenses: ExpenseRepository) -> bool:
    """Remove ``user`` from the active members.

    A member whose balance is not zero stays listed as a past member. Returns whether the
    member was settled.
    """
    balance = member_totals(expenses.for_group(group), group.all_members).get(user.id, 0.0)
    settled = is_zero(balance)
    group.remove_member(user, keep_as_past=not settled)
    log.info(
        "User %s left group %s (balance %.2f, settled=%s)", user.id, group.id, balance, settled
    )
    return settled


def _require_user(uow: LedgerUnitOfWork, user_id: UUID) -> User:
    user = uow.repositories.users.get(user_id)
    if user is None:
        raise LookupError(f"unknown user {user_id}")
    return user


def _require_membership(uow: LedgerUnitOfWork, group_id: UUID, user: User) -> Group:
    group = uow.repositories.groups.get(group_id)
    if group is None:
        raise LookupError(f"unknown group {group_id}")
    if not group.has_member(user):
        raise GroupAccessError(f"user {user.id} is not a member of group {group.id}")
    return group


def create_group(
    uow: LedgerUnitOfWork,
    *,
    creator_id: UUID,
    name: str,
    member_ids: Iterable[UUID] = (),
    note: str = "",
) -> Group:
    """Create a group; the creator is always a member."""

    if not name.strip():
        raise ValueError("group name must not be empty")
    creator = _require_user(uow, creator_id)
    members = [_require_user(uow, member_id) for member_id in member_ids]
    group = Group.create(name=name.strip(), creator=creator, members=members, note=note)
    uow.repositories.groups.add(group)
    uow.commit()
    log.info("User %s created group %s with %d member(s)", creator.id, group.id, len(members))
    return group


def groups_of(uow: LedgerUnitOfWork, *, user_id: UUID) -> list[Group]:
    return list(uow.repositories.groups.for_member(_require_user(uow, user_id)))


def invitation_body(group: Group, *, signup_url: str) -> str:
    return "\n".join(
        [
            "Hi there!",
            "",
            f'You\'ve been invited to join the group "{group.name}" on Splitledger to easily '
            "track and split expenses.",
            "",
            f"Sign up here to join: {signup_url}",
            "",
            "Welcome to Splitledger!",
        ]
    )


def add_member_by_email(
    uow: LedgerUnitOfWork,
    sink: NotificationSink,
    *,
    group_id: UUID,
    actor_id: UUID,
    email: str,
    signup_url: str,
) -> MemberInviteOutcome:
    """Add the account holding ``email`` to the group, or mail it an invitation.

    Ghost accounts count as known and are added directly. Nothing is stored for an
    invited address; the person joins once registered and added again.
    """

    group = _require_membership(uow, group_id, _require_user(uow, actor_id))
    address = normalize_email(email)
    user = uow.repositories.users.get_by_email(address)
    if user is None:
        subject = f"You're invited to join {group.name} on Splitledger!"
        if not sink.send(address, subject, invitation_body(group, signup_url=signup_url)):
            log.warning("Invitation to %s for group %s could not be sent", address, group.id)
            return MemberInviteOutcome.INVITE_FAILED
        log.info("Invited %s to group %s", address, group.id)
        return MemberInviteOutcome.INVITED
    if not group.add_member(user):
        return MemberInviteOutcome.ALREADY_MEMBER
    uow.commit()
    log.info("Added user %s to group %s", user.id, group.id)
    return MemberInviteOutcome.ADDED


def leave(uow: LedgerUnitOfWork, *, group_id: UUID, user_id: UUID) -> bool:
    user = _require_user(uow, user_id)
    group = _require_membership(uow, group_id, user)
    settled = leave_group(group, user, uow.repositories.expenses)
    uow.commit()
    return settled
