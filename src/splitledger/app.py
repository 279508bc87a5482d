"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date as date_type
from logging import getLogger
from typing import TYPE_CHECKING

from splitledger.adapters.mail import build_notification_sink
from splitledger.adapters.splitwise import (
    SplitwiseOAuth,
    authorization_url,
    splitwise_ledger_factory,
)
from splitledger.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyLedgerUnitOfWork,
    is_started,
    startup,
)
from splitledger.config import (
    get_mail_config,
    get_migration_config,
    get_signup_url,
    get_splitwise_config,
    get_splitwise_token_config,
)
from splitledger.domain import accounts, expenses, friends, groups, settle_up
from splitledger.domain.friends import balance_with_friend
from splitledger.domain.groups import GroupBalances, MemberInviteOutcome, group_balances
from splitledger.domain.migration import MigrationCredentials, MigrationResult, run_migration
from splitledger.domain.ports.unit_of_work import LedgerUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from datetime import datetime
    from uuid import UUID

    from splitledger.domain.model import Expense, Group, User
    from splitledger.domain.ports.foreign_ledger import ForeignLedgerFactory, TokenExchanger
    from splitledger.domain.ports.notifications import NotificationSink
    from splitledger.domain.settle_up import SettleUpRunResult

UnitOfWorkFactory = Callable[[], LedgerUnitOfWork]


log = getLogger(__name__)


def _unit_of_work_factory(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyLedgerUnitOfWork


def register_user(
    *,
    username: str,
    email: str,
    password: str,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> User:
    """Create an account; an existing ghost with the same email is promoted."""

    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        return accounts.register_user(uow, username=username, email=email, password=password)


def migrate_splitwise(
    *,
    user_id: UUID,
    access_token: str | None = None,
    authorization_code: str | None = None,
    redirect_uri: str | None = None,
    ledger_factory: ForeignLedgerFactory | None = None,
    token_exchanger: TokenExchanger | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> MigrationResult:
    """Import the Splitwise ledger visible to the given token or authorization code."""

    credentials = MigrationCredentials(
        access_token=access_token,
        authorization_code=authorization_code,
        redirect_uri=redirect_uri,
    )
    effective_uow = _unit_of_work_factory(unit_of_work_factory)
    effective_ledgers = ledger_factory or splitwise_ledger_factory()
    effective_exchanger = token_exchanger
    if effective_exchanger is None and credentials.authorization_code is not None:
        effective_exchanger = SplitwiseOAuth(config=get_splitwise_config())

    log.info(
        "Starting Splitwise migration: user=%s, flow=%s",
        user_id,
        "authorization-code" if credentials.authorization_code else "token",
    )
    return run_migration(
        user_id=user_id,
        credentials=credentials,
        ledger_factory=effective_ledgers,
        unit_of_work_factory=effective_uow,
        token_exchanger=effective_exchanger,
        config=get_migration_config(),
    )


def splitwise_authorization_url(*, redirect_uri: str | None = None) -> str:
    return authorization_url(get_splitwise_token_config(), redirect_uri=redirect_uri)


def group_balance_view(
    *,
    group_id: UUID,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> GroupBalances:
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        group = uow.repositories.groups.get(group_id)
        if group is None:
            raise LookupError(f"unknown group {group_id}")
        return group_balances(group, uow.repositories.expenses)


def friend_balance_view(
    *,
    user_id: UUID,
    friend_id: UUID,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> float:
    """Signed balance with a friend; positive when the friend owes the user."""

    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        users = uow.repositories.users
        user = users.get(user_id)
        friend = users.get(friend_id)
        if user is None or friend is None:
            raise LookupError("unknown user")
        return balance_with_friend(user, friend, uow.repositories.expenses)


def create_group(
    *,
    creator_id: UUID,
    name: str,
    member_ids: Sequence[UUID] = (),
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Group:
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        return groups.create_group(uow, creator_id=creator_id, name=name, member_ids=member_ids)


def list_groups(
    *,
    user_id: UUID,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[Group]:
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        return groups.groups_of(uow, user_id=user_id)


def add_group_member(
    *,
    group_id: UUID,
    actor_id: UUID,
    email: str,
    sink: NotificationSink | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> MemberInviteOutcome:
    """Add a known account to the group; unknown addresses get an invitation mail."""

    effective_sink = sink or build_notification_sink(get_mail_config())
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        return groups.add_member_by_email(
            uow,
            effective_sink,
            group_id=group_id,
            actor_id=actor_id,
            email=email,
            signup_url=get_signup_url(),
        )


def leave_group(
    *,
    group_id: UUID,
    user_id: UUID,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> bool:
    """Leave a group; returns False when the user stays on as a past member."""

    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        return groups.leave(uow, group_id=group_id, user_id=user_id)


def add_expense(
    *,
    added_by_id: UUID,
    description: str,
    amount: float,
    splits: Mapping[UUID, float],
    payer_id: UUID | None = None,
    group_id: UUID | None = None,
    when: datetime | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Expense:
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        return expenses.add_expense(
            uow,
            added_by_id=added_by_id,
            description=description,
            amount=amount,
            splits=splits,
            payer_id=payer_id,
            group_id=group_id,
            when=when,
        )


def edit_expense(
    *,
    expense_id: UUID,
    user_id: UUID,
    description: str | None = None,
    amount: float | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Expense:
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        return expenses.edit_expense(
            uow,
            expense_id=expense_id,
            user_id=user_id,
            description=description,
            amount=amount,
        )


def delete_expense(
    *,
    expense_id: UUID,
    user_id: UUID,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> None:
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        expenses.delete_expense(uow, expense_id=expense_id, user_id=user_id)


def add_friend(
    *,
    user_id: UUID,
    friend_id: UUID,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> bool:
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        return friends.add_friend(uow, user_id=user_id, friend_id=friend_id)


def send_settle_up_reminders(
    *,
    on: date_type | None = None,
    sink: NotificationSink | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> SettleUpRunResult:
    """Mail every active member of each group whose settle-up date is ``on``."""

    day = on or date_type.today()
    effective_sink = sink or build_notification_sink(get_mail_config())
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        result = settle_up.send_settle_up_reminders(
            uow.repositories.groups,
            uow.repositories.expenses,
            effective_sink,
            on=day,
        )
    log.info(
        "Settle-up run for %s: groups=%d, sent=%d, failed=%d",
        day.isoformat(),
        result.groups,
        result.sent,
        result.failed,
    )
    return result
