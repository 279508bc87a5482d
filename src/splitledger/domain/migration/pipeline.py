"""Import a foreign ledger (groups, expenses and friends) into the local store."""

from __future__ import annotations

import math
from contextlib import closing
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from splitledger.config.migration import MigrationConfig
from splitledger.domain.friends import link_friends
from splitledger.domain.identity import IdentityResolver
from splitledger.domain.migration.errors import (
    ForeignAuthError,
    ForeignLedgerError,
    MigrationFailedError,
)
from splitledger.domain.migration.pagination import ExpensePages
from splitledger.domain.model import Expense, Group, LedgerSource, Split

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from splitledger.domain.model import User
    from splitledger.domain.ports.foreign_ledger import (
        ForeignExpense,
        ForeignGroup,
        ForeignLedger,
        ForeignLedgerFactory,
        ForeignMember,
        TokenExchanger,
    )
    from splitledger.domain.ports.unit_of_work import LedgerUnitOfWork

log = getLogger(__name__)

UNGROUPED_GROUP_NAME = "Splitwise: Individuals"
IMPORTED_GROUP_NOTE = "Imported from Splitwise"
DEFAULT_EXPENSE_DESCRIPTION = "Splitwise Migrated"


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class MigrationCredentials:
    """Either a personal access token or an OAuth authorization code."""

    access_token: str | None = None
    authorization_code: str | None = None
    redirect_uri: str | None = None

    def __post_init__(self) -> None:
        token = (self.access_token or "").strip()
        code = (self.authorization_code or "").strip()
        if bool(token) == bool(code):
            raise ValueError("provide exactly one of access_token or authorization_code")
        object.__setattr__(self, "access_token", token or None)
        object.__setattr__(self, "authorization_code", code or None)


@dataclass(frozen=True, slots=True)
class MigrationResult:
    """Aggregate outcome of one migration run."""

    groups_count: int
    expenses_count: int
    friends_count: int
    foreign_user_display_name: str
    duplicates_skipped: int = 0
    incomplete_groups: tuple[str, ...] = field(default_factory=tuple)


@dataclass(slots=True)
class _GroupImport:
    imported: int = 0
    duplicates: int = 0
    complete: bool = True


def _parse_amount(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def _source_id(expense: ForeignExpense) -> str:
    return f"{LedgerSource.SPLITWISE}:{expense.foreign_id}"


def authenticate(
    credentials: MigrationCredentials,
    *,
    ledger_factory: ForeignLedgerFactory,
    token_exchanger: TokenExchanger | None = None,
) -> tuple[ForeignLedger, ForeignMember]:
    """Obtain a verified foreign ledger session; the caller closes it.

    Every failure is reported as ``ForeignAuthError``.
    """
    try:
        if credentials.authorization_code is not None:
            if token_exchanger is None:
                raise ForeignAuthError("authorization code given but no token exchanger configured")
            token = token_exchanger.exchange_code(
                credentials.authorization_code,
                redirect_uri=credentials.redirect_uri,
            )
        else:
            token = credentials.access_token or ""
        ledger = ledger_factory(token)
    except ForeignAuthError:
        raise
    except ForeignLedgerError as exc:
        raise ForeignAuthError(f"could not obtain a foreign session: {exc}") from exc

    try:
        foreign_user = ledger.current_user()
    except ForeignLedgerError as exc:
        ledger.close()
        if isinstance(exc, ForeignAuthError):
            raise
        raise ForeignAuthError(f"could not verify foreign credentials: {exc}") from exc
    return ledger, foreign_user


def run_migration(
    *,
    user_id: UUID,
    credentials: MigrationCredentials,
    ledger_factory: ForeignLedgerFactory,
    unit_of_work_factory: Callable[[], LedgerUnitOfWork],
    token_exchanger: TokenExchanger | None = None,
    config: MigrationConfig | None = None,
    clock: Callable[[], datetime] = _utcnow,
) -> MigrationResult:
    """Import every group, expense and friend visible to the foreign identity.

    The user's migration status is committed as pending before foreign data is written
    and as completed at the end. Running the import again against the same foreign data
    creates no duplicate expenses.
    """
    effective_config = config or MigrationConfig()

    with unit_of_work_factory() as uow:
        user = uow.repositories.users.get(user_id)
        if user is None:
            raise LookupError(f"unknown user {user_id}")

        log.info("Starting foreign ledger migration for user %s", user.id)
        ledger, foreign_user = authenticate(
            credentials,
            ledger_factory=ledger_factory,
            token_exchanger=token_exchanger,
        )
        log.info("Verified foreign identity as %s", foreign_user.display_name)

        with closing(ledger):
            user.begin_migration()
            uow.commit()

            try:
                foreign_groups = ledger.list_groups()
            except ForeignLedgerError as exc:
                raise MigrationFailedError(f"could not list foreign groups: {exc}") from exc
            log.info("Found %d foreign group(s)", len(foreign_groups))

            migration = _Migration(
                uow=uow,
                user=user,
                foreign_user=foreign_user,
                ledger=ledger,
                page_size=effective_config.expense_page_size,
                clock=clock,
            )
            groups_count = 0
            expenses_count = 0
            duplicates = 0
            incomplete: list[str] = []
            for foreign_group in foreign_groups:
                local_group, outcome = migration.import_group(foreign_group)
                uow.commit()
                expenses_count += outcome.imported
                duplicates += outcome.duplicates
                if outcome.complete:
                    groups_count += 1
                else:
                    incomplete.append(local_group.name)

            friends_count = migration.import_friends()
            uow.commit()

            user.complete_migration()
            uow.commit()

    result = MigrationResult(
        groups_count=groups_count,
        expenses_count=expenses_count,
        friends_count=friends_count,
        foreign_user_display_name=foreign_user.display_name,
        duplicates_skipped=duplicates,
        incomplete_groups=tuple(incomplete),
    )
    log.info(
        "Migration complete: groups=%d, expenses=%d, friends=%d, duplicates=%d, incomplete=%s",
        result.groups_count,
        result.expenses_count,
        result.friends_count,
        result.duplicates_skipped,
        list(result.incomplete_groups),
    )
    return result


class _Migration:
    def __init__(
        self,
        *,
        uow: LedgerUnitOfWork,
        user: User,
        foreign_user: ForeignMember,
        ledger: ForeignLedger,
        page_size: int,
        clock: Callable[[], datetime],
    ) -> None:
        self._uow = uow
        self._user = user
        self._foreign_user = foreign_user
        self._ledger = ledger
        self._page_size = page_size
        self._clock = clock
        self._resolver = IdentityResolver(uow.repositories.users, clock=clock)

    def import_group(self, foreign_group: ForeignGroup) -> tuple[Group, _GroupImport]:
        members = self._resolve_members(foreign_group)
        group = self._find_or_create_group(foreign_group, members)
        outcome = _GroupImport()

        group_filter = None if foreign_group.is_ungrouped else foreign_group.foreign_id
        pages = ExpensePages(
            lambda limit, offset: self._ledger.list_expenses(
                group_filter, limit=limit, offset=offset
            ),
            page_size=self._page_size,
        )
        try:
            for page in pages:
                for foreign_expense in page:
                    if foreign_group.is_ungrouped and foreign_expense.group_id not in (None, 0):
                        continue
                    self._import_expense(foreign_expense, group, members, outcome)
        except ForeignLedgerError as exc:
            outcome.complete = False
            log.warning(
                "Stopped importing %s at offset %d: %s", group.name, pages.offset, exc
            )

        log.info(
            "Imported %d expense(s) into %s (%d duplicate(s) skipped)",
            outcome.imported,
            group.name,
            outcome.duplicates,
        )
        return group, outcome

    def import_friends(self) -> int:
        try:
            friends = self._ledger.list_friends()
        except ForeignLedgerError as exc:
            log.warning("Skipping friends import: %s", exc)
            return 0

        linked = 0
        for friend in friends:
            if not friend.email:
                log.debug("Friend %s has no email; skipped", friend.foreign_id)
                continue
            try:
                local = self._resolver.resolve(friend)
                if local is None or local.id == self._user.id:
                    continue
                link_friends(self._user, local)
            except (ForeignLedgerError, ValueError) as exc:
                log.warning("Could not link friend %s: %s", friend.display_name, exc)
                continue
            linked += 1
        return linked

    def _resolve_members(self, foreign_group: ForeignGroup) -> dict[int, User]:
        members: dict[int, User] = {self._foreign_user.foreign_id: self._user}
        for member in foreign_group.members:
            if member.foreign_id in members:
                continue
            local = self._resolver.resolve(member)
            if local is not None:
                members[member.foreign_id] = local
        return members

    def _find_or_create_group(self, foreign_group: ForeignGroup, members: dict[int, User]) -> Group:
        groups = self._uow.repositories.groups
        name = UNGROUPED_GROUP_NAME if foreign_group.is_ungrouped else foreign_group.name
        group = groups.find_by_name_for_member(name, self._user)
        if group is None:
            group = Group.create(
                name=name,
                creator=self._user,
                members=members.values(),
                note=IMPORTED_GROUP_NOTE,
            )
            groups.add(group)
            log.info("Created group %s", name)
        else:
            added = group.add_members(members.values())
            log.info("Reusing group %s (%d new member(s))", name, added)
        return group

    def _import_expense(
        self,
        foreign_expense: ForeignExpense,
        group: Group,
        members: dict[int, User],
        outcome: _GroupImport,
    ) -> None:
        if not foreign_expense.readable:
            log.debug("Skipping unreadable expense %s", foreign_expense.foreign_id)
            return
        if foreign_expense.deleted_at is not None:
            return
        cost = _parse_amount(foreign_expense.cost)
        if cost is None or cost == 0:
            log.debug(
                "Skipping expense %s with cost %r", foreign_expense.foreign_id, foreign_expense.cost
            )
            return

        amount = abs(cost)
        description = foreign_expense.description or DEFAULT_EXPENSE_DESCRIPTION
        occurred_at = foreign_expense.date or self._clock()
        source_id = _source_id(foreign_expense)

        if self._is_duplicate(source_id, description, amount, occurred_at, group):
            outcome.duplicates += 1
            return

        expense = Expense(
            description=description,
            amount=amount,
            payer=self._payer(foreign_expense, members),
            added_by=self._user,
            date=occurred_at,
            group=group,
            splits=self._splits(foreign_expense, members, amount),
            source_expense_id=source_id,
        )
        self._uow.repositories.expenses.add(expense)
        outcome.imported += 1

    def _is_duplicate(
        self,
        source_id: str,
        description: str,
        amount: float,
        occurred_at: datetime,
        group: Group,
    ) -> bool:
        expenses = self._uow.repositories.expenses
        if expenses.find_by_source_id(source_id, group=group) is not None:
            return True
        legacy = expenses.find_matching(
            description=description,
            amount=amount,
            date=occurred_at,
            group=group,
            without_source=True,
        )
        if legacy is None:
            return False
        legacy.source_expense_id = source_id
        log.debug("Claimed earlier import %s for %s", legacy.id, source_id)
        return True

    def _payer(self, foreign_expense: ForeignExpense, members: dict[int, User]) -> User:
        for share in foreign_expense.shares:
            paid = _parse_amount(share.paid_share)
            if paid is not None and paid > 0:
                return members.get(share.user_id, self._user)
        return self._user

    def _splits(
        self,
        foreign_expense: ForeignExpense,
        members: dict[int, User],
        amount: float,
    ) -> list[Split]:
        splits: list[Split] = []
        for share in foreign_expense.shares:
            owed = _parse_amount(share.owed_share)
            if owed is None or owed <= 0:
                continue
            debtor = members.get(share.user_id)
            if debtor is None:
                log.debug("Dropping unmapped participant %s", share.user_id)
                continue
            splits.append(Split(debtor=debtor, amount=owed))
        if not splits:
            splits.append(Split(debtor=self._user, amount=amount))
        return splits
