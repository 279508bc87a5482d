from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from splitledger.config.migration import MigrationConfig
from splitledger.domain.migration import (
    DEFAULT_EXPENSE_DESCRIPTION,
    IMPORTED_GROUP_NOTE,
    UNGROUPED_GROUP_NAME,
    ForeignAuthError,
    MigrationCredentials,
    MigrationFailedError,
    MigrationResult,
    run_migration,
)
from splitledger.domain.model import Expense, Group, MigrationStatus, User
from splitledger.domain.ports.foreign_ledger import ForeignExpense, ForeignGroup, ForeignMember
from tests.helpers.foreign_ledger import (
    ME,
    FakeForeignLedger,
    FakeTokenExchanger,
    foreign_expense,
)
from tests.helpers.ledger import FakeLedgerUnitOfWork, make_expense, make_user

FIXED_NOW = datetime(2024, 5, 1, 8, tzinfo=UTC)

BOB = ForeignMember(foreign_id=2, email="Bob@Example.com", first_name="Bob", last_name="Berg")
NOMAIL = ForeignMember(foreign_id=3, first_name="Nomail")
CARLA = ForeignMember(foreign_id=4, email="carla@example.com", first_name="Carla")


def _flat() -> ForeignGroup:
    return ForeignGroup(foreign_id=10, name="Flat", members=(ME, BOB, NOMAIL))


def _ungrouped() -> ForeignGroup:
    return ForeignGroup(foreign_id=0, name="Non-group expenses", members=(ME, BOB))


def _ledger() -> FakeForeignLedger:
    return FakeForeignLedger(
        groups=[_flat(), _ungrouped()],
        expenses={
            10: [
                foreign_expense(
                    101,
                    "30.00",
                    [(1, "30.00", "10.00"), (2, "0.00", "10.00"), (3, "0.00", "10.00")],
                    group_id=10,
                ),
                foreign_expense(102, "12.50", [(2, "12.50", "0"), (1, "0", "12.50")], group_id=10),
                foreign_expense(103, "5.00", [(1, "5.00", "5.00")], group_id=10, deleted=True),
                foreign_expense(104, "0.00", [(1, "0", "0")], group_id=10),
                foreign_expense(
                    105,
                    "-4.00",
                    [(1, "4.00", "0"), (2, "0", "4.00")],
                    description=None,
                    group_id=10,
                ),
            ],
            None: [
                foreign_expense(201, "8.00", [(2, "8.00", "0"), (1, "0", "8.00")]),
                foreign_expense(202, "9.00", [(1, "9.00", "0"), (2, "0", "9.00")], group_id=10),
            ],
        },
        friends=[BOB, CARLA, ForeignMember(foreign_id=5, first_name="Anon")],
    )


@dataclass
class Harness:
    user: User
    uow: FakeLedgerUnitOfWork
    ledger: FakeForeignLedger
    tokens: list[str] = field(default_factory=list[str])

    def ledger_factory(self, token: str) -> FakeForeignLedger:
        self.tokens.append(token)
        return self.ledger

    def run(
        self,
        credentials: MigrationCredentials | None = None,
        *,
        token_exchanger: FakeTokenExchanger | None = None,
    ) -> MigrationResult:
        return run_migration(
            user_id=self.user.id,
            credentials=credentials or MigrationCredentials(access_token="token"),
            ledger_factory=self.ledger_factory,
            unit_of_work_factory=lambda: self.uow,
            config=MigrationConfig(expense_page_size=2),
            clock=lambda: FIXED_NOW,
            token_exchanger=token_exchanger,
        )

    def group(self, name: str) -> Group:
        group = self.uow.groups.find_by_name_for_member(name, self.user)
        assert group is not None
        return group

    def expenses_in(self, name: str) -> list[Expense]:
        return self.uow.expenses.for_group(self.group(name))


@pytest.fixture
def harness() -> Harness:
    user = make_user("mia", email="mia@local.test")
    uow = FakeLedgerUnitOfWork()
    uow.users.add(user)
    return Harness(user=user, uow=uow, ledger=_ledger())


def test_full_migration_imports_groups_expenses_and_friends(harness: Harness) -> None:
    result = harness.run()

    assert result.groups_count == 2
    assert result.expenses_count == 4
    assert result.friends_count == 2
    assert result.duplicates_skipped == 0
    assert result.incomplete_groups == ()
    assert result.foreign_user_display_name == "Mia Meyer"
    assert harness.user.migration_status is MigrationStatus.COMPLETED
    assert harness.tokens == ["token"]
    assert harness.ledger.closed

    flat = harness.group("Flat")
    assert flat.note == IMPORTED_GROUP_NOTE
    assert flat.created_by is harness.user
    bob = harness.uow.users.get_by_email("bob@example.com")
    assert bob is not None
    assert bob.is_ghost
    assert {member.id for member in flat.members} == {harness.user.id, bob.id}

    by_source = {expense.source_expense_id: expense for expense in harness.expenses_in("Flat")}
    assert set(by_source) == {"splitwise:101", "splitwise:102", "splitwise:105"}
    dinner = by_source["splitwise:101"]
    assert dinner.payer is harness.user
    assert dinner.added_by is harness.user
    assert [(split.debtor.username, split.amount) for split in dinner.splits] == [
        ("mia", 10.0),
        (bob.username, 10.0),
    ]
    assert by_source["splitwise:102"].payer is bob
    refund = by_source["splitwise:105"]
    assert refund.amount == 4.0
    assert refund.description == DEFAULT_EXPENSE_DESCRIPTION

    ungrouped = harness.expenses_in(UNGROUPED_GROUP_NAME)
    assert [expense.source_expense_id for expense in ungrouped] == ["splitwise:201"]
    assert ungrouped[0].payer is bob


def test_friends_are_linked_both_ways(harness: Harness) -> None:
    harness.run()

    carla = harness.uow.users.get_by_email("carla@example.com")
    assert carla is not None
    assert carla.is_ghost
    assert carla.has_friend(harness.user)
    assert {friend.email for friend in harness.user.friends} == {
        "bob@example.com",
        "carla@example.com",
    }


def test_rerun_creates_no_duplicates(harness: Harness) -> None:
    harness.run()
    users_after_first = len(harness.uow.users.items)

    second = harness.run()

    assert second.expenses_count == 0
    assert second.duplicates_skipped == 4
    assert second.friends_count == 2
    assert harness.uow.expenses.count() == 4
    assert len(harness.uow.users.items) == users_after_first
    assert len(harness.uow.groups.items) == 2


def test_legacy_import_without_source_id_is_claimed(harness: Harness) -> None:
    flat = Group.create(name="Flat", creator=harness.user)
    harness.uow.groups.add(flat)
    legacy = make_expense(
        harness.user,
        30.0,
        [(harness.user, 30.0)],
        description="Groceries",
        group=flat,
        when=datetime(2024, 2, 1, 18, 41, tzinfo=UTC),
    )
    harness.uow.expenses.add(legacy)

    result = harness.run()

    assert result.duplicates_skipped == 1
    assert result.expenses_count == 3
    assert legacy.source_expense_id == "splitwise:101"
    assert harness.group("Flat") is flat


def test_unmapped_participants_fall_back_to_migrating_user(harness: Harness) -> None:
    harness.ledger.groups = [ForeignGroup(foreign_id=11, name="Club", members=(ME, NOMAIL))]
    harness.ledger.expenses = {
        11: [foreign_expense(301, "20.00", [(3, "20.00", "0"), (3, "0", "20.00")], group_id=11)]
    }

    harness.run()

    (expense,) = harness.expenses_in("Club")
    assert expense.payer is harness.user
    assert [(split.debtor, split.amount) for split in expense.splits] == [(harness.user, 20.0)]


def test_failed_page_marks_group_incomplete(harness: Harness) -> None:
    harness.ledger.failing_offsets = {10: 2}

    result = harness.run()

    assert result.incomplete_groups == ("Flat",)
    assert result.groups_count == 1
    assert result.expenses_count == 3
    assert harness.user.migration_status is MigrationStatus.COMPLETED
    assert (10, 2, 2) in harness.ledger.expense_calls


@dataclass
class ForbiddenGroupLedger(FakeForeignLedger):
    forbidden_group: int = 10

    def list_expenses(
        self,
        group_id: int | None,
        *,
        limit: int,
        offset: int,
    ) -> list[ForeignExpense]:
        if group_id == self.forbidden_group:
            raise ForeignAuthError("group not visible to this token")
        return super().list_expenses(group_id, limit=limit, offset=offset)


def test_forbidden_group_does_not_abort_the_run(harness: Harness) -> None:
    original = harness.ledger
    harness.ledger = ForbiddenGroupLedger(
        groups=original.groups, expenses=original.expenses, friends=original.friends
    )

    result = harness.run()

    assert result.incomplete_groups == ("Flat",)
    assert result.groups_count == 1
    assert result.expenses_count == 1
    assert result.friends_count == 2
    assert harness.user.migration_status is MigrationStatus.COMPLETED
    assert [e.source_expense_id for e in harness.expenses_in(UNGROUPED_GROUP_NAME)] == [
        "splitwise:201"
    ]


def test_unreadable_records_are_skipped_without_ending_paging(harness: Harness) -> None:
    harness.ledger.expenses[10] = [
        ForeignExpense(foreign_id=100, description=None, cost=None, readable=False),
        ForeignExpense(foreign_id=0, description=None, cost=None, readable=False),
        foreign_expense(101, "30.00", [(1, "30.00", "15.00"), (2, "0", "15.00")], group_id=10),
    ]

    result = harness.run()

    assert result.incomplete_groups == ()
    assert [e.source_expense_id for e in harness.expenses_in("Flat")] == ["splitwise:101"]


def test_authentication_failure_leaves_status_untouched(harness: Harness) -> None:
    harness.ledger.fail_current_user = True

    with pytest.raises(ForeignAuthError):
        harness.run()

    assert harness.user.migration_status is MigrationStatus.NONE
    assert harness.ledger.closed
    assert harness.uow.commits == 0
    assert harness.uow.rollbacks == 1


def test_group_listing_failure_aborts_after_marking_pending(harness: Harness) -> None:
    harness.ledger.fail_groups = True

    with pytest.raises(MigrationFailedError):
        harness.run()

    assert harness.user.migration_status is MigrationStatus.PENDING
    assert harness.ledger.closed
    assert harness.uow.commits == 1


def test_friend_listing_failure_is_not_fatal(harness: Harness) -> None:
    harness.ledger.fail_friends = True

    result = harness.run()

    assert result.friends_count == 0
    assert result.expenses_count == 4
    assert harness.user.migration_status is MigrationStatus.COMPLETED


def test_authorization_code_is_exchanged_for_a_token(harness: Harness) -> None:
    exchanger = FakeTokenExchanger(token="fresh")

    harness.run(
        MigrationCredentials(authorization_code="abc", redirect_uri="http://localhost/cb"),
        token_exchanger=exchanger,
    )

    assert exchanger.calls == [("abc", "http://localhost/cb")]
    assert harness.tokens == ["fresh"]


def test_rejected_authorization_code(harness: Harness) -> None:
    with pytest.raises(ForeignAuthError):
        harness.run(
            MigrationCredentials(authorization_code="stale"),
            token_exchanger=FakeTokenExchanger(reject=True),
        )

    assert harness.tokens == []
    assert harness.user.migration_status is MigrationStatus.NONE


def test_unknown_user_is_rejected() -> None:
    with pytest.raises(LookupError):
        run_migration(
            user_id=make_user("nobody").id,
            credentials=MigrationCredentials(access_token="token"),
            ledger_factory=lambda _token: FakeForeignLedger(),
            unit_of_work_factory=FakeLedgerUnitOfWork,
        )


@pytest.mark.parametrize(
    ("token", "code"),
    [(None, None), ("  ", None), ("token", "code")],
)
def test_credentials_need_exactly_one_secret(token: str | None, code: str | None) -> None:
    with pytest.raises(ValueError, match="exactly one"):
        MigrationCredentials(access_token=token, authorization_code=code)
