from __future__ import annotations

import pytest

from splitledger.domain.groups import (
    GroupAccessError,
    MemberInviteOutcome,
    add_member_by_email,
    create_group,
    group_balances,
    groups_of,
    leave,
    leave_group,
)
from splitledger.domain.model import Group, User
from tests.helpers.ledger import (
    FakeExpenseRepository,
    FakeLedgerUnitOfWork,
    make_expense,
    make_user,
)
from tests.helpers.notifications import RecordingSink

SIGNUP_URL = "https://ledger.example/register"


def test_create_adds_creator_and_members_once() -> None:
    owner, guest = make_user("owner"), make_user("guest")

    group = Group.create(name="Trip", creator=owner, members=[guest, owner])

    assert [member.id for member in group.members] == [owner.id, guest.id]
    assert group.created_by is owner
    assert group.add_members([guest]) == 0


def test_settled_member_leaves_without_trace() -> None:
    owner, guest = make_user("owner"), make_user("guest")
    group = Group.create(name="Trip", creator=owner, members=[guest])
    expenses = FakeExpenseRepository([make_expense(owner, 10, [(owner, 10)], group=group)])

    assert leave_group(group, guest, expenses)

    assert not group.has_member(guest)
    assert group.past_members == ()


def test_member_with_balance_is_kept_as_past_member() -> None:
    owner, guest = make_user("owner"), make_user("guest")
    group = Group.create(name="Trip", creator=owner, members=[guest])
    expenses = FakeExpenseRepository([make_expense(owner, 40, [(guest, 20)], group=group)])

    assert not leave_group(group, guest, expenses)

    assert not group.has_member(guest)
    assert group.past_members == (guest,)
    balances = group_balances(group, expenses)
    assert balances.totals[guest.id] == pytest.approx(-20)
    assert balances.summaries[owner.id].owed_by[0].counterparty_id == guest.id


def test_rejoining_clears_past_membership() -> None:
    owner, guest = make_user("owner"), make_user("guest")
    group = Group.create(name="Trip", creator=owner, members=[guest])
    group.remove_member(guest, keep_as_past=True)

    assert group.add_member(guest)

    assert group.has_member(guest)
    assert group.past_members == ()


def test_non_member_cannot_leave() -> None:
    owner, stranger = make_user("owner"), make_user("stranger")
    group = Group.create(name="Trip", creator=owner)

    with pytest.raises(ValueError, match="not a member"):
        leave_group(group, stranger, FakeExpenseRepository())


def test_group_balances_only_count_group_expenses() -> None:
    owner, guest = make_user("owner"), make_user("guest")
    group = Group.create(name="Trip", creator=owner, members=[guest])
    other = Group.create(name="Other", creator=owner, members=[guest])
    expenses = FakeExpenseRepository(
        [
            make_expense(owner, 30, [(guest, 15)], group=group),
            make_expense(guest, 100, [(owner, 100)], group=other),
            make_expense(guest, 8, [(owner, 8)]),
        ]
    )

    balances = group_balances(group, expenses)

    assert balances.matrix[guest.id][owner.id] == pytest.approx(15)
    assert balances.matrix[owner.id][guest.id] == 0


@pytest.fixture
def uow() -> FakeLedgerUnitOfWork:
    uow = FakeLedgerUnitOfWork()
    for username in ("owner", "guest", "outsider"):
        uow.users.add(make_user(username))
    return uow


def _user(uow: FakeLedgerUnitOfWork, username: str) -> User:
    user = uow.users.get_by_username(username)
    assert user is not None
    return user


def _add(
    uow: FakeLedgerUnitOfWork,
    group: Group,
    actor: User,
    email: str,
    sink: RecordingSink | None = None,
) -> MemberInviteOutcome:
    return add_member_by_email(
        uow,
        sink or RecordingSink(),
        group_id=group.id,
        actor_id=actor.id,
        email=email,
        signup_url=SIGNUP_URL,
    )


def test_create_group_stores_and_lists_for_members(uow: FakeLedgerUnitOfWork) -> None:
    owner, guest = _user(uow, "owner"), _user(uow, "guest")

    group = create_group(uow, creator_id=owner.id, name="  Trip ", member_ids=[guest.id])

    assert group.name == "Trip"
    assert uow.groups.get(group.id) is group
    assert uow.commits == 1
    assert groups_of(uow, user_id=guest.id) == [group]
    assert groups_of(uow, user_id=_user(uow, "outsider").id) == []


def test_create_group_needs_a_name_and_known_members(uow: FakeLedgerUnitOfWork) -> None:
    owner = _user(uow, "owner")

    with pytest.raises(ValueError, match="name"):
        create_group(uow, creator_id=owner.id, name="  ")
    with pytest.raises(LookupError):
        create_group(uow, creator_id=owner.id, name="Trip", member_ids=[make_user("x").id])
    assert uow.groups.items == {}


def test_known_address_is_added_directly(uow: FakeLedgerUnitOfWork) -> None:
    owner, guest = _user(uow, "owner"), _user(uow, "guest")
    group = create_group(uow, creator_id=owner.id, name="Trip")
    sink = RecordingSink()

    outcome = _add(uow, group, owner, " GUEST@example.com ", sink)

    assert outcome is MemberInviteOutcome.ADDED
    assert group.has_member(guest)
    assert sink.sent == []
    again = _add(uow, group, owner, guest.email, sink)
    assert again is MemberInviteOutcome.ALREADY_MEMBER


def test_ghost_account_is_added_without_invitation(uow: FakeLedgerUnitOfWork) -> None:
    owner = _user(uow, "owner")
    ghost = make_user("imported", email="imported@example.com", ghost=True)
    uow.users.add(ghost)
    group = create_group(uow, creator_id=owner.id, name="Trip")
    sink = RecordingSink()

    outcome = _add(uow, group, owner, ghost.email, sink)

    assert outcome is MemberInviteOutcome.ADDED
    assert group.has_member(ghost)
    assert sink.sent == []


def test_unknown_address_gets_an_invitation(uow: FakeLedgerUnitOfWork) -> None:
    owner = _user(uow, "owner")
    group = create_group(uow, creator_id=owner.id, name="Trip")
    commits = uow.commits
    sink = RecordingSink()

    outcome = _add(uow, group, owner, "New@Example.com", sink)

    assert outcome is MemberInviteOutcome.INVITED
    ((to_address, subject, body),) = sink.sent
    assert to_address == "new@example.com"
    assert subject == "You're invited to join Trip on Splitledger!"
    assert '"Trip"' in body
    assert SIGNUP_URL in body
    assert [member.id for member in group.members] == [owner.id]
    assert uow.commits == commits


def test_failed_invitation_is_reported(uow: FakeLedgerUnitOfWork) -> None:
    owner = _user(uow, "owner")
    group = create_group(uow, creator_id=owner.id, name="Trip")
    sink = RecordingSink(fail_for={"new@example.com"})

    outcome = _add(uow, group, owner, "new@example.com", sink)

    assert outcome is MemberInviteOutcome.INVITE_FAILED


def test_only_members_may_add_members(uow: FakeLedgerUnitOfWork) -> None:
    owner, outsider = _user(uow, "owner"), _user(uow, "outsider")
    group = create_group(uow, creator_id=owner.id, name="Trip")

    with pytest.raises(GroupAccessError):
        _add(uow, group, outsider, outsider.email)
    assert not group.has_member(outsider)


def test_leave_commits_membership_change(uow: FakeLedgerUnitOfWork) -> None:
    owner, guest = _user(uow, "owner"), _user(uow, "guest")
    group = create_group(uow, creator_id=owner.id, name="Trip", member_ids=[guest.id])
    uow.expenses.add(make_expense(owner, 40, [(guest, 20)], group=group))

    assert not leave(uow, group_id=group.id, user_id=guest.id)

    assert group.past_members == (guest,)
    assert uow.commits == 2
    with pytest.raises(GroupAccessError):
        leave(uow, group_id=group.id, user_id=guest.id)
