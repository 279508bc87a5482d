from __future__ import annotations

import logging

import pytest

from splitledger.domain.friends import add_friend, are_friends, balance_with_friend, link_friends
from tests.helpers.ledger import (
    FakeExpenseRepository,
    FakeLedgerUnitOfWork,
    make_expense,
    make_user,
)


def test_link_writes_both_sides() -> None:
    ana, ben = make_user("ana"), make_user("ben")

    assert link_friends(ana, ben)

    assert ana.has_friend(ben)
    assert ben.has_friend(ana)
    assert are_friends(ana, ben)


def test_linking_twice_is_a_no_op() -> None:
    ana, ben = make_user("ana"), make_user("ben")
    link_friends(ana, ben)

    assert not link_friends(ben, ana)
    assert len(ana.friends) == 1
    assert len(ben.friends) == 1


def test_one_sided_link_is_repaired(caplog: pytest.LogCaptureFixture) -> None:
    ana, ben = make_user("ana"), make_user("ben")
    ana._attach_friend(ben)  # noqa: SLF001
    assert not are_friends(ana, ben)

    with caplog.at_level(logging.WARNING):
        assert link_friends(ana, ben)

    assert are_friends(ana, ben)
    assert "one-sided" in caplog.text


def test_self_friendship_is_rejected() -> None:
    ana = make_user("ana")

    with pytest.raises(ValueError, match="befriend themselves"):
        link_friends(ana, ana)


def test_balance_with_friend_uses_direct_and_group_expenses() -> None:
    ana, ben, cy = make_user("ana"), make_user("ben"), make_user("cy")
    expenses = FakeExpenseRepository(
        [
            make_expense(ana, 50, [(ben, 25), (ana, 25)]),
            make_expense(ben, 12, [(ana, 12)]),
            make_expense(cy, 30, [(ana, 15), (ben, 15)]),
        ]
    )

    assert balance_with_friend(ana, ben, expenses) == pytest.approx(13)
    assert balance_with_friend(ben, ana, expenses) == pytest.approx(-13)


def test_add_friend_links_and_commits_once() -> None:
    ana, ben = make_user("ana"), make_user("ben")
    uow = FakeLedgerUnitOfWork()
    uow.users.add(ana)
    uow.users.add(ben)

    assert add_friend(uow, user_id=ana.id, friend_id=ben.id)
    assert not add_friend(uow, user_id=ben.id, friend_id=ana.id)

    assert are_friends(ana, ben)
    assert uow.commits == 1


def test_add_friend_rejects_unknown_and_self() -> None:
    ana = make_user("ana")
    uow = FakeLedgerUnitOfWork()
    uow.users.add(ana)

    with pytest.raises(LookupError):
        add_friend(uow, user_id=ana.id, friend_id=make_user("ghost").id)
    with pytest.raises(ValueError, match="themselves"):
        add_friend(uow, user_id=ana.id, friend_id=ana.id)
    assert uow.commits == 0
