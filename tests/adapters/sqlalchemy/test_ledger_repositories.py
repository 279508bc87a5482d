"""Tests for the SQLAlchemy ledger repositories."""

from __future__ import annotations

from datetime import UTC, date, datetime

from sqlalchemy.orm import Session  # noqa: TC002

from splitledger.adapters.sqlalchemy.repositories import (
    SqlAlchemyExpenseRepository,
    SqlAlchemyGroupRepository,
    SqlAlchemyUserRepository,
)
from splitledger.domain.model import Group
from tests.helpers.ledger import make_expense, make_user

WHEN = datetime(2024, 3, 1, 12, tzinfo=UTC)


def test_user_lookup_by_email_ignores_case(sqlite_session: Session) -> None:
    users = SqlAlchemyUserRepository(sqlite_session)
    ana = make_user("ana", email="ana@example.com")
    users.add(ana)
    sqlite_session.commit()

    assert users.get_by_email("  ANA@example.com") is ana
    assert users.get_by_username("ana") is ana
    assert users.get_by_username("nobody") is None
    assert users.get(ana.id) is ana


def test_friend_links_round_trip(sqlite_session: Session) -> None:
    users = SqlAlchemyUserRepository(sqlite_session)
    ana, ben = make_user("ana"), make_user("ben")
    ana._attach_friend(ben)  # noqa: SLF001
    ben._attach_friend(ana)  # noqa: SLF001
    users.add(ana)
    users.add(ben)
    sqlite_session.commit()
    sqlite_session.expire_all()

    loaded = users.get(ana.id)
    assert loaded is not None
    assert [friend.id for friend in loaded.friends] == [ben.id]
    reloaded_ben = users.get(ben.id)
    assert reloaded_ben is not None
    assert reloaded_ben.has_friend(loaded)


def test_group_queries(sqlite_session: Session) -> None:
    groups = SqlAlchemyGroupRepository(sqlite_session)
    ana, ben, cy = make_user("ana"), make_user("ben"), make_user("cy")
    flat = Group.create(name="Flat", creator=ana, members=[ben])
    flat.settle_up_date = date(2024, 6, 1)
    trip = Group.create(name="Alps", creator=ben, members=[ana, cy])
    trip.remove_member(cy, keep_as_past=True)
    groups.add(flat)
    groups.add(trip)
    sqlite_session.commit()
    sqlite_session.expire_all()

    assert groups.find_by_name_for_member("Flat", ben) is flat
    assert groups.find_by_name_for_member("Flat", cy) is None
    assert [group.name for group in groups.for_member(ana)] == ["Alps", "Flat"]
    assert groups.settling_on(date(2024, 6, 1)) == [flat]
    assert groups.settling_on(date(2024, 6, 2)) == []
    loaded_trip = groups.get(trip.id)
    assert loaded_trip is not None
    assert [member.username for member in loaded_trip.past_members] == ["cy"]
    assert not loaded_trip.has_member(cy)


def test_expense_queries(sqlite_session: Session) -> None:
    expenses = SqlAlchemyExpenseRepository(sqlite_session)
    ana, ben, cy = make_user("ana"), make_user("ben"), make_user("cy")
    flat = Group.create(name="Flat", creator=ana, members=[ben, cy])
    rent = make_expense(ana, 900, [(ben, 300), (cy, 300)], group=flat, description="Rent")
    coffee = make_expense(ben, 4.5, [(ana, 4.5)], description="Coffee", when=WHEN)
    lunch = make_expense(cy, 20, [(ben, 10)], description="Lunch")
    coffee.source_expense_id = "splitwise:77"
    for expense in (rent, coffee, lunch):
        expenses.add(expense)
    sqlite_session.commit()
    sqlite_session.expire_all()

    assert expenses.count() == 3
    assert expenses.for_group(flat) == [rent]
    assert {expense.description for expense in expenses.between_users(ana, ben)} == {
        "Rent",
        "Coffee",
    }
    assert expenses.between_users(ana, cy) == [rent]

    assert expenses.find_by_source_id("splitwise:77", group=None) is coffee
    assert expenses.find_by_source_id("splitwise:77", group=flat) is None
    assert (
        expenses.find_matching(description="Coffee", amount=4.5, date=WHEN, group=None) is coffee
    )
    assert (
        expenses.find_matching(
            description="Coffee", amount=4.5, date=WHEN, group=None, without_source=True
        )
        is None
    )


def test_expense_splits_cascade(sqlite_session: Session) -> None:
    expenses = SqlAlchemyExpenseRepository(sqlite_session)
    ana, ben = make_user("ana"), make_user("ben")
    expense = make_expense(ana, 30, [(ana, 15), (ben, 15)])
    expenses.add(expense)
    sqlite_session.commit()
    sqlite_session.expire_all()

    loaded = expenses.get(expense.id)
    assert loaded is not None
    assert [(split.debtor.username, split.amount) for split in loaded.splits] == [
        ("ana", 15.0),
        ("ben", 15.0),
    ]
    assert loaded.date.tzinfo is not None

    expenses.remove(loaded)
    sqlite_session.commit()

    assert expenses.count() == 0
