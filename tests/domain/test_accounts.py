from __future__ import annotations

import pytest

from splitledger.domain.accounts import (
    RegistrationError,
    UserAlreadyExistsError,
    UsernameTakenError,
    hash_password,
    register_user,
    verify_password,
)
from splitledger.domain.friends import link_friends
from splitledger.domain.model import AccountState, Group
from tests.helpers.ledger import FakeLedgerUnitOfWork, make_expense, make_user


def test_register_creates_active_account() -> None:
    uow = FakeLedgerUnitOfWork()

    user = register_user(uow, username="ada", email="Ada@Example.com", password="s3cret")

    assert user.state is AccountState.ACTIVE
    assert user.email == "ada@example.com"
    assert verify_password(user, "s3cret")
    assert not verify_password(user, "wrong")
    assert uow.users.get(user.id) is user
    assert uow.commits == 1


def test_register_promotes_ghost_and_keeps_references() -> None:
    ghost = make_user("ghosty", email="gil@example.com", ghost=True)
    owner = make_user("owner")
    group = Group.create(name="Flat", creator=owner, members=[ghost])
    expense = make_expense(ghost, 40, [(owner, 20), (ghost, 20)], group=group)
    link_friends(owner, ghost)
    uow = FakeLedgerUnitOfWork()
    uow.users.add(ghost)
    uow.users.add(owner)
    uow.groups.add(group)
    uow.expenses.add(expense)
    ghost_id = ghost.id

    user = register_user(uow, username="gil", email="GIL@example.com", password="pw")

    assert user is ghost
    assert user.id == ghost_id
    assert not user.is_ghost
    assert user.username == "gil"
    assert verify_password(user, "pw")
    assert group.has_member(user)
    assert expense.payer.id == ghost_id
    assert expense.split_for(ghost_id) is not None
    assert owner.has_friend(user)
    assert len(uow.users.items) == 2


def test_register_rejects_existing_active_email() -> None:
    uow = FakeLedgerUnitOfWork()
    uow.users.add(make_user("ada", email="ada@example.com"))

    with pytest.raises(UserAlreadyExistsError):
        register_user(uow, username="ada2", email="ADA@example.com", password="pw")


def test_register_rejects_taken_username() -> None:
    uow = FakeLedgerUnitOfWork()
    uow.users.add(make_user("ada", email="ada@example.com"))

    with pytest.raises(UsernameTakenError):
        register_user(uow, username="ada", email="other@example.com", password="pw")


def test_ghost_may_keep_its_generated_username() -> None:
    ghost = make_user("gil", email="gil@example.com", ghost=True)
    uow = FakeLedgerUnitOfWork()
    uow.users.add(ghost)

    user = register_user(uow, username="gil", email="gil@example.com", password="pw")

    assert user is ghost
    assert not user.is_ghost


def test_register_requires_password() -> None:
    with pytest.raises(RegistrationError):
        register_user(FakeLedgerUnitOfWork(), username="x", email="x@example.com", password="")


def test_ghost_placeholder_never_verifies() -> None:
    ghost = make_user("ghost", ghost=True)
    ghost.password_hash = "!" + hash_password("guess")

    assert not verify_password(ghost, "guess")
