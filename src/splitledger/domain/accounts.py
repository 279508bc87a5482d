"""Account registration, including promotion of ghost accounts."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

import bcrypt

from splitledger.domain.identity import is_unusable_password
from splitledger.domain.model import User, normalize_email

if TYPE_CHECKING:
    from splitledger.domain.ports.unit_of_work import LedgerUnitOfWork

log = getLogger(__name__)


class RegistrationError(ValueError):
    """Raised when an account cannot be registered."""


class UserAlreadyExistsError(RegistrationError):
    """Raised when the email already belongs to an active account."""


class UsernameTakenError(RegistrationError):
    """Raised when the username belongs to someone else."""


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(user: User, password: str) -> bool:
    if user.is_ghost or is_unusable_password(user.password_hash):
        return False
    return bcrypt.checkpw(password.encode("utf-8"), user.password_hash.encode("utf-8"))


def register_user(
    uow: LedgerUnitOfWork,
    *,
    username: str,
    email: str,
    password: str,
) -> User:
    """Create an account, or promote the ghost holding ``email``.

    Promotion keeps the user id, so every group membership, expense and friend link
    created during a migration now belongs to the registering person.
    """

    if not password:
        raise RegistrationError("password must not be empty")
    users = uow.repositories.users
    normalized = normalize_email(email)

    holder = users.get_by_username(username)
    existing = users.get_by_email(normalized)

    if existing is not None and not existing.is_ghost:
        raise UserAlreadyExistsError(f"an account for {normalized} already exists")
    if holder is not None and (existing is None or holder.id != existing.id):
        raise UsernameTakenError(f"username {username!r} is already taken")

    now = datetime.now(UTC)
    if existing is not None:
        existing.promote(username=username, password_hash=hash_password(password))
        existing.updated_at = now
        uow.commit()
        log.info("Promoted ghost account %s to a full account", existing.id)
        return existing

    user = User(
        username=username,
        email=normalized,
        password_hash=hash_password(password),
        created_at=now,
    )
    users.add(user)
    uow.commit()
    log.info("Registered user %s", user.id)
    return user
