"""User accounts, including ghost placeholders awaiting registration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from splitledger.domain.model.entity import Entity
from splitledger.domain.model.enums import AccountState, MigrationStatus

if TYPE_CHECKING:
    from datetime import datetime


class UserStateError(ValueError):
    """Raised when an account state transition is not allowed."""


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass(eq=False, kw_only=True)
class User(Entity):
    username: str
    email: str
    password_hash: str

    state: AccountState = AccountState.ACTIVE
    avatar_initials: str | None = None
    migration_status: MigrationStatus = MigrationStatus.NONE

    created_at: datetime | None = None
    updated_at: datetime | None = None

    _friends: list[User] = field(default_factory=list["User"], repr=False)

    def __post_init__(self) -> None:
        self.email = normalize_email(self.email)

    @property
    def is_ghost(self) -> bool:
        return self.state is AccountState.GHOST

    @property
    def friends(self) -> tuple[User, ...]:
        return tuple(self._friends)

    def has_friend(self, other: User) -> bool:
        return any(friend.id == other.id for friend in self._friends)

    def promote(self, *, username: str, password_hash: str) -> None:
        """Turn a ghost into a full account.

        Only credentials, the username and the state change; identity and every
        reference held by groups, expenses and friends stay untouched.
        """
        if not self.is_ghost:
            raise UserStateError(f"user {self.id} is not a ghost account")
        self.username = username
        self.password_hash = password_hash
        self.state = AccountState.ACTIVE

    def begin_migration(self) -> None:
        self.migration_status = MigrationStatus.PENDING

    def complete_migration(self) -> None:
        if self.migration_status is not MigrationStatus.PENDING:
            raise UserStateError("migration can only complete from the pending state")
        self.migration_status = MigrationStatus.COMPLETED

    def _attach_friend(self, other: User) -> bool:
        if other.id == self.id:
            raise ValueError("a user cannot befriend themselves")
        if self.has_friend(other):
            return False
        self._friends.append(other)
        return True
