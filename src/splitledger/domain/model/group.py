"""Groups of users sharing expenses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from splitledger.domain.model.entity import Entity

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date

    from splitledger.domain.model.user import User


@dataclass(eq=False, kw_only=True)
class Group(Entity):
    """A named set of members.

    Active and past members are disjoint. Past members left while still carrying a
    balance and are kept for settlement display.
    """

    name: str
    created_by: User = field(repr=False)
    note: str = ""
    settle_up_date: date | None = None

    _members: list[User] = field(default_factory=list["User"], repr=False)
    _past_members: list[User] = field(default_factory=list["User"], repr=False)

    @classmethod
    def create(
        cls,
        *,
        name: str,
        creator: User,
        members: Iterable[User] = (),
        note: str = "",
    ) -> Group:
        group = cls(name=name, created_by=creator, note=note)
        group.add_member(creator)
        for member in members:
            group.add_member(member)
        return group

    @property
    def members(self) -> tuple[User, ...]:
        return tuple(self._members)

    @property
    def past_members(self) -> tuple[User, ...]:
        return tuple(self._past_members)

    @property
    def all_members(self) -> tuple[User, ...]:
        return (*self._members, *self._past_members)

    def has_member(self, user: User) -> bool:
        return any(member.id == user.id for member in self._members)

    def add_member(self, user: User) -> bool:
        """Add ``user`` as an active member; returns False if already active."""
        self._past_members[:] = [past for past in self._past_members if past.id != user.id]
        if self.has_member(user):
            return False
        self._members.append(user)
        return True

    def add_members(self, users: Iterable[User]) -> int:
        return sum(1 for user in users if self.add_member(user))

    def remove_member(self, user: User, *, keep_as_past: bool) -> None:
        if not self.has_member(user):
            raise ValueError(f"user {user.id} is not a member of group {self.id}")
        self._members[:] = [member for member in self._members if member.id != user.id]
        if keep_as_past and all(past.id != user.id for past in self._past_members):
            self._past_members.append(user)
