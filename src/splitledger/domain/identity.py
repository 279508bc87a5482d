"""Resolve foreign ledger members to local users, creating ghosts when needed."""

from __future__ import annotations

import re
import secrets
import unicodedata
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from splitledger.domain.model import AccountState, User, normalize_email

if TYPE_CHECKING:
    from collections.abc import Callable

    from splitledger.domain.ports.foreign_ledger import ForeignMember
    from splitledger.domain.ports.persistence import UserRepository

log = getLogger(__name__)

UNUSABLE_PASSWORD_PREFIX = "!"
FALLBACK_USERNAME = "user"

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    ascii_value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return _NON_SLUG.sub("", ascii_value.lower())


def unusable_password() -> str:
    return UNUSABLE_PASSWORD_PREFIX + secrets.token_hex(32)


def is_unusable_password(password_hash: str) -> bool:
    return password_hash.startswith(UNUSABLE_PASSWORD_PREFIX)


def initials_for(first_name: str | None, last_name: str | None, *, fallback: str) -> str:
    letters = "".join(part.strip()[0] for part in (first_name, last_name) if part and part.strip())
    return (letters or fallback[:1]).upper()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class IdentityResolver:
    """Map foreign members onto local users.

    Existing accounts (matched by case-insensitive email) are returned untouched.
    Unknown people get a ghost account that registration later promotes. Members
    without an email cannot be matched and resolve to ``None``.
    """

    def __init__(
        self,
        users: UserRepository,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._users = users
        self._clock = clock
        self.ghosts_created = 0

    def resolve(self, member: ForeignMember) -> User | None:
        if member.email is None or not member.email.strip():
            log.debug("Foreign member %s has no email; leaving unmapped", member.foreign_id)
            return None

        email = normalize_email(member.email)
        existing = self._users.get_by_email(email)
        if existing is not None:
            return existing

        username = self._unique_username(self._base_username(member, email))
        ghost = User(
            username=username,
            email=email,
            password_hash=unusable_password(),
            state=AccountState.GHOST,
            avatar_initials=initials_for(member.first_name, member.last_name, fallback=username),
            created_at=self._clock(),
        )
        self._users.add(ghost)
        self.ghosts_created += 1
        log.info("Created ghost user %s for %s", ghost.username, email)
        return ghost

    @staticmethod
    def _base_username(member: ForeignMember, email: str) -> str:
        from_name = slugify(f"{member.first_name or ''}{member.last_name or ''}")
        if from_name:
            return from_name
        return slugify(email.split("@", 1)[0]) or FALLBACK_USERNAME

    def _unique_username(self, base: str) -> str:
        if self._users.get_by_username(base) is None:
            return base
        stamp = int(self._clock().timestamp() * 1000)
        while True:
            candidate = f"{base}{stamp % 1_000_000:06d}"
            if self._users.get_by_username(candidate) is None:
                return candidate
            stamp += 1
