"""Ports for reading a foreign bill-splitting ledger."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime


@dataclass(frozen=True, slots=True)
class ForeignMember:
    """A person as known to the foreign ledger."""

    foreign_id: int
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    @property
    def display_name(self) -> str:
        parts = [part for part in (self.first_name, self.last_name) if part]
        return " ".join(parts) if parts else (self.email or f"#{self.foreign_id}")


@dataclass(frozen=True, slots=True)
class ForeignGroup:
    foreign_id: int
    name: str
    members: tuple[ForeignMember, ...] = ()

    @property
    def is_ungrouped(self) -> bool:
        """The bucket holding expenses that belong to no foreign group."""
        return self.foreign_id == 0


@dataclass(frozen=True, slots=True)
class ForeignShare:
    """One participant's paid/owed shares, as raw decimal strings."""

    user_id: int
    paid_share: str | None = None
    owed_share: str | None = None


@dataclass(frozen=True, slots=True)
class ForeignExpense:
    foreign_id: int
    description: str | None
    cost: str | None
    date: datetime | None = None
    deleted_at: datetime | None = None
    group_id: int | None = None
    shares: tuple[ForeignShare, ...] = ()
    readable: bool = True
    """False when the record could not be parsed; kept so page sizes stay intact."""


@runtime_checkable
class ForeignLedger(Protocol):
    """Read access to one authenticated identity's foreign ledger."""

    def current_user(self) -> ForeignMember: ...

    def list_groups(self) -> Sequence[ForeignGroup]: ...

    def list_expenses(
        self,
        group_id: int | None,
        *,
        limit: int,
        offset: int,
    ) -> Sequence[ForeignExpense]: ...

    def list_friends(self) -> Sequence[ForeignMember]: ...

    def close(self) -> None:
        """Release the session; no calls may follow."""


@runtime_checkable
class TokenExchanger(Protocol):
    """Exchanges an OAuth authorization code for an access token."""

    def exchange_code(self, code: str, *, redirect_uri: str | None = None) -> str: ...


ForeignLedgerFactory = Callable[[str], ForeignLedger]
