"""Expenses, their splits and the obligations derived from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from splitledger.domain.model.entity import Entity

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime
    from uuid import UUID

    from splitledger.domain.model.group import Group
    from splitledger.domain.model.user import User


@dataclass(frozen=True, slots=True)
class Obligation:
    """Directed debt: ``debtor_id`` owes ``creditor_id`` ``amount``."""

    debtor_id: UUID
    creditor_id: UUID
    amount: float


@dataclass(eq=False, kw_only=True)
class Split:
    debtor: User
    amount: float

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("split amount must be non-negative")


@dataclass(eq=False, kw_only=True)
class Expense(Entity):
    """A payment by ``payer`` shared out through ``splits``.

    Splits need not sum to ``amount``; partial splitting is allowed. ``group`` is None for
    direct person-to-person expenses.
    """

    description: str
    amount: float
    payer: User = field(repr=False)
    added_by: User = field(repr=False)
    date: datetime
    group: Group | None = field(default=None, repr=False)
    splits: list[Split] = field(default_factory=list[Split], repr=False)

    # provenance of imported expenses, e.g. "splitwise:12345"
    source_expense_id: str | None = None

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ValueError("expense amount must be positive")

    def obligations(self) -> Iterator[Obligation]:
        for split in self.splits:
            yield Obligation(
                debtor_id=split.debtor.id,
                creditor_id=self.payer.id,
                amount=split.amount,
            )

    def split_for(self, user_id: UUID) -> Split | None:
        for split in self.splits:
            if split.debtor.id == user_id:
                return split
        return None

    def can_be_modified_by(self, user: User) -> bool:
        return self.added_by.id == user.id

    def rescale(self, new_amount: float) -> None:
        """Change the amount, scaling every split by the same ratio."""
        if new_amount <= 0:
            raise ValueError("expense amount must be positive")
        ratio = new_amount / self.amount
        for split in self.splits:
            split.amount = split.amount * ratio
        self.amount = new_amount
