"""Balance netting: who owes whom how much.

Obligations are derived from expense splits (debtor owes payer). The engine accumulates
them into a pairwise matrix over a fixed member set and then cancels opposing debts so
that at most one direction per pair is non-zero. Values are reported exactly; hiding
amounts below ``SETTLED_THRESHOLD`` is left to the summaries and other presentation code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import combinations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from uuid import UUID

    from splitledger.domain.model import Expense, Obligation, User

SETTLED_THRESHOLD = 0.005
"""Entries at or below this amount are shown as settled."""

ZERO_EPSILON = 0.01
"""Tolerance for floating-point drift when deciding whether a balance is zero."""

type NetMatrix = dict[UUID, dict[UUID, float]]


def is_zero(amount: float) -> bool:
    return abs(amount) < ZERO_EPSILON


def _unique_ids(member_ids: Iterable[UUID]) -> list[UUID]:
    seen: set[UUID] = set()
    ordered: list[UUID] = []
    for member_id in member_ids:
        if member_id not in seen:
            seen.add(member_id)
            ordered.append(member_id)
    return ordered


def accumulate_obligations(
    obligations: Iterable[Obligation],
    member_ids: Iterable[UUID],
) -> NetMatrix:
    """Sum obligations into a gross matrix ``matrix[debtor][creditor]``.

    Every ordered pair of distinct members starts at zero. Self-obligations and
    obligations touching a non-member are dropped.
    """
    ids = _unique_ids(member_ids)
    matrix: NetMatrix = {member: {other: 0.0 for other in ids if other != member} for member in ids}
    for obligation in obligations:
        if obligation.debtor_id == obligation.creditor_id:
            continue
        row = matrix.get(obligation.debtor_id)
        if row is None or obligation.creditor_id not in row:
            continue
        row[obligation.creditor_id] += obligation.amount
    return matrix


def net_opposing(matrix: NetMatrix) -> NetMatrix:
    """Cancel opposing debts pair by pair.

    For every unordered pair the larger direction keeps ``larger - smaller`` and the
    other direction becomes zero. Running it on an already netted matrix is a no-op.
    """
    netted: NetMatrix = {member: dict(row) for member, row in matrix.items()}
    for first, second in combinations(list(netted), 2):
        first_owes = netted[first].get(second, 0.0)
        second_owes = netted[second].get(first, 0.0)
        if first_owes > second_owes:
            netted[first][second] = first_owes - second_owes
            netted[second][first] = 0.0
        else:
            netted[second][first] = second_owes - first_owes
            netted[first][second] = 0.0
    return netted


def compute_net_matrix(expenses: Iterable[Expense], members: Iterable[User]) -> NetMatrix:
    """Return the netted pairwise matrix for ``members`` over ``expenses``."""

    obligations = (obligation for expense in expenses for obligation in expense.obligations())
    gross = accumulate_obligations(obligations, (member.id for member in members))
    return net_opposing(gross)


@dataclass(frozen=True, slots=True)
class BalanceLine:
    counterparty_id: UUID
    amount: float


@dataclass(frozen=True, slots=True)
class MemberSummary:
    member_id: UUID
    owes: tuple[BalanceLine, ...] = field(default_factory=tuple)
    owed_by: tuple[BalanceLine, ...] = field(default_factory=tuple)

    @property
    def total_owes(self) -> float:
        return sum(line.amount for line in self.owes)

    @property
    def total_owed(self) -> float:
        return sum(line.amount for line in self.owed_by)

    @property
    def net(self) -> float:
        """Positive when the member is a net creditor."""
        return self.total_owed - self.total_owes

    @property
    def is_settled(self) -> bool:
        return not self.owes and not self.owed_by


def build_member_summary(
    member_id: UUID,
    matrix: Mapping[UUID, Mapping[UUID, float]],
) -> MemberSummary:
    owes = tuple(
        BalanceLine(counterparty_id=other, amount=amount)
        for other, amount in matrix.get(member_id, {}).items()
        if amount > SETTLED_THRESHOLD
    )
    owed_by = tuple(
        BalanceLine(counterparty_id=other, amount=row.get(member_id, 0.0))
        for other, row in matrix.items()
        if other != member_id and row.get(member_id, 0.0) > SETTLED_THRESHOLD
    )
    return MemberSummary(member_id=member_id, owes=owes, owed_by=owed_by)


def member_totals(expenses: Iterable[Expense], members: Iterable[User]) -> dict[UUID, float]:
    """Signed position per member: amounts paid minus amounts owed.

    Payers and debtors outside ``members`` are ignored.
    """
    totals: dict[UUID, float] = {member.id: 0.0 for member in members}
    for expense in expenses:
        if expense.payer.id in totals:
            totals[expense.payer.id] += expense.amount
        for split in expense.splits:
            if split.debtor.id in totals:
                totals[split.debtor.id] -= split.amount
    return totals


def friend_balance(user_id: UUID, friend_id: UUID, expenses: Iterable[Expense]) -> float:
    """Balance between two users; positive means the friend owes the user."""

    balance = 0.0
    for expense in expenses:
        if expense.payer.id == user_id:
            split = expense.split_for(friend_id)
            if split is not None:
                balance += split.amount
        elif expense.payer.id == friend_id:
            split = expense.split_for(user_id)
            if split is not None:
                balance -= split.amount
    return balance
