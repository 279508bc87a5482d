"""Translate Splitwise payloads into foreign ledger records."""

from __future__ import annotations

from datetime import UTC
from typing import TYPE_CHECKING

from splitledger.domain.ports.foreign_ledger import (
    ForeignExpense,
    ForeignGroup,
    ForeignMember,
    ForeignShare,
)

if TYPE_CHECKING:
    from datetime import datetime

    from .schema import SplitwiseExpense, SplitwiseGroup, SplitwiseUser


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def translate_user(payload: SplitwiseUser) -> ForeignMember:
    return ForeignMember(
        foreign_id=payload.id,
        email=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )


def translate_group(payload: SplitwiseGroup) -> ForeignGroup:
    return ForeignGroup(
        foreign_id=payload.id,
        name=payload.name,
        members=tuple(translate_user(member) for member in payload.members),
    )


def translate_expense(payload: SplitwiseExpense) -> ForeignExpense:
    # Splitwise reports ungrouped expenses with group_id null or 0
    group_id = payload.group_id or None
    return ForeignExpense(
        foreign_id=payload.id,
        description=payload.description,
        cost=payload.cost,
        date=_as_utc(payload.date),
        deleted_at=_as_utc(payload.deleted_at),
        group_id=group_id,
        shares=tuple(
            ForeignShare(
                user_id=share.user_id,
                paid_share=share.paid_share,
                owed_share=share.owed_share,
            )
            for share in payload.users
        ),
    )


def unreadable_expense(raw: object) -> ForeignExpense:
    """Placeholder for a record that failed validation, so the page keeps its length."""
    foreign_id = raw.get("id") if isinstance(raw, dict) else None
    return ForeignExpense(
        foreign_id=foreign_id if isinstance(foreign_id, int) else 0,
        description=None,
        cost=None,
        readable=False,
    )
