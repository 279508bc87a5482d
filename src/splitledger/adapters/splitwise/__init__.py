"""Splitwise adapter package."""

from __future__ import annotations

from .client import (
    SplitwiseClient,
    SplitwiseOAuth,
    authorization_url,
    splitwise_ledger_factory,
)
from .schema import (
    CurrentUserResponse,
    ExpensesResponse,
    FriendsResponse,
    GroupsResponse,
    SplitwiseExpense,
    SplitwiseGroup,
    SplitwiseUser,
)
from .translator import translate_expense, translate_group, translate_user

__all__ = [
    "CurrentUserResponse",
    "ExpensesResponse",
    "FriendsResponse",
    "GroupsResponse",
    "SplitwiseClient",
    "SplitwiseExpense",
    "SplitwiseGroup",
    "SplitwiseOAuth",
    "SplitwiseUser",
    "authorization_url",
    "splitwise_ledger_factory",
    "translate_expense",
    "translate_group",
    "translate_user",
]
