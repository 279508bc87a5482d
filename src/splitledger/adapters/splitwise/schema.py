"""Pydantic models for the Splitwise v3.0 API payloads we read."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SplitwiseBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SplitwiseUser(SplitwiseBaseModel):
    id: int
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email_is_missing(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class CurrentUserResponse(SplitwiseBaseModel):
    user: SplitwiseUser


class SplitwiseGroup(SplitwiseBaseModel):
    id: int
    name: str
    members: list[SplitwiseUser] = Field(default_factory=list["SplitwiseUser"])


class GroupsResponse(SplitwiseBaseModel):
    groups: list[SplitwiseGroup] = Field(default_factory=list["SplitwiseGroup"])


class ExpenseShare(SplitwiseBaseModel):
    user_id: int
    paid_share: str | None = None
    owed_share: str | None = None

    @field_validator("paid_share", "owed_share", mode="before")
    @classmethod
    def _coerce_share(cls, value: object) -> object:
        if isinstance(value, int | float):
            return str(value)
        return value


class SplitwiseExpense(SplitwiseBaseModel):
    id: int
    group_id: int | None = None
    description: str | None = None
    cost: str | None = None
    date: datetime | None = None
    deleted_at: datetime | None = None
    users: list[ExpenseShare] = Field(default_factory=list["ExpenseShare"])

    @field_validator("cost", mode="before")
    @classmethod
    def _coerce_cost(cls, value: object) -> object:
        if isinstance(value, int | float):
            return str(value)
        return value


class ExpensesResponse(SplitwiseBaseModel):
    """Expense records stay raw here and are validated one by one."""

    expenses: list[Any] = Field(default_factory=list[Any])


class FriendsResponse(SplitwiseBaseModel):
    friends: list[SplitwiseUser] = Field(default_factory=list["SplitwiseUser"])


class TokenResponse(SplitwiseBaseModel):
    access_token: str
    token_type: str | None = None
