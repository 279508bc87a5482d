"""SQLAlchemy mapping metadata for the ledger domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Dialect,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers, relationship

from splitledger.domain.model import (
    AccountState,
    Expense,
    Group,
    MigrationStatus,
    Split,
    User,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Accounts --------------------------------------------------------------------

user_table = Table(
    "user_account",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("username", String, nullable=False, unique=True),
    Column("email", String, nullable=False, unique=True),
    Column("password_hash", String, nullable=False),
    Column("state", Enum(AccountState, native_enum=False), nullable=False),
    Column("avatar_initials", String(8), nullable=True),
    Column("migration_status", Enum(MigrationStatus, native_enum=False), nullable=False),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
)

# one row per direction; a complete friendship has two rows
friend_link_table = Table(
    "friend_link",
    mapper_registry.metadata,
    Column("user_id", UUIDColumnType, ForeignKey("user_account.id"), primary_key=True),
    Column("friend_id", UUIDColumnType, ForeignKey("user_account.id"), primary_key=True),
)

# Groups ----------------------------------------------------------------------

group_table = Table(
    "expense_group",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column("note", Text, nullable=False, default=""),
    Column("settle_up_date", Date, nullable=True),
    Column("created_by_id", UUIDColumnType, ForeignKey("user_account.id"), nullable=False),
    Index("ix_expense_group_name", "name"),
)

group_member_table = Table(
    "group_member",
    mapper_registry.metadata,
    Column("group_id", UUIDColumnType, ForeignKey("expense_group.id"), primary_key=True),
    Column("user_id", UUIDColumnType, ForeignKey("user_account.id"), primary_key=True),
)

group_past_member_table = Table(
    "group_past_member",
    mapper_registry.metadata,
    Column("group_id", UUIDColumnType, ForeignKey("expense_group.id"), primary_key=True),
    Column("user_id", UUIDColumnType, ForeignKey("user_account.id"), primary_key=True),
)

# Expenses --------------------------------------------------------------------

expense_table = Table(
    "expense",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("description", String, nullable=False),
    Column("amount", Float, nullable=False),
    Column("date", UTCDateTime(), nullable=False),
    Column("group_id", UUIDColumnType, ForeignKey("expense_group.id"), nullable=True),
    Column("payer_id", UUIDColumnType, ForeignKey("user_account.id"), nullable=False),
    Column("added_by_id", UUIDColumnType, ForeignKey("user_account.id"), nullable=False),
    Column("source_expense_id", String, nullable=True),
    Index("ix_expense_group_id", "group_id"),
    Index("ix_expense_source_expense_id", "source_expense_id"),
)

split_table = Table(
    "expense_split",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("expense_id", UUIDColumnType, ForeignKey("expense.id"), nullable=False),
    Column("debtor_id", UUIDColumnType, ForeignKey("user_account.id"), nullable=False),
    Column("amount", Float, nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(
        User,
        user_table,
        properties={
            "_friends": relationship(
                User,
                secondary=friend_link_table,
                primaryjoin=user_table.c.id == friend_link_table.c.user_id,
                secondaryjoin=user_table.c.id == friend_link_table.c.friend_id,
            ),
        },
    )

    mapper_registry.map_imperatively(
        Group,
        group_table,
        properties={
            "created_by": relationship(User, foreign_keys=[group_table.c.created_by_id]),
            "_members": relationship(User, secondary=group_member_table),
            "_past_members": relationship(User, secondary=group_past_member_table),
        },
    )

    mapper_registry.map_imperatively(
        Split,
        split_table,
        properties={
            "debtor": relationship(User, foreign_keys=[split_table.c.debtor_id]),
        },
    )

    mapper_registry.map_imperatively(
        Expense,
        expense_table,
        properties={
            "payer": relationship(User, foreign_keys=[expense_table.c.payer_id]),
            "added_by": relationship(User, foreign_keys=[expense_table.c.added_by_id]),
            "group": relationship(Group),
            "splits": relationship(
                Split,
                cascade="all, delete-orphan",
                order_by=split_table.c.id,
            ),
        },
    )

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
