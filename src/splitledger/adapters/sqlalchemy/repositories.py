"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import and_, func, or_, select

from splitledger.adapters.sqlalchemy.mappings import (
    expense_table,
    group_member_table,
    group_table,
    split_table,
    user_table,
)
from splitledger.domain.model import Expense, Group, User, normalize_email

if TYPE_CHECKING:
    from datetime import date, datetime
    from uuid import UUID

    from sqlalchemy import ColumnElement
    from sqlalchemy.orm import Session


class SqlAlchemyRepository[TEntity]:
    def __init__(self, session: Session, entity_cls: type[TEntity]) -> None:
        self.session = session
        self._entity_cls = entity_cls

    def add(self, entity: TEntity) -> None:
        self.session.add(entity)

    def get(self, entity_id: UUID) -> TEntity | None:
        return self.session.get(self._entity_cls, entity_id)


class SqlAlchemyUserRepository(SqlAlchemyRepository[User]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, User)

    def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(func.lower(user_table.c.email) == normalize_email(email))
        return self.session.execute(stmt).scalars().first()

    def get_by_username(self, username: str) -> User | None:
        stmt = select(User).where(user_table.c.username == username)
        return self.session.execute(stmt).scalars().first()


class SqlAlchemyGroupRepository(SqlAlchemyRepository[Group]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Group)

    def find_by_name_for_member(self, name: str, member: User) -> Group | None:
        stmt = (
            select(Group)
            .join(group_member_table, group_member_table.c.group_id == group_table.c.id)
            .where(group_table.c.name == name)
            .where(group_member_table.c.user_id == member.id)
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    def for_member(self, member: User) -> list[Group]:
        stmt = (
            select(Group)
            .join(group_member_table, group_member_table.c.group_id == group_table.c.id)
            .where(group_member_table.c.user_id == member.id)
            .order_by(group_table.c.name)
        )
        return list(self.session.execute(stmt).scalars())

    def settling_on(self, day: date) -> list[Group]:
        stmt = select(Group).where(group_table.c.settle_up_date == day)
        return list(self.session.execute(stmt).scalars())


def _group_clause(group: Group | None) -> ColumnElement[bool]:
    if group is None:
        return expense_table.c.group_id.is_(None)
    return expense_table.c.group_id == group.id


class SqlAlchemyExpenseRepository(SqlAlchemyRepository[Expense]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Expense)

    def remove(self, expense: Expense) -> None:
        self.session.delete(expense)

    def for_group(self, group: Group) -> list[Expense]:
        stmt = select(Expense).where(_group_clause(group)).order_by(expense_table.c.date)
        return list(self.session.execute(stmt).scalars())

    def between_users(self, first: User, second: User) -> list[Expense]:
        def paid_by_owed_by(payer: User, debtor: User) -> ColumnElement[bool]:
            owed = select(split_table.c.expense_id).where(split_table.c.debtor_id == debtor.id)
            return and_(expense_table.c.payer_id == payer.id, expense_table.c.id.in_(owed))

        stmt = (
            select(Expense)
            .where(or_(paid_by_owed_by(first, second), paid_by_owed_by(second, first)))
            .order_by(expense_table.c.date)
        )
        return list(self.session.execute(stmt).scalars())

    def find_matching(
        self,
        *,
        description: str,
        amount: float,
        date: datetime,
        group: Group | None,
        without_source: bool = False,
    ) -> Expense | None:
        stmt = (
            select(Expense)
            .where(expense_table.c.description == description)
            .where(expense_table.c.amount == amount)
            .where(expense_table.c.date == date)
            .where(_group_clause(group))
        )
        if without_source:
            stmt = stmt.where(expense_table.c.source_expense_id.is_(None))
        return self.session.execute(stmt.limit(1)).scalars().first()

    def find_by_source_id(
        self,
        source_expense_id: str,
        *,
        group: Group | None,
    ) -> Expense | None:
        stmt = (
            select(Expense)
            .where(expense_table.c.source_expense_id == source_expense_id)
            .where(_group_clause(group))
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    def count(self) -> int:
        stmt = select(func.count()).select_from(expense_table)
        return int(self.session.execute(stmt).scalar_one())
