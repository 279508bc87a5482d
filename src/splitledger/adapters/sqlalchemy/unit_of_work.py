"""SQLAlchemy-backed unit of work for the ledger store."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Literal, Self

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from splitledger.adapters.sqlalchemy.mappings import start_mappers
from splitledger.adapters.sqlalchemy.migrations import current_revision, upgrade_head
from splitledger.adapters.sqlalchemy.repositories import (
    SqlAlchemyExpenseRepository,
    SqlAlchemyGroupRepository,
    SqlAlchemyUserRepository,
)
from splitledger.config.storage import get_database_config
from splitledger.domain.ports.unit_of_work import LedgerRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the ledger store is used before ``startup()`` or configured twice."""


class _StoreState:
    """Process-wide engine and the session factory bound to it."""

    def __init__(self) -> None:
        self.engine: Engine | None = None
        self._sessions: sessionmaker[Session] | None = None

    def bind(self, engine: Engine | None) -> None:
        self.engine = engine
        self._sessions = None if engine is None else sessionmaker(
            bind=engine, expire_on_commit=False
        )

    def sessions(self) -> sessionmaker[Session]:
        if self._sessions is None:
            raise StartupError(
                "Ledger store not started; call "
                "splitledger.adapters.sqlalchemy.unit_of_work.startup() first."
            )
        return self._sessions


_STATE = _StoreState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the ledger store to an engine and migrate its schema to head.

    Without ``engine`` one is created from ``database_uri`` or the configured
    ``DATABASE_URI``. A second call needs ``force=True``.
    """

    if _STATE.engine is not None and not force:
        raise StartupError("Ledger store already started; pass force=True to rebind it.")

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri,
        future=True,
    )
    start_mappers()
    upgrade_head(engine=resolved_engine)
    _STATE.bind(resolved_engine)
    log.debug(
        "Ledger store ready at %s (schema %s)",
        resolved_engine.url,
        current_revision(resolved_engine),
    )


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.bind(None)


class SqlAlchemyLedgerUnitOfWork:
    """One session per ``with`` block; nothing is written without ``commit()``."""

    def __init__(self) -> None:
        self._sessions = _STATE.sessions()
        self._session: Session | None = None
        self._repositories: LedgerRepositories | None = None

    def __enter__(self) -> Self:
        if self._session is not None:
            raise StartupError("Unit of work is already in use")
        session = self._sessions()
        self._session = session
        self._repositories = LedgerRepositories(
            users=SqlAlchemyUserRepository(session),
            groups=SqlAlchemyGroupRepository(session),
            expenses=SqlAlchemyExpenseRepository(session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work used outside its with block")
        return self._session

    @property
    def repositories(self) -> LedgerRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work used outside its with block")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
