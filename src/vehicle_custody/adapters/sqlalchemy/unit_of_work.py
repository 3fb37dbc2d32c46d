"""SQLAlchemy-backed units of work for the ledger and the registry."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from vehicle_custody.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from vehicle_custody.adapters.sqlalchemy.repositories import (
    SqlAlchemyCustodyTransferRepository,
    SqlAlchemyDriverRepository,
    SqlAlchemyPendingNotificationRepository,
    SqlAlchemyProcessingRecordRepository,
    SqlAlchemySentAlertRepository,
    SqlAlchemyVehicleRepository,
)
from vehicle_custody.config.storage import DatabaseConfig, get_database_config
from vehicle_custody.domain.ports import (
    LedgerRepositories,
    PersistenceError,
    RegistryRepositories,
    RepositoryCollection,
)

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call vehicle_custody.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, metadata, and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or _create_engine(database_uri)
    start_mappers()
    create_all_tables(resolved_engine)
    _STATE.engine = resolved_engine


def _create_engine(database_uri: str | None) -> Engine:
    config = DatabaseConfig(uri=database_uri) if database_uri else get_database_config()
    return create_engine(config.uri, echo=config.echo, future=True)


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections.

    Database errors raised inside the ``with`` block leave it as
    ``PersistenceError`` so the domain never sees SQLAlchemy exceptions.
    """

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        try:
            if exc_type is not None:
                self.rollback()
            self.session.close()
        finally:
            self.session = None
        if isinstance(exc_value, SQLAlchemyError):
            raise PersistenceError(str(exc_value)) from exc_value
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemyLedgerUnitOfWork(BaseSqlAlchemyUnitOfWork[LedgerRepositories]):
    """Unit of work for processing records, sent alerts and pending notifications."""

    def _build_repositories(self, session: Session) -> LedgerRepositories:
        return LedgerRepositories(
            processing_records=SqlAlchemyProcessingRecordRepository(session),
            sent_alerts=SqlAlchemySentAlertRepository(session),
            pending_notifications=SqlAlchemyPendingNotificationRepository(session),
        )


class SqlAlchemyRegistryUnitOfWork(BaseSqlAlchemyUnitOfWork[RegistryRepositories]):
    """Unit of work for the canonical registry and committed custody transfers."""

    def _build_repositories(self, session: Session) -> RegistryRepositories:
        return RegistryRepositories(
            vehicles=SqlAlchemyVehicleRepository(session),
            drivers=SqlAlchemyDriverRepository(session),
            transfers=SqlAlchemyCustodyTransferRepository(session),
        )


if TYPE_CHECKING:
    from vehicle_custody.domain.ports import LedgerUnitOfWork, RegistryUnitOfWork

    _uow_ledger_check: LedgerUnitOfWork = SqlAlchemyLedgerUnitOfWork()
    _uow_registry_check: RegistryUnitOfWork = SqlAlchemyRegistryUnitOfWork()
