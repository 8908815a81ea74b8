"""SQLAlchemy session lifecycle for the checkout services.

``startup`` binds a process-wide engine (migrating it to the newest schema) and every
``SqlAlchemyCheckoutUnitOfWork`` opens one session on it. Stock decrements issued
inside a unit of work are plain UPDATE statements, so they only become visible to
other requests when ``commit`` succeeds. Order rows carry a version counter, so of
two units of work that both move the same pending order only the first commits.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from payproof.adapters.sqlalchemy.mappings import TRANSACTION_ID_CONSTRAINT, start_mappers
from payproof.adapters.sqlalchemy.migrations import upgrade_head
from payproof.adapters.sqlalchemy.repositories import (
    SqlAlchemyOrderRepository,
    SqlAlchemyPaymentRepository,
    SqlAlchemyStockLedger,
)
from payproof.config.storage import get_database_uri
from payproof.domain.errors import DuplicateTransactionError, StaleOrderError
from payproof.domain.ports.unit_of_work import CheckoutRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)

SQLITE_LOCK_TIMEOUT_SECONDS = 15.0


class StartupError(RuntimeError):
    """Raised when the adapter is used before ``startup`` or configured twice."""


_engine: Engine | None = None
_sessions: sessionmaker[Session] | None = None


def build_engine(database_uri: str) -> Engine:
    """Create an engine; sqlite writers wait for the file lock instead of failing at once."""

    if make_url(database_uri).get_backend_name() == "sqlite":
        return create_engine(database_uri, connect_args={"timeout": SQLITE_LOCK_TIMEOUT_SECONDS})
    return create_engine(database_uri, pool_pre_ping=True)


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the adapter to ``engine`` (or a new one for ``database_uri``) and migrate it."""

    global _engine, _sessions  # noqa: PLW0603
    if _engine is not None and not force:
        raise StartupError("SQLAlchemy adapter already initialised. Pass force=True to rebind.")

    bound = engine if engine is not None else build_engine(database_uri or get_database_uri())
    start_mappers()
    upgrade_head(engine=bound)
    _engine = bound
    _sessions = sessionmaker(bind=bound, expire_on_commit=False)
    log.debug("Checkout storage bound to %s", bound.url.render_as_string(hide_password=True))


def configured_engine() -> Engine | None:
    return _engine


def is_started() -> bool:
    return _engine is not None


def shutdown() -> None:
    """Dispose the bound engine; a later ``startup`` may bind a different one."""

    global _engine, _sessions  # noqa: PLW0603
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _sessions = None


class SqlAlchemyCheckoutUnitOfWork:
    """Session-per-block unit of work over orders, payments and stock."""

    def __init__(self) -> None:
        if _sessions is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call payproof.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        self._session_factory = _sessions
        self._session: Session | None = None
        self._repositories: CheckoutRepositories | None = None

    def __enter__(self) -> SqlAlchemyCheckoutUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        session = self._session_factory()
        self._session = session
        self._repositories = CheckoutRepositories(
            orders=SqlAlchemyOrderRepository(session),
            payments=SqlAlchemyPaymentRepository(session),
            stock=SqlAlchemyStockLedger(session),
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
            session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @property
    def repositories(self) -> CheckoutRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    def commit(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            if _violates_transaction_id(exc):
                raise DuplicateTransactionError from exc
            raise
        except StaleDataError as exc:
            self.session.rollback()
            raise StaleOrderError from exc

    def rollback(self) -> None:
        self.session.rollback()


def _violates_transaction_id(exc: IntegrityError) -> bool:
    # sqlite names the column, postgres and mysql name the constraint
    message = str(exc.orig)
    return TRANSACTION_ID_CONSTRAINT in message or "payment.transaction_id" in message


if TYPE_CHECKING:
    from payproof.domain.ports.unit_of_work import CheckoutUnitOfWork

    _uow_check: CheckoutUnitOfWork = SqlAlchemyCheckoutUnitOfWork()
