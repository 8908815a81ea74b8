from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from payproof.adapters.sqlalchemy import start_mappers
from payproof.adapters.sqlalchemy.migrations import upgrade_head
from payproof.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCheckoutUnitOfWork,
    shutdown,
    startup,
)
from tests.helpers.checkout import CheckoutState, SteppingClock

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyCheckoutUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyCheckoutUnitOfWork:
        return SqlAlchemyCheckoutUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def checkout_state() -> CheckoutState:
    return CheckoutState()


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()
