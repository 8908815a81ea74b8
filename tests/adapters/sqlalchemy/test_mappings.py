from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import inspect

from payproof.adapters.sqlalchemy.mappings import (
    TRANSACTION_ID_CONSTRAINT,
    MoneyType,
    mapper_registry,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


def test_migrations_create_every_mapped_table(sqlite_engine: Engine) -> None:
    inspector = inspect(sqlite_engine)

    tables = set(inspector.get_table_names())

    assert set(mapper_registry.metadata.tables) <= tables
    assert "alembic_version" in tables


def test_migrated_columns_match_metadata(sqlite_engine: Engine) -> None:
    inspector = inspect(sqlite_engine)

    for name, table in mapper_registry.metadata.tables.items():
        migrated = {column["name"] for column in inspector.get_columns(name)}
        assert migrated == {column.name for column in table.columns}, name


def test_payment_transaction_id_is_unique(sqlite_engine: Engine) -> None:
    inspector = inspect(sqlite_engine)

    constraints = {
        constraint["name"]: constraint["column_names"]
        for constraint in inspector.get_unique_constraints("payment")
    }

    assert constraints[TRANSACTION_ID_CONSTRAINT] == ["transaction_id"]
    assert constraints["uq_payment_order_id"] == ["order_id"]


def test_money_type_keeps_exact_cents() -> None:
    money = MoneyType()

    stored = money.process_bind_param(Decimal("10.1"), dialect=None)  # type: ignore[arg-type]

    assert stored == "10.10"
    loaded = money.process_result_value(stored, dialect=None)  # type: ignore[arg-type]
    assert loaded == Decimal("10.10")
