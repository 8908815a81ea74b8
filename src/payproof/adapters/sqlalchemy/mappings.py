"""SQLAlchemy mapping metadata for the checkout domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from functools import cache

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import configure_mappers, relationship

from payproof.domain.model import (
    Order,
    OrderLine,
    OrderStatus,
    Payment,
    PaymentStatus,
    Stock,
    to_money,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]

TRANSACTION_ID_CONSTRAINT = "uq_payment_transaction_id"


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


class MoneyType(TypeDecorator[Decimal]):
    """Exact decimal amounts stored as text, so no backend rounds them through floats."""

    impl = String(32)
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return str(to_money(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> Decimal | None:
        _ = dialect
        if value is None:
            return None
        return Decimal(value)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

order_table = Table(
    "customer_order",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("user_id", UUIDColumnType, nullable=False),
    Column("amount", MoneyType(), nullable=False),
    Column("status", Enum(OrderStatus, native_enum=False), nullable=False),
    Column("address_id", UUIDColumnType, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    # bumped on every status write; a stale writer updates zero rows
    Column("version", Integer, key="_version", nullable=False),
    Index("ix_customer_order_user_created", "user_id", "created_at"),
    Index("ix_customer_order_status_created", "status", "created_at"),
)

order_line_table = Table(
    "order_line",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "order_id",
        UUIDColumnType,
        ForeignKey("customer_order.id", ondelete="CASCADE"),
        key="_order_id",
        nullable=False,
    ),
    Column("position", Integer, key="_position", nullable=False, default=0),
    Column("product_id", UUIDColumnType, nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("unit_price", MoneyType(), nullable=False),
    CheckConstraint("quantity > 0", name="quantity_positive"),
)

payment_table = Table(
    "payment",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "order_id",
        UUIDColumnType,
        ForeignKey("customer_order.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("user_id", UUIDColumnType, nullable=False),
    Column("amount", MoneyType(), nullable=False),
    Column("method", String, nullable=False),
    Column("currency", String(3), nullable=False),
    Column("status", Enum(PaymentStatus, native_enum=False), nullable=False),
    Column("screenshot_path", String, nullable=True),
    Column("transaction_id", String(64), nullable=True),
    # wall-clock time read off the screenshot
    Column("transaction_date", DateTime(timezone=False), nullable=True),
    Column("paid_at", UTCDateTime(), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    UniqueConstraint("order_id", name="uq_payment_order_id"),
    UniqueConstraint("transaction_id", name=TRANSACTION_ID_CONSTRAINT),
)

stock_table = Table(
    "stock",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("product_id", UUIDColumnType, nullable=False),
    Column("quantity", Integer, nullable=False),
    UniqueConstraint("product_id", name="uq_stock_product_id"),
    CheckConstraint("quantity >= 0", name="quantity_non_negative"),
)


@cache
def start_mappers() -> orm.registry:
    """Map domain dataclasses onto their tables (idempotent)."""

    mapper_registry.map_imperatively(
        Order,
        order_table,
        version_id_col=order_table.c._version,  # noqa: SLF001
        properties={
            "_lines": relationship(
                OrderLine,
                order_by=order_line_table.c._position,  # noqa: SLF001
                collection_class=ordering_list("_position"),
                cascade="all, delete-orphan",
            ),
        },
    )

    mapper_registry.map_imperatively(OrderLine, order_line_table)

    mapper_registry.map_imperatively(Payment, payment_table)

    mapper_registry.map_imperatively(Stock, stock_table)

    configure_mappers()
    return mapper_registry

