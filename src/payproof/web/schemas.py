"""Request and response models for the HTTP API."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from decimal import Decimal  # noqa: TC003
from uuid import UUID  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field

from payproof.domain.model import OrderStatus, PaymentStatus  # noqa: TC001
from payproof.domain.reconciliation import FailureReason  # noqa: TC001


class ApiModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, from_attributes=True)


# Requests --------------------------------------------------------------------


class OrderItemBody(ApiModel):
    product_id: UUID = Field(alias="productId")
    quantity: int = Field(alias="qty", gt=0)
    unit_price: Decimal = Field(alias="price", ge=0)


class OrderCreateBody(ApiModel):
    user_id: UUID | None = Field(default=None, alias="userId")
    amount: Decimal | None = Field(default=None, gt=0)
    address_id: UUID | None = Field(default=None, alias="addressId")
    items: list[OrderItemBody] = Field(min_length=1)


class RejectPaymentBody(ApiModel):
    reason: str | None = None


class GatewayCallbackBody(ApiModel):
    status: str
    transaction_ref: str | None = Field(default=None, alias="transactionRef")


class StockChangeBody(ApiModel):
    quantity: int = Field(ge=0)
    register: bool = False


# Responses -------------------------------------------------------------------


class OrderCreatedResponse(ApiModel):
    order_id: UUID
    status: OrderStatus
    amount: Decimal
    address_id: UUID | None = None


class OrderStatusResponse(ApiModel):
    order_id: UUID
    status: OrderStatus


class OrderLineResponse(ApiModel):
    product_id: UUID
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class PaymentResponse(ApiModel):
    payment_id: UUID
    amount: Decimal
    method: str
    currency: str
    status: PaymentStatus
    transaction_id: str | None = None
    transaction_date: datetime | None = None
    screenshot_path: str | None = None
    paid_at: datetime | None = None
    created_at: datetime


class OrderDetailsResponse(ApiModel):
    order_id: UUID
    user_id: UUID
    amount: Decimal
    status: OrderStatus
    address_id: UUID | None = None
    created_at: datetime
    updated_at: datetime
    lines: list[OrderLineResponse]
    payment: PaymentResponse | None = None


class OrderSummaryResponse(ApiModel):
    order_id: UUID
    user_id: UUID
    amount: Decimal
    status: OrderStatus
    created_at: datetime
    item_count: int
    paid_at: datetime | None = None


class PendingOrderResponse(ApiModel):
    order_id: UUID
    user_id: UUID
    amount: Decimal
    created_at: datetime
    item_count: int
    payment_method: str
    screenshot_path: str | None = None


class PaymentStatusResponse(ApiModel):
    order_id: UUID
    order_status: OrderStatus
    payment_status: PaymentStatus
    amount: Decimal
    method: str
    created_at: datetime


class VerificationResponse(ApiModel):
    success: bool
    order_id: UUID
    status: OrderStatus
    transaction_id: str | None = None
    transaction_date: datetime | None = None
    reason: FailureReason | None = None
    message: str | None = None
    retryable: bool = False


class StockResponse(ApiModel):
    product_id: UUID
    quantity: int


class ErrorResponse(ApiModel):
    success: bool = False
    error: str
    message: str
