"""HTTP API for ordering, screenshot verification and payment review."""

from __future__ import annotations

from contextlib import asynccontextmanager
from logging import getLogger
from typing import TYPE_CHECKING, Annotated
from uuid import UUID

from fastapi import FastAPI, File, Request, UploadFile, status
from fastapi.responses import JSONResponse

from payproof import __version__
from payproof.app import CheckoutServices, build_services
from payproof.domain.errors import (
    CheckoutError,
    DuplicateTransactionError,
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from payproof.domain.ordering import OrderItemRequest, PlaceOrderRequest
from payproof.domain.ports import ScreenshotStorageError
from payproof.domain.reconciliation import ScreenshotUpload

from .dependencies import AdminRequester, CurrentRequester, Services
from .schemas import (
    ErrorResponse,
    GatewayCallbackBody,
    OrderCreateBody,
    OrderCreatedResponse,
    OrderDetailsResponse,
    OrderStatusResponse,
    OrderSummaryResponse,
    PaymentStatusResponse,
    PendingOrderResponse,
    RejectPaymentBody,
    StockChangeBody,
    StockResponse,
    VerificationResponse,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

log = getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[CheckoutError], int], ...] = (
    (ValidationError, 422),
    (NotFoundError, 404),
    (PermissionDeniedError, 403),
    (InvalidTransitionError, 409),
    (InsufficientStockError, 409),
    (DuplicateTransactionError, 409),
)


def create_app(services: CheckoutServices | None = None) -> FastAPI:
    """Build the API; without ``services`` the default adapters are wired at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "services", None) is None:
            app.state.services = build_services()
        yield

    app = FastAPI(title="payproof", version=__version__, lifespan=lifespan)
    app.state.services = services
    app.add_exception_handler(CheckoutError, _checkout_error_handler)
    app.add_exception_handler(ScreenshotStorageError, _storage_error_handler)
    _register_order_routes(app)
    _register_review_routes(app)
    _register_stock_routes(app)
    return app


async def _checkout_error_handler(request: Request, exc: Exception) -> JSONResponse:
    _ = request
    code = status.HTTP_400_BAD_REQUEST
    for error_type, mapped in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            code = mapped
            break
    error = exc.code if isinstance(exc, CheckoutError) else "checkout_error"
    body = ErrorResponse(error=error, message=str(exc))
    return JSONResponse(status_code=code, content=body.model_dump(mode="json"))


async def _storage_error_handler(request: Request, exc: Exception) -> JSONResponse:
    _ = request
    log.error("Screenshot storage failure: %s", exc)
    body = ErrorResponse(error="storage_unavailable", message="Could not store the screenshot")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body.model_dump(mode="json")
    )


def _register_order_routes(app: FastAPI) -> None:
    @app.post("/api/orders", response_model=OrderCreatedResponse, status_code=201)
    def create_order(
        body: OrderCreateBody, services: Services, requester: CurrentRequester
    ) -> OrderCreatedResponse:
        user_id = body.user_id or requester.user_id
        if not requester.may_act_for(user_id):
            raise PermissionDeniedError("Cannot place an order for another user")
        order = services.place_order(
            PlaceOrderRequest(
                user_id=user_id,
                items=[
                    OrderItemRequest(
                        product_id=item.product_id,
                        quantity=item.quantity,
                        unit_price=item.unit_price,
                    )
                    for item in body.items
                ],
                amount=body.amount,
                address_id=body.address_id,
            )
        )
        return OrderCreatedResponse(
            order_id=order.id,
            status=order.status,
            amount=order.amount,
            address_id=order.address_id,
        )

    @app.get("/api/orders/mine", response_model=list[OrderSummaryResponse])
    def my_orders(services: Services, requester: CurrentRequester) -> list[OrderSummaryResponse]:
        return [
            OrderSummaryResponse.model_validate(summary)
            for summary in services.order_summaries(requester=requester)
        ]

    @app.get("/api/orders", response_model=list[OrderSummaryResponse])
    def all_orders(services: Services, requester: AdminRequester) -> list[OrderSummaryResponse]:
        return [
            OrderSummaryResponse.model_validate(summary)
            for summary in services.order_summaries(requester=requester, all_users=True)
        ]

    @app.get("/api/orders/pending", response_model=list[PendingOrderResponse])
    def pending_orders(
        services: Services, requester: AdminRequester
    ) -> list[PendingOrderResponse]:
        return [
            PendingOrderResponse.model_validate(row)
            for row in services.pending_orders(requester=requester)
        ]

    @app.get("/api/orders/{order_id}", response_model=OrderDetailsResponse)
    def order_details(
        order_id: UUID, services: Services, requester: CurrentRequester
    ) -> OrderDetailsResponse:
        details = services.order_details(order_id, requester=requester)
        return OrderDetailsResponse.model_validate(details)

    @app.get("/api/orders/{order_id}/payment-status", response_model=PaymentStatusResponse)
    def payment_status(
        order_id: UUID, services: Services, requester: CurrentRequester
    ) -> PaymentStatusResponse:
        view = services.payment_status(order_id, requester=requester)
        return PaymentStatusResponse.model_validate(view)

    @app.post("/api/orders/{order_id}/screenshot", response_model=VerificationResponse)
    def upload_screenshot(
        order_id: UUID,
        screenshot: Annotated[UploadFile, File()],
        services: Services,
        requester: CurrentRequester,
    ) -> JSONResponse:
        result = services.verify_screenshot(
            ScreenshotUpload(
                order_id=order_id,
                requester=requester,
                image=screenshot.file.read(),
                filename=screenshot.filename or "",
                content_type=screenshot.content_type,
            )
        )
        if result.success:
            code = status.HTTP_200_OK
        elif result.retryable:
            code = status.HTTP_503_SERVICE_UNAVAILABLE
        else:
            code = status.HTTP_400_BAD_REQUEST
        body = VerificationResponse.model_validate(result)
        return JSONResponse(status_code=code, content=body.model_dump(mode="json"))

    @app.delete("/api/orders/{order_id}", response_model=OrderStatusResponse)
    def cancel_order(
        order_id: UUID, services: Services, requester: CurrentRequester
    ) -> OrderStatusResponse:
        order = services.cancel_order(order_id, requester=requester)
        return OrderStatusResponse(order_id=order.id, status=order.status)


def _register_review_routes(app: FastAPI) -> None:
    @app.put("/api/orders/{order_id}/confirm-payment", response_model=OrderStatusResponse)
    def confirm_payment(
        order_id: UUID, services: Services, requester: AdminRequester
    ) -> OrderStatusResponse:
        order = services.confirm_payment(order_id, requester=requester)
        return OrderStatusResponse(order_id=order.id, status=order.status)

    @app.put("/api/orders/{order_id}/reject-payment", response_model=OrderStatusResponse)
    def reject_payment(
        order_id: UUID,
        services: Services,
        requester: AdminRequester,
        body: RejectPaymentBody | None = None,
    ) -> OrderStatusResponse:
        reason = body.reason if body is not None else None
        order = services.reject_payment(order_id, requester=requester, reason=reason)
        return OrderStatusResponse(order_id=order.id, status=order.status)

    @app.post("/api/orders/{order_id}/payment-callback", response_model=OrderStatusResponse)
    def payment_callback(
        order_id: UUID,
        body: GatewayCallbackBody,
        services: Services,
        requester: AdminRequester,
    ) -> OrderStatusResponse:
        order = services.apply_gateway_callback(
            order_id,
            body.status,
            requester=requester,
            transaction_ref=body.transaction_ref,
        )
        return OrderStatusResponse(order_id=order.id, status=order.status)


def _register_stock_routes(app: FastAPI) -> None:
    @app.post("/api/stock/{product_id}", response_model=StockResponse)
    def change_stock(
        product_id: UUID,
        body: StockChangeBody,
        services: Services,
        requester: AdminRequester,
    ) -> StockResponse:
        if body.register:
            stock = services.register_stock(product_id, body.quantity, requester=requester)
            return StockResponse(product_id=stock.product_id, quantity=stock.quantity)
        quantity = services.restock(product_id, body.quantity, requester=requester)
        return StockResponse(product_id=product_id, quantity=quantity)
