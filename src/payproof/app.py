"""Application orchestration entry points.

``CheckoutServices`` binds the domain operations to concrete adapters so the
HTTP layer and the CLI share one wiring.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from payproof.adapters.filesystem import LocalScreenshotStore
from payproof.adapters.notifications import LoggingNotifier
from payproof.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCheckoutUnitOfWork,
    is_started,
    startup,
)
from payproof.adapters.vision import VisionTextExtractor
from payproof.config import (
    CheckoutConfig,
    get_checkout_config,
    get_storage_config,
    get_vision_config,
)
from payproof.domain import inventory, ordering, review
from payproof.domain.model import utcnow
from payproof.domain.reconciliation import ScreenshotReconciler

if TYPE_CHECKING:
    from uuid import UUID

    from payproof.domain.model import Clock, Order, Requester, Stock
    from payproof.domain.ordering import (
        OrderDetails,
        OrderSummary,
        PaymentStatusView,
        PendingOrderSummary,
        PlaceOrderRequest,
    )
    from payproof.domain.ports import (
        CheckoutUnitOfWorkFactory,
        Notifier,
        ScreenshotStore,
        TextExtractor,
    )
    from payproof.domain.reconciliation import ScreenshotUpload, ScreenshotVerification

log = getLogger(__name__)


@dataclass(slots=True, kw_only=True)
class CheckoutServices:
    unit_of_work_factory: CheckoutUnitOfWorkFactory
    screenshots: ScreenshotStore
    extractor: TextExtractor | None = None
    notifier: Notifier | None = None
    config: CheckoutConfig = field(default_factory=CheckoutConfig)
    clock: Clock = utcnow

    def reconciler(self) -> ScreenshotReconciler:
        """Build the reconciler; the OCR backend is only configured when first needed."""

        extractor = self.extractor or VisionTextExtractor(config=get_vision_config())
        return ScreenshotReconciler(
            unit_of_work_factory=self.unit_of_work_factory,
            extractor=extractor,
            screenshots=self.screenshots,
            config=self.config,
            notifier=self.notifier,
            clock=self.clock,
        )

    def place_order(self, request: PlaceOrderRequest) -> Order:
        return ordering.place_order(
            request, unit_of_work_factory=self.unit_of_work_factory, clock=self.clock
        )

    def verify_screenshot(self, upload: ScreenshotUpload) -> ScreenshotVerification:
        return self.reconciler().verify(upload)

    def cancel_order(self, order_id: UUID, *, requester: Requester) -> Order:
        return ordering.cancel_order(
            order_id,
            requester=requester,
            unit_of_work_factory=self.unit_of_work_factory,
            clock=self.clock,
        )

    def order_details(self, order_id: UUID, *, requester: Requester) -> OrderDetails:
        return ordering.get_order_details(
            order_id, requester=requester, unit_of_work_factory=self.unit_of_work_factory
        )

    def order_summaries(
        self, *, requester: Requester, all_users: bool = False
    ) -> list[OrderSummary]:
        return ordering.list_order_summaries(
            requester=requester,
            unit_of_work_factory=self.unit_of_work_factory,
            all_users=all_users,
        )

    def pending_orders(self, *, requester: Requester) -> list[PendingOrderSummary]:
        return ordering.list_pending_orders(
            requester=requester, unit_of_work_factory=self.unit_of_work_factory
        )

    def payment_status(self, order_id: UUID, *, requester: Requester) -> PaymentStatusView:
        return ordering.get_payment_status(
            order_id, requester=requester, unit_of_work_factory=self.unit_of_work_factory
        )

    def confirm_payment(self, order_id: UUID, *, requester: Requester) -> Order:
        return review.confirm_payment(
            order_id,
            requester=requester,
            unit_of_work_factory=self.unit_of_work_factory,
            notifier=self.notifier,
            clock=self.clock,
        )

    def reject_payment(
        self, order_id: UUID, *, requester: Requester, reason: str | None = None
    ) -> Order:
        return review.reject_payment(
            order_id,
            requester=requester,
            unit_of_work_factory=self.unit_of_work_factory,
            reason=reason,
            notifier=self.notifier,
            clock=self.clock,
        )

    def apply_gateway_callback(
        self,
        order_id: UUID,
        status: str,
        *,
        requester: Requester,
        transaction_ref: str | None = None,
    ) -> Order:
        return review.apply_gateway_callback(
            order_id,
            status,
            requester=requester,
            unit_of_work_factory=self.unit_of_work_factory,
            transaction_ref=transaction_ref,
            notifier=self.notifier,
            clock=self.clock,
        )

    def register_stock(self, product_id: UUID, quantity: int, *, requester: Requester) -> Stock:
        return inventory.register_stock(
            product_id,
            quantity,
            requester=requester,
            unit_of_work_factory=self.unit_of_work_factory,
        )

    def restock(self, product_id: UUID, quantity: int, *, requester: Requester) -> int:
        return inventory.restock(
            product_id,
            quantity,
            requester=requester,
            unit_of_work_factory=self.unit_of_work_factory,
        )

    def stock_level(self, product_id: UUID) -> int:
        return inventory.stock_level(product_id, unit_of_work_factory=self.unit_of_work_factory)


def build_services(
    *,
    unit_of_work_factory: CheckoutUnitOfWorkFactory | None = None,
    screenshots: ScreenshotStore | None = None,
    extractor: TextExtractor | None = None,
    notifier: Notifier | None = None,
    clock: Clock = utcnow,
) -> CheckoutServices:
    """Wire the checkout services, starting the database adapter when needed."""

    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyCheckoutUnitOfWork
    checkout = get_checkout_config()
    if screenshots is None:
        upload_dir = get_storage_config().payment_upload_dir()
        log.info("Storing payment screenshots in %s", upload_dir)
        screenshots = LocalScreenshotStore(upload_dir, config=checkout)
    return CheckoutServices(
        unit_of_work_factory=unit_of_work_factory,
        screenshots=screenshots,
        extractor=extractor,
        notifier=notifier or LoggingNotifier(),
        config=checkout,
        clock=clock,
    )
