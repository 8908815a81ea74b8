"""Screenshot reconciliation pipeline.

One attempt walks ``uploaded -> text_extracted -> facts_parsed ->
duplicate_checked -> amount_verified -> committed``. Any failure after the
screenshot is stored ends in ``rolled_back``: the file is removed and the order
is left pending. Only this module compensates; callers translate outcomes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from payproof.config.checkout import CheckoutConfig
from payproof.domain.errors import (
    DuplicateTransactionError,
    InsufficientStockError,
    NotFoundError,
)
from payproof.domain.model import OrderStatus, Payment, utcnow
from payproof.domain.notify import deliver
from payproof.domain.ordering import load_owned_order, settle_order
from payproof.domain.ports import ExtractionFailure, ScreenshotStorageError, TextExtractionError

from .facts import parse_payment_facts
from .outcomes import (
    FailureReason,
    ReconciliationStage,
    ScreenshotVerification,
    StageTrace,
)

if TYPE_CHECKING:
    from types import TracebackType

    from payproof.domain.model import Clock, Order
    from payproof.domain.ports import (
        CheckoutUnitOfWorkFactory,
        Notifier,
        ScreenshotStore,
        StoredScreenshot,
        TextExtractor,
    )

    from .facts import PaymentFacts
    from .outcomes import ScreenshotUpload

log = logging.getLogger(__name__)

MISSING_TRANSACTION_ID_MESSAGE = (
    "Could not find Transaction ID in screenshot. Please upload a clear payment screenshot."
)
NO_TEXT_MESSAGE = "No text detected in screenshot. Please upload a clear payment screenshot."
EXTRACTION_UNAVAILABLE_MESSAGE = (
    "Could not read the payment screenshot right now. Please try again later."
)


def duplicate_transaction_message(transaction_id: str) -> str:
    return (
        "This payment screenshot has already been used. "
        f"Transaction ID: {transaction_id}"
    )


def amount_mismatch_message(expected: object) -> str:
    return (
        f"Amount in screenshot doesn't match order amount. Expected: ${expected}. "
        "Please upload correct payment screenshot."
    )


class ScreenshotGuard:
    """Store a screenshot on entry and delete it on every exit not marked ``keep()``."""

    def __init__(
        self,
        store: ScreenshotStore,
        data: bytes,
        *,
        filename: str,
        content_type: str | None,
    ) -> None:
        self._store = store
        self._data = data
        self._filename = filename
        self._content_type = content_type
        self._stored: StoredScreenshot | None = None
        self._kept = False

    @property
    def stored(self) -> StoredScreenshot:
        if self._stored is None:
            raise ScreenshotStorageError("Screenshot guard used outside its context")
        return self._stored

    def keep(self) -> None:
        self._kept = True

    def __enter__(self) -> ScreenshotGuard:
        self._stored = self._store.store(
            self._data, filename=self._filename, content_type=self._content_type
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        stored, self._stored = self._stored, None
        if stored is None or self._kept:
            return False
        try:
            self._store.delete(stored)
        except ScreenshotStorageError:
            if exc_type is None:
                raise
            # keep the original failure visible
            log.exception("Could not remove screenshot %s", stored.path)
        else:
            log.debug("Removed screenshot %s", stored.path)
        return False


@dataclass(slots=True, kw_only=True)
class ScreenshotReconciler:
    """Verify a payment screenshot against its order and settle it on success."""

    unit_of_work_factory: CheckoutUnitOfWorkFactory
    extractor: TextExtractor
    screenshots: ScreenshotStore
    config: CheckoutConfig = field(default_factory=CheckoutConfig)
    notifier: Notifier | None = None
    clock: Clock = utcnow

    def verify(self, upload: ScreenshotUpload) -> ScreenshotVerification:
        """Run one reconciliation attempt.

        Precondition violations raise domain errors before anything is stored.
        Business failures come back as unsuccessful results; storage and database
        errors propagate after the stored file is cleaned up.
        """

        self._open_payment(upload)
        trace = StageTrace(upload.order_id)
        with ScreenshotGuard(
            self.screenshots,
            upload.image,
            filename=upload.filename,
            content_type=upload.content_type,
        ) as guard:
            trace.reach(ReconciliationStage.UPLOADED)
            log.debug("Stored screenshot for order %s at %s", upload.order_id, guard.stored.path)
            result = self._reconcile(upload, guard, trace)
            if result.success:
                guard.keep()
        if result.success:
            log.info(
                "Order %s paid via screenshot (transaction %s)",
                result.order_id,
                result.transaction_id,
            )
        else:
            log.warning(
                "Screenshot for order %s rolled back: %s", result.order_id, result.reason
            )
        return result

    def _open_payment(self, upload: ScreenshotUpload) -> None:
        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            order = load_owned_order(
                repositories,
                upload.order_id,
                requester=upload.requester,
                action="upload payment for",
            )
            if repositories.payments.get_for_order(order.id) is not None:
                return
            repositories.payments.add(
                Payment.open_for(
                    order,
                    method=self.config.payment_method,
                    currency=self.config.currency,
                    now=self.clock(),
                )
            )
            uow.commit()
        log.debug("Opened pending payment for order %s", upload.order_id)

    def _reconcile(
        self,
        upload: ScreenshotUpload,
        guard: ScreenshotGuard,
        trace: StageTrace,
    ) -> ScreenshotVerification:
        try:
            text = self.extractor(upload.image)
        except TextExtractionError as exc:
            log.warning("Text extraction failed for order %s: %s", upload.order_id, exc.reason)
            return trace.failure(
                FailureReason.EXTRACTION_FAILED,
                _extraction_message(exc.reason),
                retryable=exc.retryable,
            )
        except TimeoutError:
            log.warning("Text extraction timed out for order %s", upload.order_id)
            return trace.failure(
                FailureReason.EXTRACTION_FAILED,
                EXTRACTION_UNAVAILABLE_MESSAGE,
                retryable=True,
            )
        trace.reach(ReconciliationStage.TEXT_EXTRACTED)

        facts = parse_payment_facts(text)
        if facts.transaction_id is None:
            return trace.failure(
                FailureReason.MISSING_TRANSACTION_ID,
                MISSING_TRANSACTION_ID_MESSAGE,
                amount_found=facts.amount,
            )
        trace.reach(ReconciliationStage.FACTS_PARSED)
        return self._commit(upload, guard.stored, facts, facts.transaction_id, trace)

    def _commit(
        self,
        upload: ScreenshotUpload,
        stored: StoredScreenshot,
        facts: PaymentFacts,
        transaction_id: str,
        trace: StageTrace,
    ) -> ScreenshotVerification:
        now = self.clock()
        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            order = load_owned_order(
                repositories,
                upload.order_id,
                requester=upload.requester,
                action="upload payment for",
            )

            if repositories.payments.transaction_id_exists(transaction_id):
                return trace.failure(
                    FailureReason.DUPLICATE_TRANSACTION,
                    duplicate_transaction_message(transaction_id),
                    transaction_id=transaction_id,
                    amount_found=facts.amount,
                )
            trace.reach(ReconciliationStage.DUPLICATE_CHECKED)

            if facts.amount is None or facts.amount != order.amount:
                return trace.failure(
                    FailureReason.AMOUNT_MISMATCH,
                    amount_mismatch_message(order.amount),
                    transaction_id=transaction_id,
                    amount_found=facts.amount,
                )
            trace.reach(ReconciliationStage.AMOUNT_VERIFIED)

            payment = repositories.payments.get_for_order(order.id)
            if payment is None:
                raise NotFoundError(f"Payment not found for order: {order.id}")
            try:
                settle_order(order, repositories.stock, now=now)
                payment.record_verification(
                    transaction_id=transaction_id,
                    transaction_date=facts.transaction_date,
                    screenshot_path=stored.public_path,
                    now=now,
                )
                uow.commit()
            except InsufficientStockError as exc:
                uow.rollback()
                return trace.failure(
                    FailureReason.INSUFFICIENT_STOCK,
                    str(exc),
                    transaction_id=transaction_id,
                    amount_found=facts.amount,
                )
            except DuplicateTransactionError:
                uow.rollback()
                return trace.failure(
                    FailureReason.DUPLICATE_TRANSACTION,
                    duplicate_transaction_message(transaction_id),
                    transaction_id=transaction_id,
                    amount_found=facts.amount,
                )
        trace.reach(ReconciliationStage.COMMITTED)
        self._notify(order, payment)
        return ScreenshotVerification(
            order_id=order.id,
            success=True,
            status=OrderStatus.PAID,
            transaction_id=transaction_id,
            transaction_date=facts.transaction_date,
            amount_found=facts.amount,
            screenshot_path=stored.public_path,
            stages=tuple(trace.stages),
        )

    def _notify(self, order: Order, payment: Payment) -> None:
        notifier = self.notifier
        if notifier is not None:
            deliver("payment_verified", lambda: notifier.payment_verified(order, payment))


def _extraction_message(reason: ExtractionFailure) -> str:
    if reason is ExtractionFailure.NO_TEXT:
        return NO_TEXT_MESSAGE
    return EXTRACTION_UNAVAILABLE_MESSAGE
