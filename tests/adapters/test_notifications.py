from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from payproof.adapters.notifications import LoggingNotifier
from payproof.domain.model import Order, OrderLine, Payment
from payproof.domain.notify import deliver


def _order() -> Order:
    return Order.place(
        user_id=uuid4(),
        lines=[OrderLine(product_id=uuid4(), quantity=1, unit_price=Decimal("3.00"))],
    )


def test_logging_notifier_records_events(caplog: pytest.LogCaptureFixture) -> None:
    order = _order()
    payment = Payment.open_for(order, method="Bank Transfer", currency="USD")
    payment.transaction_id = "1234567890"
    notifier = LoggingNotifier()

    with caplog.at_level("INFO"):
        notifier.payment_verified(order, payment)
        notifier.payment_rejected(order, None)

    assert "transaction=1234567890" in caplog.text
    assert "reason=not given" in caplog.text


def test_deliver_logs_and_swallows_notifier_failures(caplog: pytest.LogCaptureFixture) -> None:
    def send() -> None:
        raise ConnectionError("smtp down")

    deliver("payment_verified", send)

    assert "Notification payment_verified could not be delivered" in caplog.text
