"""Domain error taxonomy.

Every error here is raised before (or instead of) a side effect, or inside a
unit of work that is rolled back when it propagates. Callers translate them to
responses; only the reconciliation engine compensates.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from uuid import UUID


class CheckoutError(RuntimeError):
    """Base class for order and payment rule violations."""

    code: ClassVar[str] = "checkout_error"


class ValidationError(CheckoutError, ValueError):
    """Raised for malformed input before any side effect."""

    code = "validation_error"


class NotFoundError(CheckoutError, LookupError):
    """Raised when an order, payment, or stock row does not exist."""

    code = "not_found"


class PermissionDeniedError(CheckoutError):
    """Raised when a non-admin acts on an order owned by someone else."""

    code = "permission_denied"


class InvalidTransitionError(CheckoutError):
    """Raised when the order status does not allow the requested operation."""

    code = "invalid_transition"


class InsufficientStockError(CheckoutError):
    """Raised when the current stock quantity cannot cover a request."""

    code = "insufficient_stock"

    def __init__(self, product_id: UUID, *, requested: int, available: int | None) -> None:
        detail = f"Available: {available}, " if available is not None else ""
        super().__init__(
            f"Insufficient stock for product {product_id}. {detail}Requested: {requested}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class DuplicateTransactionError(CheckoutError):
    """Raised when a transaction id is already recorded on another payment."""

    code = "duplicate_transaction"

    def __init__(self, transaction_id: str | None = None) -> None:
        message = "Transaction ID already used"
        if transaction_id:
            message = f"{message}: {transaction_id}"
        super().__init__(message)
        self.transaction_id = transaction_id


class StaleOrderError(InvalidTransitionError):
    """Raised at commit when another unit of work changed the order's status first."""

    code = "stale_order"

    def __init__(self, order_id: UUID | None = None) -> None:
        subject = f"Order {order_id}" if order_id is not None else "Order"
        super().__init__(f"{subject} was settled or cancelled by a concurrent request")
        self.order_id = order_id
