from __future__ import annotations

import argparse
import logging
import mimetypes
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from payproof.app import build_services
from payproof.config import configure_logging
from payproof.domain.model import Requester, Role
from payproof.domain.reconciliation import ScreenshotUpload

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from payproof.app import CheckoutServices

log = logging.getLogger(__name__)

# Identity recorded for actions taken from the command line
OPERATOR_ID = UUID(int=0)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Operate the payproof checkout backend")
    parser.add_argument(
        "--operator-id",
        type=str,
        default=None,
        help="Admin user id recorded for review actions (defaults to a fixed operator id)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Interface to bind")
    serve.add_argument("--port", type=int, default=8000, help="Port to listen on")

    subparsers.add_parser("pending", help="List orders awaiting payment review")

    confirm = subparsers.add_parser("confirm", help="Confirm the payment of a pending order")
    confirm.add_argument("order_id", type=str, help="Order to confirm")

    reject = subparsers.add_parser("reject", help="Reject the payment of a pending order")
    reject.add_argument("order_id", type=str, help="Order to reject")
    reject.add_argument("--reason", type=str, help="Reason recorded with the rejection")

    stock = subparsers.add_parser("stock", help="Register or replenish stock for a product")
    stock.add_argument("product_id", type=str, help="Product whose stock changes")
    stock.add_argument("quantity", type=int, help="Units to add (or the initial level)")
    stock.add_argument(
        "--register",
        action="store_true",
        help="Create the stock row for a product that has none yet",
    )

    verify = subparsers.add_parser(
        "verify", help="Run screenshot verification for an order from a local image"
    )
    verify.add_argument("order_id", type=str, help="Order the screenshot pays for")
    verify.add_argument("image", type=str, help="Path to the payment screenshot")
    verify.add_argument(
        "--user-id",
        type=str,
        required=True,
        help="Owner of the order; the upload is made on their behalf",
    )

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _operator(args: argparse.Namespace) -> Requester:
    user_id = _parse_uuid(args.operator_id) if args.operator_id else OPERATOR_ID
    return Requester(user_id=user_id, role=Role.ADMIN)


def _serve(args: argparse.Namespace) -> None:
    import uvicorn  # noqa: PLC0415

    from payproof.web import create_app  # noqa: PLC0415

    uvicorn.run(create_app(build_services()), host=args.host, port=args.port)


def _list_pending(services: CheckoutServices, operator: Requester) -> None:
    rows = services.pending_orders(requester=operator)
    log.info("%d order(s) awaiting payment review", len(rows))
    for row in rows:
        log.info(
            "%s user=%s amount=%s items=%d method=%s created=%s",
            row.order_id,
            row.user_id,
            row.amount,
            row.item_count,
            row.payment_method,
            row.created_at.isoformat(),
        )


def _verify(services: CheckoutServices, args: argparse.Namespace) -> bool:
    path = Path(args.image)
    content_type, _encoding = mimetypes.guess_type(path.name)
    result = services.verify_screenshot(
        ScreenshotUpload(
            order_id=_parse_uuid(args.order_id),
            requester=Requester(user_id=_parse_uuid(args.user_id), role=Role.ADMIN),
            image=path.read_bytes(),
            filename=path.name,
            content_type=content_type,
        )
    )
    if result.success:
        log.info(
            "Order %s paid (transaction %s, date %s)",
            result.order_id,
            result.transaction_id,
            result.transaction_date,
        )
    else:
        log.warning("Verification failed (%s): %s", result.reason, result.message)
    return result.success


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        operator = _operator(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "serve":
            _serve(parsed_args)
            return
        services = build_services()
        if parsed_args.command == "pending":
            _list_pending(services, operator)
        elif parsed_args.command == "confirm":
            order = services.confirm_payment(
                _parse_uuid(parsed_args.order_id), requester=operator
            )
            log.info("Order %s is now %s", order.id, order.status)
        elif parsed_args.command == "reject":
            order = services.reject_payment(
                _parse_uuid(parsed_args.order_id),
                requester=operator,
                reason=parsed_args.reason,
            )
            log.info("Order %s is now %s", order.id, order.status)
        elif parsed_args.command == "stock":
            product_id = _parse_uuid(parsed_args.product_id)
            if parsed_args.register:
                stock = services.register_stock(
                    product_id, parsed_args.quantity, requester=operator
                )
                log.info("Registered product %s with %d unit(s)", product_id, stock.quantity)
            else:
                level = services.restock(product_id, parsed_args.quantity, requester=operator)
                log.info("Product %s now has %d unit(s)", product_id, level)
        elif parsed_args.command == "verify":
            if not _verify(services, parsed_args):
                sys.exit(1)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Command %s failed", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
