"""
Checkout component - card payment confirmation for an order.

The processor confirms the payment intent behind the order's client secret;
only a "succeeded" intent is reported back to the orders endpoint.
"""

from __future__ import annotations

import asyncio
import logging

from storedesk.components.orders import OrderStore
from storedesk.components.session import SessionManager
from storedesk.ports.payment import BillingDetails, PaymentProcessorPort
from storedesk.shell.http.errors import ApiError, user_message

from .models import CheckoutInput, CheckoutOutput, PaymentWaitOutput

logger = logging.getLogger(__name__)

DEFAULT_POLL_ATTEMPTS = 10
DEFAULT_POLL_INTERVAL = 2.0


async def run_checkout(
    inp: CheckoutInput,
    *,
    processor: PaymentProcessorPort,
    orders: OrderStore,
    session: SessionManager,
) -> CheckoutOutput:
    user = session.current_user
    billing = BillingDetails(
        name=user.full_name if user else None,
        email=user.email if user else None,
    )

    confirmation = await processor.confirm_card_payment(inp.client_secret, billing)
    if confirmation.error_message is not None:
        logger.info(f"Payment for order {inp.order_id} failed: {confirmation.error_message}")
        return CheckoutOutput(success=False, error=confirmation.error_message)

    if not confirmation.succeeded:
        logger.info(f"Payment for order {inp.order_id} not completed: {confirmation.status}")
        return CheckoutOutput(success=False, error=f"Payment {confirmation.status}")

    try:
        order = await orders.process_payment(inp.order_id)
    except ApiError as e:
        return CheckoutOutput(success=False, error=user_message(e, "Failed to process payment"))

    logger.info(f"Order {inp.order_id} paid")
    return CheckoutOutput(order=order, success=True)


async def wait_for_payment(
    order_id: str,
    orders: OrderStore,
    *,
    attempts: int = DEFAULT_POLL_ATTEMPTS,
    interval: float = DEFAULT_POLL_INTERVAL,
) -> PaymentWaitOutput:
    """
    Poll the order until its payment settles.

    Stops at "completed" or "failed", or after the given number of attempts.
    """
    out = PaymentWaitOutput()
    for attempt in range(1, attempts + 1):
        order = await orders.get_order(order_id)
        out = PaymentWaitOutput(status=order.payment_status, order=order, attempts=attempt)
        if order.payment_status in ("completed", "failed"):
            break
        if attempt < attempts:
            await asyncio.sleep(interval)
    return out
