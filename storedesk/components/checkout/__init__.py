"""
Checkout component - Card payment confirmation for orders.
"""

from .component import DEFAULT_POLL_ATTEMPTS, DEFAULT_POLL_INTERVAL, run_checkout, wait_for_payment
from .models import CheckoutInput, CheckoutOutput, PaymentWaitOutput

__all__ = [
    # Entry points
    "run_checkout",
    "wait_for_payment",
    # Models
    "CheckoutInput",
    "CheckoutOutput",
    "PaymentWaitOutput",
    # Constants
    "DEFAULT_POLL_ATTEMPTS",
    "DEFAULT_POLL_INTERVAL",
]
