"""
Payment processor port.

The hosted card widget is an opaque collaborator: it receives a client
secret issued by the orders endpoint and reports a confirmation status.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

# --- Types ---

ConfirmationStatus = Literal[
    "succeeded", "processing", "requires_action", "requires_payment_method", "canceled"
]


# --- Models ---


@dataclass(frozen=True)
class BillingDetails:
    name: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class PaymentConfirmation:
    """
    Outcome of a card confirmation.

    Attributes:
        status: Processor-reported payment intent status
        error_message: Processor message when confirmation failed outright
    """

    status: ConfirmationStatus | None = None
    error_message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error_message is None and self.status == "succeeded"


# --- Port Interface ---


class PaymentProcessorPort(Protocol):
    """
    Port for confirming a card payment against a client secret.

    Implementations:
    - StubPaymentProcessor: configurable outcome (dev/tests)
    """

    async def confirm_card_payment(
        self, client_secret: str, billing: BillingDetails
    ) -> PaymentConfirmation:
        """
        Confirm the payment intent identified by client_secret.

        Returns:
            PaymentConfirmation with either a status or an error message.
        """
        ...
