"""
Payment stub adapter (dev/tests).

Stub implementation of PaymentProcessorPort that confirms every payment
with a configurable status instead of talking to a card processor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from storedesk.ports.payment import (
    BillingDetails,
    ConfirmationStatus,
    PaymentConfirmation,
    PaymentProcessorPort,
)

logger = logging.getLogger(__name__)


@dataclass
class StubPaymentProcessor:
    """
    Stub payment processor.

    Always reports "succeeded" unless configured otherwise. Every call is
    recorded so tests can assert on the client secret and billing details.
    """

    _status: ConfirmationStatus = "succeeded"
    _error_message: str | None = None
    calls: list[tuple[str, BillingDetails]] = field(default_factory=list)

    async def confirm_card_payment(
        self, client_secret: str, billing: BillingDetails
    ) -> PaymentConfirmation:
        """
        Confirm a payment (no network).

        Args:
            client_secret: Secret issued with the order
            billing: Cardholder details

        Returns:
            PaymentConfirmation with the configured status or error
        """
        self.calls.append((client_secret, billing))

        logger.debug(
            f"StubPaymentProcessor.confirm_card_payment: "
            f"status={self._status}, error={self._error_message}"
        )

        if self._error_message is not None:
            return PaymentConfirmation(error_message=self._error_message)
        return PaymentConfirmation(status=self._status)

    # --- Testing Helpers ---

    def set_status(self, status: ConfirmationStatus) -> None:
        """Set the status reported for subsequent confirmations."""
        self._status = status
        self._error_message = None

    def fail_with(self, message: str) -> None:
        """Make subsequent confirmations fail with a processor message."""
        self._error_message = message


# Verify protocol compliance at module load time
def _verify_protocol_compliance() -> None:
    """Verify StubPaymentProcessor satisfies PaymentProcessorPort protocol."""
    processor: PaymentProcessorPort = StubPaymentProcessor()
    _ = processor.confirm_card_payment


_verify_protocol_compliance()
