# storedesk: ports (Protocol interfaces)
# Abstract interfaces for adapters; no implementations here

from storedesk.ports.api_client import ApiClientPort, AuthRejectedCallback
from storedesk.ports.credentials import CredentialStorePort
from storedesk.ports.payment import (
    BillingDetails,
    ConfirmationStatus,
    PaymentConfirmation,
    PaymentProcessorPort,
)

__all__ = [
    # HTTP
    "ApiClientPort",
    "AuthRejectedCallback",
    # Credentials
    "CredentialStorePort",
    # Payment
    "BillingDetails",
    "ConfirmationStatus",
    "PaymentConfirmation",
    "PaymentProcessorPort",
]
