from dataclasses import dataclass

from storedesk.domain.entities import Order, PaymentStatus


@dataclass
class CheckoutInput:
    order_id: str
    client_secret: str


@dataclass
class CheckoutOutput:
    order: Order | None = None
    success: bool = False
    error: str | None = None


@dataclass
class PaymentWaitOutput:
    status: PaymentStatus | None = None
    order: Order | None = None
    attempts: int = 0

    @property
    def completed(self) -> bool:
        return self.status == "completed"
