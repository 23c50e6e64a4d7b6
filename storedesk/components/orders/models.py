from dataclasses import dataclass

from storedesk.components._collection import ListQuery
from storedesk.domain.entities import Order, OrderStatus


class OrderQuery(ListQuery):
    status: OrderStatus | None = None


@dataclass
class CreatedOrder:
    """A new order plus the client secret for confirming its card payment."""

    order: Order
    client_secret: str | None = None
