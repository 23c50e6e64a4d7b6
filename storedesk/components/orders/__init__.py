"""
Orders component - Order list, edits and payment processing.
"""

from .component import OrderStore
from .models import CreatedOrder, OrderQuery

__all__ = [
    "OrderStore",
    "OrderQuery",
    "CreatedOrder",
]
