"""
Customers component - Customer list, search and edits.
"""

from .component import CustomerStore
from .models import CustomerQuery

__all__ = [
    "CustomerStore",
    "CustomerQuery",
]
