"""
Products component - Catalogue list and product edits.
"""

from .component import ProductStore
from .models import ProductQuery

__all__ = [
    "ProductStore",
    "ProductQuery",
]
