"""
Users component - Staff account list and removal.
"""

from .component import StaffStore
from .models import StaffQuery

__all__ = [
    "StaffStore",
    "StaffQuery",
]
