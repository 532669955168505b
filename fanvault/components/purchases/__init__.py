"""
Purchases component.

Public API for pay-per-view unlocks.
"""

from .component import PurchaseManager
from .models import PurchaseResult

__all__ = ["PurchaseManager", "PurchaseResult"]
