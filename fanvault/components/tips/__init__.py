"""
Tips component.

Public API for sending and listing tips.
"""

from .component import MAX_MESSAGE_LENGTH, TipManager, validate_tip_amount
from .models import TipResult

__all__ = ["TipManager", "TipResult", "validate_tip_amount", "MAX_MESSAGE_LENGTH"]
