"""
Ledger component.

Public API for fee splitting and append-only transaction recording.
"""

from .component import HUNDRED, compute_split, list_for_creator, record
from .models import FeeSplit

__all__ = [
    "compute_split",
    "record",
    "list_for_creator",
    "FeeSplit",
    "HUNDRED",
]
