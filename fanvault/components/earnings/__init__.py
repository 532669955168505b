"""
Earnings component.

Public API for creator earnings summaries.
"""

from .component import EarningsService, month_start, summarize
from .models import EarningsSummary

__all__ = ["EarningsService", "EarningsSummary", "month_start", "summarize"]
