"""
Subscriptions component ports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class BillingPeriodPort(Protocol):
    """
    Decides the entitlement window a new subscription covers.

    Implementations:
    - FixedTermBilling: [start, start + N days)
    - a billing-provider adapter (future)
    """

    def period(self, start: datetime) -> tuple[datetime, datetime]:
        """Return (current_period_start, current_period_end)."""
        ...
