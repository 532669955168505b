"""
Subscriptions component.

Public API for the subscription lifecycle.
"""

from .component import DEFAULT_PERIOD_DAYS, FixedTermBilling, SubscriptionManager
from .models import SubscribeResult
from .ports import BillingPeriodPort

__all__ = [
    "SubscriptionManager",
    "FixedTermBilling",
    "DEFAULT_PERIOD_DAYS",
    "SubscribeResult",
    "BillingPeriodPort",
]
