"""
Entitlement component.

Public API for post access decisions and redaction.
"""

from .component import (
    PurchaseRepoLookup,
    SubscriptionRepoLookup,
    evaluate_access,
    redact_post,
)
from .models import AccessDecision, AccessReason, PostView
from .ports import PurchaseLookup, SubscriptionLookup

__all__ = [
    # Functions
    "evaluate_access",
    "redact_post",
    # Lookups
    "SubscriptionRepoLookup",
    "PurchaseRepoLookup",
    # Models
    "AccessDecision",
    "AccessReason",
    "PostView",
    # Ports
    "SubscriptionLookup",
    "PurchaseLookup",
]
