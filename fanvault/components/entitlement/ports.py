"""
Entitlement component ports.

Lookups the access decision is allowed to consult. Nothing else is read.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID


class SubscriptionLookup(Protocol):
    def is_active(self, fan_id: UUID, creator_id: UUID, now: datetime) -> bool:
        """True iff an active subscription's period contains `now`."""
        ...


class PurchaseLookup(Protocol):
    def has_purchased(self, fan_id: UUID, post_id: UUID) -> bool:
        ...
