from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from fanvault.domain.entities import TransactionType


@dataclass(frozen=True)
class EarningsSummary:
    """
    Creator earnings, net of platform fees.

    Attributes:
        total: Sum of net amounts over every ledger entry
        by_type: Net sum per transaction type; all three types always present
        monthly: Net sum since the start of the as-of instant's UTC month
        subscriber_count: Subscriptions entitling at the as-of instant
    """

    total: Decimal
    by_type: dict[TransactionType, Decimal] = field(default_factory=dict)
    monthly: Decimal = Decimal("0")
    subscriber_count: int = 0
