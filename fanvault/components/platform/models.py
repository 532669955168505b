from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class UpdateSettingsInput:
    """Fields left as None keep their current value."""

    platform_fee_percentage: Decimal | None = None
    min_subscription_price: Decimal | None = None
    max_subscription_price: Decimal | None = None


@dataclass(frozen=True)
class CreateReportInput:
    reason: str
    reported_user_id: UUID | None = None
    reported_post_id: UUID | None = None
