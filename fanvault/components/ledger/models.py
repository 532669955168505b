from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class FeeSplit:
    """Gross amount divided between the platform and the creator."""

    gross: Decimal
    platform_fee: Decimal
    net: Decimal
    fee_percentage: Decimal
