from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class UpdateProfileInput:
    """Fields left as None are unchanged."""

    username: str | None = None
    display_name: str | None = None
    bio: str | None = None
    subscription_price: Decimal | None = None
