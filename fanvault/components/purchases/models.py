from __future__ import annotations

from dataclasses import dataclass

from fanvault.domain.entities import PPVPurchase, Transaction


@dataclass(frozen=True)
class PurchaseResult:
    """`created` is False when the fan already owned the post; nothing was charged."""

    purchase: PPVPurchase
    created: bool
    transaction: Transaction | None = None
