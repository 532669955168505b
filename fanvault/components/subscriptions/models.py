from __future__ import annotations

from dataclasses import dataclass

from fanvault.domain.entities import Subscription, Transaction


@dataclass(frozen=True)
class SubscribeResult:
    """
    Outcome of a subscribe request.

    `created` is False when the fan already had an entitling subscription;
    that subscription is returned and nothing was charged.
    """

    subscription: Subscription
    created: bool
    transaction: Transaction | None = None
