"""
Earnings component.

Read-side aggregation over a creator's ledger entries. One pass per call;
nothing is cached or denormalised.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID

from fanvault.components.ledger import list_for_creator
from fanvault.domain.entities import (
    TRANSACTION_TYPES,
    Identity,
    Subscription,
    Transaction,
    TransactionType,
)
from fanvault.domain.policy import require_authenticated, require_self_or_admin
from fanvault.ports.clock import ClockPort
from fanvault.ports.uow import UnitOfWorkFactory

from .models import EarningsSummary


def as_utc(moment: datetime) -> datetime:
    """Timezone-less datetimes are taken to be UTC already."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def month_start(as_of: datetime) -> datetime:
    """First instant of the UTC calendar month containing `as_of`."""
    as_of = as_utc(as_of)
    return as_of.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def summarize(
    transactions: Iterable[Transaction],
    subscriptions: Iterable[Subscription],
    as_of: datetime,
) -> EarningsSummary:
    by_type: dict[TransactionType, Decimal] = {t: Decimal("0") for t in TRANSACTION_TYPES}
    total = Decimal("0")
    monthly = Decimal("0")
    as_of = as_utc(as_of)
    since = month_start(as_of)

    for tx in transactions:
        total += tx.net_amount
        by_type[tx.type] += tx.net_amount
        if tx.created_at >= since:
            monthly += tx.net_amount

    subscriber_count = sum(1 for s in subscriptions if s.is_entitling(as_of))

    return EarningsSummary(
        total=total,
        by_type=by_type,
        monthly=monthly,
        subscriber_count=subscriber_count,
    )


class EarningsService:
    def __init__(self, uow_factory: UnitOfWorkFactory, clock: ClockPort):
        self.uow_factory = uow_factory
        self.clock = clock

    def summarize(
        self,
        actor: Identity | None,
        creator_id: UUID | None = None,
        as_of: datetime | None = None,
    ) -> EarningsSummary:
        """Summary for the actor's own earnings (admins may ask for anyone's)."""
        actor = require_authenticated(actor)
        creator_id = creator_id or actor.user_id
        require_self_or_admin(actor, creator_id)
        as_of = as_of or self.clock.now()

        with self.uow_factory() as uow:
            transactions = list_for_creator(creator_id, repo=uow.transactions)
            subscriptions = uow.subscriptions.list_active_for_creator(creator_id)
        return summarize(transactions, subscriptions, as_of)

    def list_transactions(
        self, actor: Identity | None, creator_id: UUID | None = None
    ) -> list[Transaction]:
        actor = require_authenticated(actor)
        creator_id = creator_id or actor.user_id
        require_self_or_admin(actor, creator_id)
        with self.uow_factory() as uow:
            return list_for_creator(creator_id, repo=uow.transactions)
