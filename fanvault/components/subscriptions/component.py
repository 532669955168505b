"""
Subscriptions component.

Recurring fan -> creator entitlement. A subscription entitles only while its
status is active AND the current instant lies inside its billing period; a
past-due active row does not grant access. History rows are never deleted.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from uuid import UUID

from fanvault.components.ledger import record
from fanvault.components.platform import effective_settings
from fanvault.domain.entities import Identity, Subscription, Transaction
from fanvault.domain.errors import AlreadyExists, InvalidState, NotFound
from fanvault.domain.policy import require_authenticated, require_self_or_admin
from fanvault.ports.clock import ClockPort
from fanvault.ports.events import (
    EventPublisherPort,
    entitlement_changed,
    transaction_recorded,
)
from fanvault.ports.payment import PaymentPort, PaymentRequest
from fanvault.ports.uow import UnitOfWorkFactory
from fanvault.rules.models import PlatformRules

from .models import SubscribeResult
from .ports import BillingPeriodPort

logger = logging.getLogger(__name__)

DEFAULT_PERIOD_DAYS = 30


class FixedTermBilling:
    """Every period is `days` long and starts at the subscribe instant."""

    def __init__(self, days: int = DEFAULT_PERIOD_DAYS):
        if days <= 0:
            raise ValueError("Billing period must be at least one day")
        self.days = days

    def period(self, start: datetime) -> tuple[datetime, datetime]:
        return start, start + timedelta(days=self.days)


class SubscriptionManager:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        clock: ClockPort,
        payments: PaymentPort,
        events: EventPublisherPort,
        platform_rules: PlatformRules,
        billing: BillingPeriodPort | None = None,
    ):
        self.uow_factory = uow_factory
        self.clock = clock
        self.payments = payments
        self.events = events
        self.platform_rules = platform_rules
        self.billing = billing or FixedTermBilling()

    def subscribe(self, actor: Identity | None, creator_id: UUID) -> SubscribeResult:
        """
        Subscribe the actor to a creator.

        An entitling subscription is returned as-is (created=False) without a
        second charge. Payment, the subscription row and its ledger entry
        commit together or not at all.

        Raises:
            NotAuthenticated: no actor
            NotFound: creator profile does not exist
            InvalidState: self-subscription, or target is not a creator
            PaymentFailed: payment declined; nothing is written
        """
        actor = require_authenticated(actor)
        fan_id = actor.user_id
        if fan_id == creator_id:
            raise InvalidState("You cannot subscribe to yourself")

        now = self.clock.now()
        transaction: Transaction | None = None
        try:
            with self.uow_factory(write=True) as uow:
                creator = uow.profiles.get(creator_id)
                if creator is None:
                    raise NotFound("Creator not found")
                if "creator" not in uow.roles.roles_of(creator_id):
                    raise InvalidState("Profile is not a creator")

                existing = uow.subscriptions.find_active(fan_id, creator_id)
                if existing is not None:
                    if existing.is_entitling(now):
                        logger.debug("Fan %s already subscribed to %s", fan_id, creator_id)
                        return SubscribeResult(subscription=existing, created=False)
                    # Period elapsed without renewal
                    uow.subscriptions.set_status(existing.id, "expired", now)
                    logger.info("Expired stale subscription %s", existing.id)

                start, end = self.billing.period(now)
                price = creator.subscription_price
                reference = None
                if price > 0:
                    confirmation = self.payments.confirm(
                        PaymentRequest(
                            payer_id=fan_id,
                            payee_id=creator_id,
                            amount=price,
                            description=f"subscription:{creator_id}",
                        )
                    )
                    reference = confirmation.reference

                subscription = Subscription(
                    fan_id=fan_id,
                    creator_id=creator_id,
                    status="active",
                    current_period_start=start,
                    current_period_end=end,
                    billing_reference=reference,
                    created_at=now,
                    updated_at=now,
                )
                uow.subscriptions.add(subscription)

                if price > 0:
                    settings = effective_settings(uow.settings, self.platform_rules, now)
                    transaction = record(
                        creator_id,
                        fan_id,
                        "subscription",
                        price,
                        settings,
                        repo=uow.transactions,
                        now=now,
                        payment_reference=reference,
                    )
        except AlreadyExists:
            # Lost a race with an identical request; that one committed.
            with self.uow_factory() as uow:
                winner = uow.subscriptions.find_active(fan_id, creator_id)
            if winner is None:
                raise
            logger.debug("Concurrent subscribe for %s -> %s resolved", fan_id, creator_id)
            return SubscribeResult(subscription=winner, created=False)

        logger.info(
            "Fan %s subscribed to %s until %s", fan_id, creator_id, subscription.current_period_end
        )
        self.events.publish(
            entitlement_changed(
                fan_id,
                creator_id,
                "subscription",
                "active",
                now,
                subscription_id=subscription.id,
            )
        )
        if transaction is not None:
            self.events.publish(transaction_recorded(transaction))
        return SubscribeResult(subscription=subscription, created=True, transaction=transaction)

    def unsubscribe(self, actor: Identity | None, creator_id: UUID) -> Subscription | None:
        """
        Cancel the actor's active subscription. The row is kept as history.
        Returns the canceled subscription, or None if there was nothing to cancel.
        """
        actor = require_authenticated(actor)
        fan_id = actor.user_id
        now = self.clock.now()

        with self.uow_factory(write=True) as uow:
            active = uow.subscriptions.find_active(fan_id, creator_id)
            if active is None:
                logger.debug("No active subscription %s -> %s to cancel", fan_id, creator_id)
                return None
            uow.subscriptions.set_status(active.id, "canceled", now)

        canceled = active.model_copy(update={"status": "canceled", "updated_at": now})
        logger.info("Fan %s canceled subscription to %s", fan_id, creator_id)
        self.events.publish(
            entitlement_changed(
                fan_id, creator_id, "subscription", "canceled", now, subscription_id=active.id
            )
        )
        return canceled

    def is_active(self, fan_id: UUID, creator_id: UUID, now: datetime | None = None) -> bool:
        now = now or self.clock.now()
        with self.uow_factory() as uow:
            sub = uow.subscriptions.find_active(fan_id, creator_id)
        return sub is not None and sub.is_entitling(now)

    def list_subscriptions(self, actor: Identity | None) -> list[Subscription]:
        """The actor's currently entitling subscriptions."""
        actor = require_authenticated(actor)
        now = self.clock.now()
        with self.uow_factory() as uow:
            subs = uow.subscriptions.list_active_for_fan(actor.user_id)
        return [s for s in subs if s.is_entitling(now)]

    def list_subscribers(
        self, actor: Identity | None, creator_id: UUID | None = None
    ) -> list[Subscription]:
        actor = require_authenticated(actor)
        creator_id = creator_id or actor.user_id
        require_self_or_admin(actor, creator_id)
        now = self.clock.now()
        with self.uow_factory() as uow:
            subs = uow.subscriptions.list_active_for_creator(creator_id)
        return [s for s in subs if s.is_entitling(now)]
