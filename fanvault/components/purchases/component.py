"""
Purchases component.

One-time pay-per-view unlocks. A fan is charged at most once per post: the
existence check, payment, purchase row and ledger entry all happen inside a
single write unit, and the store's unique (fan, post) constraint backs the
check up.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fanvault.components.entitlement import (
    PurchaseRepoLookup,
    SubscriptionRepoLookup,
    evaluate_access,
)
from fanvault.components.ledger import record
from fanvault.components.platform import effective_settings
from fanvault.domain.entities import Identity, PPVPurchase
from fanvault.domain.errors import AlreadyExists, InvalidState, NotFound
from fanvault.domain.policy import require_authenticated
from fanvault.ports.clock import ClockPort
from fanvault.ports.events import (
    EventPublisherPort,
    entitlement_changed,
    transaction_recorded,
)
from fanvault.ports.payment import PaymentPort, PaymentRequest
from fanvault.ports.uow import UnitOfWorkFactory
from fanvault.rules.models import PlatformRules

from .models import PurchaseResult

logger = logging.getLogger(__name__)


class PurchaseManager:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        clock: ClockPort,
        payments: PaymentPort,
        events: EventPublisherPort,
        platform_rules: PlatformRules,
    ):
        self.uow_factory = uow_factory
        self.clock = clock
        self.payments = payments
        self.events = events
        self.platform_rules = platform_rules

    def purchase(self, actor: Identity | None, post_id: UUID) -> PurchaseResult:
        """
        Unlock a pay-per-view post for the actor.

        Raises:
            NotAuthenticated: no actor
            NotFound: post does not exist
            InvalidState: post is not pay-per-view, or actor owns it
            PaymentFailed: payment declined; nothing is written
        """
        actor = require_authenticated(actor)
        fan_id = actor.user_id
        now = self.clock.now()

        try:
            with self.uow_factory(write=True) as uow:
                post = uow.posts.get(post_id)
                if post is None:
                    raise NotFound("Post not found")
                if not post.is_ppv or post.ppv_price is None:
                    raise InvalidState("Post is not pay-per-view")
                if post.creator_id == fan_id:
                    raise InvalidState("You already have access to your own post")

                existing = uow.purchases.get(fan_id, post_id)
                if existing is not None:
                    logger.debug("Fan %s already owns post %s", fan_id, post_id)
                    return PurchaseResult(purchase=existing, created=False)

                confirmation = self.payments.confirm(
                    PaymentRequest(
                        payer_id=fan_id,
                        payee_id=post.creator_id,
                        amount=post.ppv_price,
                        description=f"ppv:{post_id}",
                    )
                )

                purchase = PPVPurchase(
                    fan_id=fan_id,
                    post_id=post_id,
                    amount=post.ppv_price,
                    payment_reference=confirmation.reference,
                    created_at=now,
                )
                uow.purchases.add(purchase)

                settings = effective_settings(uow.settings, self.platform_rules, now)
                transaction = record(
                    post.creator_id,
                    fan_id,
                    "ppv",
                    post.ppv_price,
                    settings,
                    repo=uow.transactions,
                    now=now,
                    payment_reference=confirmation.reference,
                )
        except AlreadyExists:
            # A concurrent identical purchase committed first; return it.
            with self.uow_factory() as uow:
                winner = uow.purchases.get(fan_id, post_id)
            if winner is None:
                raise
            logger.debug("Concurrent purchase of %s by %s resolved", post_id, fan_id)
            return PurchaseResult(purchase=winner, created=False)

        logger.info("Fan %s purchased post %s for %s", fan_id, post_id, purchase.amount)
        self.events.publish(
            entitlement_changed(
                fan_id,
                post.creator_id,
                "ppv",
                "purchased",
                now,
                post_id=post_id,
                purchase_id=purchase.id,
            )
        )
        self.events.publish(transaction_recorded(transaction))
        return PurchaseResult(purchase=purchase, created=True, transaction=transaction)

    def has_purchased(self, fan_id: UUID, post_id: UUID) -> bool:
        with self.uow_factory() as uow:
            return uow.purchases.get(fan_id, post_id) is not None

    def has_access(self, fan_id: UUID | None, post_id: UUID) -> bool:
        """Whether `fan_id` may currently see the post's body and media."""
        now = self.clock.now()
        with self.uow_factory() as uow:
            post = uow.posts.get(post_id)
            if post is None:
                raise NotFound("Post not found")
            decision = evaluate_access(
                fan_id,
                post,
                subscriptions=SubscriptionRepoLookup(uow.subscriptions),
                purchases=PurchaseRepoLookup(uow.purchases),
                now=now,
            )
        return decision.granted

    def list_purchases(self, actor: Identity | None) -> list[PPVPurchase]:
        actor = require_authenticated(actor)
        with self.uow_factory() as uow:
            return uow.purchases.list_for_fan(actor.user_id)
