"""
Tips component.

A tip is recorded twice: as a Tip row (with the fan's message) and as a `tip`
ledger entry. Both are written in the same unit of work as the payment
confirmation.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from fanvault.components.ledger import record
from fanvault.components.platform import effective_settings
from fanvault.domain.entities import Identity, Tip
from fanvault.domain.errors import InvalidState, NotFound
from fanvault.domain.policy import require_authenticated, require_self_or_admin
from fanvault.ports.clock import ClockPort
from fanvault.ports.events import EventPublisherPort, transaction_recorded
from fanvault.ports.payment import PaymentPort, PaymentRequest
from fanvault.ports.uow import UnitOfWorkFactory
from fanvault.rules.models import PlatformRules, TipRules

from .models import TipResult

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 500


def validate_tip_amount(amount: Decimal, rules: TipRules) -> None:
    if not rules.min_amount <= amount <= rules.max_amount:
        raise InvalidState(
            f"Tip must be between {rules.min_amount} and {rules.max_amount}"
        )


class TipManager:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        clock: ClockPort,
        payments: PaymentPort,
        events: EventPublisherPort,
        platform_rules: PlatformRules,
        tip_rules: TipRules,
    ):
        self.uow_factory = uow_factory
        self.clock = clock
        self.payments = payments
        self.events = events
        self.platform_rules = platform_rules
        self.tip_rules = tip_rules

    def send_tip(
        self,
        actor: Identity | None,
        creator_id: UUID,
        amount: Decimal,
        message: str | None = None,
    ) -> TipResult:
        """
        Raises:
            NotAuthenticated: no actor
            NotFound: creator profile does not exist
            InvalidState: amount out of bounds, self-tip, or target is not a creator
            PaymentFailed: payment declined; nothing is written
        """
        actor = require_authenticated(actor)
        fan_id = actor.user_id
        if fan_id == creator_id:
            raise InvalidState("You cannot tip yourself")
        validate_tip_amount(amount, self.tip_rules)
        message = message.strip() if message else None
        if message and len(message) > MAX_MESSAGE_LENGTH:
            raise InvalidState(f"Tip message must be at most {MAX_MESSAGE_LENGTH} characters")

        now = self.clock.now()
        with self.uow_factory(write=True) as uow:
            if uow.profiles.get(creator_id) is None:
                raise NotFound("Creator not found")
            if "creator" not in uow.roles.roles_of(creator_id):
                raise InvalidState("Profile is not a creator")

            confirmation = self.payments.confirm(
                PaymentRequest(
                    payer_id=fan_id,
                    payee_id=creator_id,
                    amount=amount,
                    description="tip",
                )
            )
            tip = Tip(
                fan_id=fan_id,
                creator_id=creator_id,
                amount=amount,
                message=message or None,
                payment_reference=confirmation.reference,
                created_at=now,
            )
            uow.tips.add(tip)

            settings = effective_settings(uow.settings, self.platform_rules, now)
            transaction = record(
                creator_id,
                fan_id,
                "tip",
                amount,
                settings,
                repo=uow.transactions,
                now=now,
                payment_reference=confirmation.reference,
            )

        logger.info("Fan %s tipped %s: %s", fan_id, creator_id, amount)
        self.events.publish(transaction_recorded(transaction))
        return TipResult(tip=tip, transaction=transaction)

    def list_received(self, actor: Identity | None, creator_id: UUID | None = None) -> list[Tip]:
        actor = require_authenticated(actor)
        creator_id = creator_id or actor.user_id
        require_self_or_admin(actor, creator_id)
        with self.uow_factory() as uow:
            return uow.tips.list_for_creator(creator_id)
