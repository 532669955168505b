"""
Notifications component.

User-facing notifications are derived from domain events after the change
that caused them has committed. A failed notification never undoes that
change.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from uuid import UUID

from fanvault.domain.entities import Identity, Notification, NotificationType
from fanvault.domain.policy import require_authenticated
from fanvault.ports.clock import ClockPort
from fanvault.ports.events import (
    ENTITLEMENT_CHANGED,
    MESSAGE_SENT,
    POST_CREATED,
    TRANSACTION_RECORDED,
    DomainEvent,
    EventPublisherPort,
)
from fanvault.ports.uow import UnitOfWorkFactory

logger = logging.getLogger(__name__)

GRANTING_STATUSES = frozenset({"active", "purchased"})


class NotificationService:
    def __init__(self, uow_factory: UnitOfWorkFactory):
        self.uow_factory = uow_factory

    def list_notifications(self, actor: Identity | None, limit: int = 50) -> list[Notification]:
        actor = require_authenticated(actor)
        with self.uow_factory() as uow:
            return uow.notifications.list_for_user(actor.user_id, limit)

    def unread_count(self, actor: Identity | None) -> int:
        actor = require_authenticated(actor)
        with self.uow_factory() as uow:
            return uow.notifications.count_unread(actor.user_id)

    def mark_read(self, actor: Identity | None, notification_id: UUID) -> bool:
        actor = require_authenticated(actor)
        with self.uow_factory(write=True) as uow:
            return uow.notifications.mark_read(notification_id, actor.user_id)

    def mark_all_read(self, actor: Identity | None) -> int:
        actor = require_authenticated(actor)
        with self.uow_factory(write=True) as uow:
            return uow.notifications.mark_all_read(actor.user_id)


class NotificationFanout:
    """Subscribes to the event bus and persists notifications for recipients."""

    def __init__(self, uow_factory: UnitOfWorkFactory, clock: ClockPort):
        self.uow_factory = uow_factory
        self.clock = clock

    def attach(self, bus: EventPublisherPort) -> list[Callable[[], None]]:
        """Register handlers; returns their unsubscribe callables."""
        return [
            bus.subscribe(
                ENTITLEMENT_CHANGED,
                self.on_entitlement_changed,
                where=lambda e: e.payload.get("status") in GRANTING_STATUSES,
            ),
            bus.subscribe(
                TRANSACTION_RECORDED,
                self.on_tip_recorded,
                where=lambda e: e.payload.get("type") == "tip",
            ),
            bus.subscribe(POST_CREATED, self.on_post_created),
            bus.subscribe(MESSAGE_SENT, self.on_message_sent),
        ]

    def _notify(
        self,
        recipients: list[UUID],
        type: NotificationType,
        title: str,
        message: str | None,
        related_id: UUID | None,
        event: DomainEvent,
    ) -> None:
        if not recipients:
            return
        with self.uow_factory(write=True) as uow:
            for user_id in recipients:
                uow.notifications.add(
                    Notification(
                        user_id=user_id,
                        type=type,
                        title=title,
                        message=message,
                        related_id=related_id,
                        created_at=event.created_at,
                    )
                )
        logger.debug("Wrote %d %s notifications", len(recipients), type)

    def on_entitlement_changed(self, event: DomainEvent) -> None:
        creator_id = UUID(event.payload["creator_id"])
        if event.payload.get("kind") == "ppv":
            self._notify(
                [creator_id],
                "ppv_purchased",
                "Post unlocked",
                "A fan purchased one of your posts",
                UUID(event.payload["post_id"]),
                event,
            )
        else:
            self._notify(
                [creator_id],
                "new_subscription",
                "New subscriber",
                "A fan subscribed to you",
                UUID(event.payload["fan_id"]),
                event,
            )

    def on_tip_recorded(self, event: DomainEvent) -> None:
        self._notify(
            [UUID(event.payload["creator_id"])],
            "tip_received",
            "You received a tip",
            f"Tip of {event.payload['gross_amount']}",
            UUID(event.payload["transaction_id"]),
            event,
        )

    def on_post_created(self, event: DomainEvent) -> None:
        creator_id = UUID(event.payload["creator_id"])
        now = self.clock.now()
        with self.uow_factory() as uow:
            subscribers = [
                s.fan_id
                for s in uow.subscriptions.list_active_for_creator(creator_id)
                if s.is_entitling(now)
            ]
        self._notify(
            subscribers,
            "new_post",
            "New post",
            "A creator you follow published a post",
            UUID(event.payload["post_id"]),
            event,
        )

    def on_message_sent(self, event: DomainEvent) -> None:
        self._notify(
            [UUID(event.payload["recipient_id"])],
            "new_message",
            "New message",
            None,
            UUID(event.payload["conversation_id"]),
            event,
        )
