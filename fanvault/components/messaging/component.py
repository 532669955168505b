"""
Messaging component.

Two-party conversations. Only participants can read or write a conversation.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fanvault.domain.entities import Conversation, Identity, Message
from fanvault.domain.errors import InvalidState, NotFound, PermissionDenied
from fanvault.domain.policy import require_authenticated
from fanvault.ports.clock import ClockPort
from fanvault.ports.events import MESSAGE_SENT, DomainEvent, EventPublisherPort
from fanvault.ports.uow import UnitOfWorkFactory, UnitOfWorkPort

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 5000


def _participant_conversation(
    uow: UnitOfWorkPort, actor: Identity, conversation_id: UUID
) -> Conversation:
    conversation = uow.conversations.get(conversation_id)
    if conversation is None:
        raise NotFound("Conversation not found")
    if not conversation.involves(actor.user_id):
        raise PermissionDenied("You are not part of this conversation")
    return conversation


class MessagingService:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        clock: ClockPort,
        events: EventPublisherPort,
    ):
        self.uow_factory = uow_factory
        self.clock = clock
        self.events = events

    def get_or_create_conversation(
        self, actor: Identity | None, other_id: UUID
    ) -> Conversation:
        actor = require_authenticated(actor)
        if actor.user_id == other_id:
            raise InvalidState("You cannot message yourself")

        now = self.clock.now()
        with self.uow_factory(write=True) as uow:
            if uow.profiles.get(other_id) is None:
                raise NotFound("Profile not found")
            existing = uow.conversations.find_between(actor.user_id, other_id)
            if existing is not None:
                return existing
            conversation = Conversation(
                participant_1_id=actor.user_id,
                participant_2_id=other_id,
                last_message_at=now,
                created_at=now,
            )
            uow.conversations.add(conversation)

        logger.info("Conversation %s started by %s", conversation.id, actor.user_id)
        return conversation

    def list_conversations(self, actor: Identity | None) -> list[Conversation]:
        actor = require_authenticated(actor)
        with self.uow_factory() as uow:
            return uow.conversations.list_for_user(actor.user_id)

    def send_message(
        self, actor: Identity | None, conversation_id: UUID, content: str
    ) -> Message:
        actor = require_authenticated(actor)
        if len(content) > MAX_MESSAGE_LENGTH:
            raise InvalidState(f"Message must be at most {MAX_MESSAGE_LENGTH} characters")

        now = self.clock.now()
        with self.uow_factory(write=True) as uow:
            conversation = _participant_conversation(uow, actor, conversation_id)
            message = Message(
                conversation_id=conversation_id,
                sender_id=actor.user_id,
                content=content.strip(),
                created_at=now,
            )
            uow.messages.add(message)
            uow.conversations.touch(conversation_id, now)

        recipient_id = conversation.other_participant(actor.user_id)
        self.events.publish(
            DomainEvent(
                topic=MESSAGE_SENT,
                stream_key=recipient_id,
                created_at=now,
                payload={
                    "conversation_id": str(conversation_id),
                    "message_id": str(message.id),
                    "sender_id": str(actor.user_id),
                    "recipient_id": str(recipient_id),
                },
            )
        )
        return message

    def list_messages(self, actor: Identity | None, conversation_id: UUID) -> list[Message]:
        """Messages oldest first."""
        actor = require_authenticated(actor)
        with self.uow_factory() as uow:
            _participant_conversation(uow, actor, conversation_id)
            return uow.messages.list_for_conversation(conversation_id)

    def mark_read(self, actor: Identity | None, conversation_id: UUID) -> int:
        """Mark the other participant's messages read. Returns how many changed."""
        actor = require_authenticated(actor)
        with self.uow_factory(write=True) as uow:
            _participant_conversation(uow, actor, conversation_id)
            count = uow.messages.mark_read(conversation_id, actor.user_id)
        logger.debug("Marked %d messages read in %s", count, conversation_id)
        return count
