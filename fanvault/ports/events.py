"""
Realtime fan-out port.

Events are notifications that something changed, used to trigger re-fetches
and to write user notifications; they do not carry authoritative state.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from fanvault.domain.entities import Transaction

ENTITLEMENT_CHANGED = "entitlement.changed"
TRANSACTION_RECORDED = "transaction.recorded"
POST_CREATED = "post.created"
MESSAGE_SENT = "message.sent"


@dataclass(frozen=True)
class DomainEvent:
    """
    Attributes:
        topic: One of the topic constants above
        stream_key: Ordering key; events sharing it are delivered in
            non-decreasing created_at order
        created_at: When the underlying change happened
        payload: Topic-specific identifiers
    """

    topic: str
    stream_key: UUID
    created_at: datetime
    payload: dict[str, Any] = field(default_factory=dict)


EventHandler = Callable[[DomainEvent], None]
EventFilter = Callable[[DomainEvent], bool]


class EventPublisherPort(Protocol):
    def publish(self, event: DomainEvent) -> None:
        ...

    def subscribe(
        self, topic: str, handler: EventHandler, where: EventFilter | None = None
    ) -> Callable[[], None]:
        """Register a handler; returns a callable that removes it."""
        ...


# --- Event builders ---


def entitlement_changed(
    fan_id: UUID,
    creator_id: UUID,
    kind: str,
    status: str,
    created_at: datetime,
    **ids: UUID,
) -> DomainEvent:
    """
    A fan gained or lost access. `kind` is "subscription" or "ppv"; `ids`
    carries the affected record ids (subscription_id, post_id, purchase_id).
    """
    payload: dict[str, Any] = {
        "fan_id": str(fan_id),
        "creator_id": str(creator_id),
        "kind": kind,
        "status": status,
    }
    payload.update({k: str(v) for k, v in ids.items()})
    return DomainEvent(
        topic=ENTITLEMENT_CHANGED,
        stream_key=fan_id,
        created_at=created_at,
        payload=payload,
    )


def transaction_recorded(transaction: Transaction) -> DomainEvent:
    return DomainEvent(
        topic=TRANSACTION_RECORDED,
        stream_key=transaction.creator_id,
        created_at=transaction.created_at,
        payload={
            "transaction_id": str(transaction.id),
            "creator_id": str(transaction.creator_id),
            "fan_id": str(transaction.fan_id) if transaction.fan_id else None,
            "type": transaction.type,
            "gross_amount": str(transaction.gross_amount),
            "net_amount": str(transaction.net_amount),
        },
    )
