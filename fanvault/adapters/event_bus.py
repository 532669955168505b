"""
In-process realtime fan-out.

Implements EventPublisherPort for single-process deployments. Handlers run
synchronously in publish order. Ordering across topics is not guaranteed to
consumers, but within one stream key created_at never goes backwards: an
event older than the last one delivered for its key is delivered with the
key's last timestamp instead.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections import defaultdict
from collections.abc import Callable
from datetime import datetime
from uuid import UUID

from fanvault.ports.events import DomainEvent, EventFilter, EventHandler

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class _Registration:
    handler: EventHandler
    where: EventFilter | None


class InMemoryEventBus:
    def __init__(self) -> None:
        self._handlers: dict[str, list[_Registration]] = defaultdict(list)
        self._last_seen: dict[UUID, datetime] = {}
        self._lock = threading.RLock()

    def subscribe(
        self, topic: str, handler: EventHandler, where: EventFilter | None = None
    ) -> Callable[[], None]:
        registration = _Registration(handler=handler, where=where)
        with self._lock:
            self._handlers[topic].append(registration)

        def _unsubscribe() -> None:
            with self._lock:
                if registration in self._handlers[topic]:
                    self._handlers[topic].remove(registration)

        return _unsubscribe

    def publish(self, event: DomainEvent) -> None:
        with self._lock:
            last = self._last_seen.get(event.stream_key)
            if last is not None and event.created_at < last:
                event = dataclasses.replace(event, created_at=last)
            self._last_seen[event.stream_key] = event.created_at
            self._on_publish(event)
            registrations = list(self._handlers.get(event.topic, ()))

            for registration in registrations:
                if registration.where is not None and not registration.where(event):
                    continue
                try:
                    registration.handler(event)
                except Exception:
                    # The change is already committed; one failing consumer
                    # must not hide it from the others.
                    logger.exception("Event handler failed for topic %s", event.topic)

    def _on_publish(self, event: DomainEvent) -> None:
        pass


class RecordingEventBus(InMemoryEventBus):
    """Event bus that also keeps every published event (tests, debugging)."""

    def __init__(self) -> None:
        super().__init__()
        self.events: list[DomainEvent] = []

    def _on_publish(self, event: DomainEvent) -> None:
        self.events.append(event)

    def topics(self) -> list[str]:
        return [e.topic for e in self.events]
