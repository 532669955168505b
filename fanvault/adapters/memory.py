"""
In-memory record store.

Implements the repository ports and UnitOfWorkPort without a database, for
tests and throwaway local runs. Units of work are serialised with a
re-entrant lock and roll back by restoring a snapshot taken on entry.
"""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from types import TracebackType
from typing import Any
from uuid import UUID

from fanvault.domain.entities import (
    Conversation,
    Message,
    Notification,
    PlatformSettings,
    Post,
    PPVPurchase,
    Profile,
    Report,
    ReportStatus,
    RoleAssignment,
    RoleType,
    Subscription,
    SubscriptionStatus,
    Tip,
    Transaction,
)
from fanvault.domain.errors import AlreadyExists

logger = logging.getLogger(__name__)


def _newest_first(items: list[Any]) -> list[Any]:
    # Ties keep reverse insertion order
    return sorted(reversed(items), key=lambda i: i.created_at, reverse=True)


@dataclass
class InMemoryStore:
    profiles: dict[UUID, Profile] = field(default_factory=dict)
    roles: dict[UUID, set[RoleType]] = field(default_factory=dict)
    posts: dict[UUID, Post] = field(default_factory=dict)
    subscriptions: list[Subscription] = field(default_factory=list)
    purchases: dict[tuple[UUID, UUID], PPVPurchase] = field(default_factory=dict)
    transactions: list[Transaction] = field(default_factory=list)
    tips: list[Tip] = field(default_factory=list)
    settings: PlatformSettings | None = None
    reports: dict[UUID, Report] = field(default_factory=dict)
    notifications: list[Notification] = field(default_factory=list)
    conversations: dict[UUID, Conversation] = field(default_factory=dict)
    messages: list[Message] = field(default_factory=list)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    _DATA_FIELDS = (
        "profiles",
        "roles",
        "posts",
        "subscriptions",
        "purchases",
        "transactions",
        "tips",
        "settings",
        "reports",
        "notifications",
        "conversations",
        "messages",
    )

    def snapshot(self) -> dict[str, Any]:
        return {name: copy.deepcopy(getattr(self, name)) for name in self._DATA_FIELDS}

    def restore(self, state: dict[str, Any]) -> None:
        for name, value in state.items():
            setattr(self, name, value)


class _MemoryRepo:
    def __init__(self, store: InMemoryStore):
        self.store = store


class InMemoryProfileRepo(_MemoryRepo):
    def get(self, profile_id: UUID) -> Profile | None:
        return self.store.profiles.get(profile_id)

    def get_by_username(self, username: str) -> Profile | None:
        for p in self.store.profiles.values():
            if p.username == username:
                return p
        return None

    def save(self, profile: Profile) -> Profile:
        if profile.username is not None:
            clash = self.get_by_username(profile.username)
            if clash is not None and clash.id != profile.id:
                raise AlreadyExists(f"Username '{profile.username}' is taken")
        self.store.profiles[profile.id] = profile
        return profile

    def search_creators(self, term: str, limit: int = 20) -> list[Profile]:
        needle = term.lower()
        found = [
            p
            for p in self.store.profiles.values()
            if "creator" in self.store.roles.get(p.id, set())
            and (
                needle in (p.username or "").lower()
                or needle in (p.display_name or "").lower()
            )
        ]
        found.sort(key=lambda p: ((p.display_name or ""), (p.username or "")))
        return found[:limit]


class InMemoryRoleRepo(_MemoryRepo):
    def roles_of(self, user_id: UUID) -> set[RoleType]:
        return set(self.store.roles.get(user_id, set()))

    def grant(self, assignment: RoleAssignment) -> None:
        held = self.store.roles.setdefault(assignment.user_id, set())
        if assignment.role in held:
            raise AlreadyExists(f"Role '{assignment.role}' already granted")
        held.add(assignment.role)


class InMemoryPostRepo(_MemoryRepo):
    def save(self, post: Post) -> Post:
        self.store.posts[post.id] = post
        return post

    def get(self, post_id: UUID) -> Post | None:
        return self.store.posts.get(post_id)

    def delete(self, post_id: UUID) -> None:
        self.store.posts.pop(post_id, None)

    def list_posts(
        self, creator_id: UUID | None = None, limit: int = 50, offset: int = 0
    ) -> list[Post]:
        posts = [
            p
            for p in self.store.posts.values()
            if creator_id is None or p.creator_id == creator_id
        ]
        return _newest_first(posts)[offset : offset + limit]


class InMemorySubscriptionRepo(_MemoryRepo):
    def add(self, subscription: Subscription) -> Subscription:
        if subscription.status == "active" and self.find_active(
            subscription.fan_id, subscription.creator_id
        ):
            raise AlreadyExists("An active subscription already exists")
        self.store.subscriptions.append(subscription)
        return subscription

    def set_status(
        self, subscription_id: UUID, status: SubscriptionStatus, updated_at: datetime
    ) -> None:
        for i, s in enumerate(self.store.subscriptions):
            if s.id == subscription_id:
                self.store.subscriptions[i] = s.model_copy(
                    update={"status": status, "updated_at": updated_at}
                )
                return

    def find_active(self, fan_id: UUID, creator_id: UUID) -> Subscription | None:
        for s in self.store.subscriptions:
            if s.fan_id == fan_id and s.creator_id == creator_id and s.status == "active":
                return s
        return None

    def list_history(self, fan_id: UUID, creator_id: UUID) -> list[Subscription]:
        return [
            s
            for s in self.store.subscriptions
            if s.fan_id == fan_id and s.creator_id == creator_id
        ]

    def list_active_for_fan(self, fan_id: UUID) -> list[Subscription]:
        return _newest_first(
            [s for s in self.store.subscriptions if s.fan_id == fan_id and s.status == "active"]
        )

    def list_active_for_creator(self, creator_id: UUID) -> list[Subscription]:
        return _newest_first(
            [
                s
                for s in self.store.subscriptions
                if s.creator_id == creator_id and s.status == "active"
            ]
        )


class InMemoryPurchaseRepo(_MemoryRepo):
    def add(self, purchase: PPVPurchase) -> PPVPurchase:
        key = (purchase.fan_id, purchase.post_id)
        if key in self.store.purchases:
            raise AlreadyExists("Post already purchased")
        self.store.purchases[key] = purchase
        return purchase

    def get(self, fan_id: UUID, post_id: UUID) -> PPVPurchase | None:
        return self.store.purchases.get((fan_id, post_id))

    def list_for_fan(self, fan_id: UUID) -> list[PPVPurchase]:
        return _newest_first([p for p in self.store.purchases.values() if p.fan_id == fan_id])

    def count_for_post(self, post_id: UUID) -> int:
        return sum(1 for p in self.store.purchases.values() if p.post_id == post_id)


class InMemoryTransactionRepo(_MemoryRepo):
    def append(self, transaction: Transaction) -> Transaction:
        self.store.transactions.append(transaction)
        return transaction

    def list_for_creator(self, creator_id: UUID) -> list[Transaction]:
        return _newest_first(
            [t for t in self.store.transactions if t.creator_id == creator_id]
        )


class InMemoryTipRepo(_MemoryRepo):
    def add(self, tip: Tip) -> Tip:
        self.store.tips.append(tip)
        return tip

    def list_for_creator(self, creator_id: UUID) -> list[Tip]:
        return _newest_first([t for t in self.store.tips if t.creator_id == creator_id])


class InMemoryPlatformSettingsRepo(_MemoryRepo):
    def get(self) -> PlatformSettings | None:
        return self.store.settings

    def save(self, settings: PlatformSettings) -> PlatformSettings:
        self.store.settings = settings
        return settings


class InMemoryReportRepo(_MemoryRepo):
    def add(self, report: Report) -> Report:
        self.store.reports[report.id] = report
        return report

    def get(self, report_id: UUID) -> Report | None:
        return self.store.reports.get(report_id)

    def save(self, report: Report) -> Report:
        self.store.reports[report.id] = report
        return report

    def list_reports(self, status: ReportStatus | None = None) -> list[Report]:
        return _newest_first(
            [r for r in self.store.reports.values() if status is None or r.status == status]
        )


class InMemoryNotificationRepo(_MemoryRepo):
    def add(self, notification: Notification) -> Notification:
        self.store.notifications.append(notification)
        return notification

    def list_for_user(self, user_id: UUID, limit: int = 50) -> list[Notification]:
        return _newest_first([n for n in self.store.notifications if n.user_id == user_id])[
            :limit
        ]

    def count_unread(self, user_id: UUID) -> int:
        return sum(1 for n in self.store.notifications if n.user_id == user_id and not n.is_read)

    def mark_read(self, notification_id: UUID, user_id: UUID) -> bool:
        for n in self.store.notifications:
            if n.id == notification_id and n.user_id == user_id:
                n.is_read = True
                return True
        return False

    def mark_all_read(self, user_id: UUID) -> int:
        count = 0
        for n in self.store.notifications:
            if n.user_id == user_id and not n.is_read:
                n.is_read = True
                count += 1
        return count


class InMemoryConversationRepo(_MemoryRepo):
    def add(self, conversation: Conversation) -> Conversation:
        self.store.conversations[conversation.id] = conversation
        return conversation

    def get(self, conversation_id: UUID) -> Conversation | None:
        return self.store.conversations.get(conversation_id)

    def find_between(self, user_a: UUID, user_b: UUID) -> Conversation | None:
        for c in self.store.conversations.values():
            if c.involves(user_a) and c.involves(user_b):
                return c
        return None

    def touch(self, conversation_id: UUID, at: datetime) -> None:
        conversation = self.store.conversations.get(conversation_id)
        if conversation is not None:
            conversation.last_message_at = at

    def list_for_user(self, user_id: UUID) -> list[Conversation]:
        found = [c for c in self.store.conversations.values() if c.involves(user_id)]
        return sorted(found, key=lambda c: c.last_message_at, reverse=True)


class InMemoryMessageRepo(_MemoryRepo):
    def add(self, message: Message) -> Message:
        self.store.messages.append(message)
        return message

    def list_for_conversation(self, conversation_id: UUID) -> list[Message]:
        found = [m for m in self.store.messages if m.conversation_id == conversation_id]
        return sorted(found, key=lambda m: m.created_at)

    def mark_read(self, conversation_id: UUID, reader_id: UUID) -> int:
        count = 0
        for m in self.store.messages:
            if m.conversation_id == conversation_id and m.sender_id != reader_id and not m.is_read:
                m.is_read = True
                count += 1
        return count


class InMemoryUnitOfWork:
    def __init__(self, store: InMemoryStore, write: bool = False):
        self.store = store
        self.write = write
        self._snapshot: dict[str, Any] | None = None

        self.profiles = InMemoryProfileRepo(store)
        self.roles = InMemoryRoleRepo(store)
        self.posts = InMemoryPostRepo(store)
        self.subscriptions = InMemorySubscriptionRepo(store)
        self.purchases = InMemoryPurchaseRepo(store)
        self.transactions = InMemoryTransactionRepo(store)
        self.tips = InMemoryTipRepo(store)
        self.settings = InMemoryPlatformSettingsRepo(store)
        self.reports = InMemoryReportRepo(store)
        self.notifications = InMemoryNotificationRepo(store)
        self.conversations = InMemoryConversationRepo(store)
        self.messages = InMemoryMessageRepo(store)

    def __enter__(self) -> InMemoryUnitOfWork:
        self.store.lock.acquire()
        self._snapshot = self.store.snapshot()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            if exc_type is not None and self._snapshot is not None:
                logger.debug("Rolling back in-memory unit of work: %s", exc_type.__name__)
                self.store.restore(self._snapshot)
        finally:
            self._snapshot = None
            self.store.lock.release()


class InMemoryUnitOfWorkFactory:
    def __init__(self, store: InMemoryStore | None = None):
        self.store = store or InMemoryStore()

    def __call__(self, *, write: bool = False) -> InMemoryUnitOfWork:
        return InMemoryUnitOfWork(self.store, write=write)
