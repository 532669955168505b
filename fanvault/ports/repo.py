from datetime import datetime
from typing import Protocol
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


class ProfileRepoPort(Protocol):
    def get(self, profile_id: UUID) -> Profile | None:
        ...

    def get_by_username(self, username: str) -> Profile | None:
        ...

    def save(self, profile: Profile) -> Profile:
        ...

    def search_creators(self, term: str, limit: int = 20) -> list[Profile]:
        """Creators whose username or display name contains `term`."""
        ...


class RoleRepoPort(Protocol):
    def roles_of(self, user_id: UUID) -> set[RoleType]:
        ...

    def grant(self, assignment: RoleAssignment) -> None:
        """Raises AlreadyExists if the user already holds the role."""
        ...


class PostRepoPort(Protocol):
    def save(self, post: Post) -> Post:
        ...

    def get(self, post_id: UUID) -> Post | None:
        ...

    def delete(self, post_id: UUID) -> None:
        ...

    def list_posts(
        self, creator_id: UUID | None = None, limit: int = 50, offset: int = 0
    ) -> list[Post]:
        """Newest first."""
        ...


class SubscriptionRepoPort(Protocol):
    def add(self, subscription: Subscription) -> Subscription:
        """Raises AlreadyExists if the pair already has an active subscription."""
        ...

    def set_status(
        self, subscription_id: UUID, status: SubscriptionStatus, updated_at: datetime
    ) -> None:
        ...

    def find_active(self, fan_id: UUID, creator_id: UUID) -> Subscription | None:
        """The status=active row for the pair, whether or not its period has elapsed."""
        ...

    def list_history(self, fan_id: UUID, creator_id: UUID) -> list[Subscription]:
        ...

    def list_active_for_fan(self, fan_id: UUID) -> list[Subscription]:
        ...

    def list_active_for_creator(self, creator_id: UUID) -> list[Subscription]:
        ...


class PurchaseRepoPort(Protocol):
    def add(self, purchase: PPVPurchase) -> PPVPurchase:
        """Raises AlreadyExists if the fan already bought the post."""
        ...

    def get(self, fan_id: UUID, post_id: UUID) -> PPVPurchase | None:
        ...

    def list_for_fan(self, fan_id: UUID) -> list[PPVPurchase]:
        ...

    def count_for_post(self, post_id: UUID) -> int:
        ...


class TransactionRepoPort(Protocol):
    """Append-only. There is deliberately no update or delete."""

    def append(self, transaction: Transaction) -> Transaction:
        ...

    def list_for_creator(self, creator_id: UUID) -> list[Transaction]:
        """Newest first."""
        ...


class TipRepoPort(Protocol):
    def add(self, tip: Tip) -> Tip:
        ...

    def list_for_creator(self, creator_id: UUID) -> list[Tip]:
        ...


class PlatformSettingsRepoPort(Protocol):
    """Single-row platform settings."""

    def get(self) -> PlatformSettings | None:
        ...

    def save(self, settings: PlatformSettings) -> PlatformSettings:
        ...


class ReportRepoPort(Protocol):
    def add(self, report: Report) -> Report:
        ...

    def get(self, report_id: UUID) -> Report | None:
        ...

    def save(self, report: Report) -> Report:
        ...

    def list_reports(self, status: ReportStatus | None = None) -> list[Report]:
        ...


class NotificationRepoPort(Protocol):
    def add(self, notification: Notification) -> Notification:
        ...

    def list_for_user(self, user_id: UUID, limit: int = 50) -> list[Notification]:
        """Newest first."""
        ...

    def count_unread(self, user_id: UUID) -> int:
        ...

    def mark_read(self, notification_id: UUID, user_id: UUID) -> bool:
        ...

    def mark_all_read(self, user_id: UUID) -> int:
        ...


class ConversationRepoPort(Protocol):
    def add(self, conversation: Conversation) -> Conversation:
        ...

    def get(self, conversation_id: UUID) -> Conversation | None:
        ...

    def find_between(self, user_a: UUID, user_b: UUID) -> Conversation | None:
        ...

    def touch(self, conversation_id: UUID, at: datetime) -> None:
        ...

    def list_for_user(self, user_id: UUID) -> list[Conversation]:
        """Most recently active first."""
        ...


class MessageRepoPort(Protocol):
    def add(self, message: Message) -> Message:
        ...

    def list_for_conversation(self, conversation_id: UUID) -> list[Message]:
        """Oldest first."""
        ...

    def mark_read(self, conversation_id: UUID, reader_id: UUID) -> int:
        """Mark messages not sent by `reader_id` as read. Returns count updated."""
        ...
