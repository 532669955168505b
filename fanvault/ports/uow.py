"""
Unit of work port.

A unit of work groups repository calls into one atomic transaction against
the record store. Leaving the `with` block normally commits; an exception
rolls everything back. Units opened with `write=True` hold the store's write
lock for their whole duration, which is what makes check-then-insert safe
under concurrent identical requests.
"""

from __future__ import annotations

from types import TracebackType
from typing import Protocol

from .repo import (
    ConversationRepoPort,
    MessageRepoPort,
    NotificationRepoPort,
    PlatformSettingsRepoPort,
    PostRepoPort,
    ProfileRepoPort,
    PurchaseRepoPort,
    ReportRepoPort,
    RoleRepoPort,
    SubscriptionRepoPort,
    TipRepoPort,
    TransactionRepoPort,
)


class UnitOfWorkPort(Protocol):
    profiles: ProfileRepoPort
    roles: RoleRepoPort
    posts: PostRepoPort
    subscriptions: SubscriptionRepoPort
    purchases: PurchaseRepoPort
    transactions: TransactionRepoPort
    tips: TipRepoPort
    settings: PlatformSettingsRepoPort
    reports: ReportRepoPort
    notifications: NotificationRepoPort
    conversations: ConversationRepoPort
    messages: MessageRepoPort

    def __enter__(self) -> UnitOfWorkPort:
        ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        ...


class UnitOfWorkFactory(Protocol):
    def __call__(self, *, write: bool = False) -> UnitOfWorkPort:
        ...
