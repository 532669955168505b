from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from fanvault.adapters.clock import SystemClock
from fanvault.adapters.event_bus import InMemoryEventBus
from fanvault.adapters.fs.blobstore import LocalBlobStore
from fanvault.adapters.memory import InMemoryUnitOfWorkFactory
from fanvault.adapters.payment_stub import PaymentStubAdapter
from fanvault.adapters.sqlite.migrator import SQLiteMigrator
from fanvault.adapters.sqlite.uow import SQLiteUnitOfWorkFactory
from fanvault.components.earnings import EarningsService
from fanvault.components.messaging import MessagingService
from fanvault.components.notifications import NotificationFanout, NotificationService
from fanvault.components.platform import PlatformService
from fanvault.components.posts import PostService
from fanvault.components.profiles import ProfileService
from fanvault.components.purchases import PurchaseManager
from fanvault.components.roles import RoleManager
from fanvault.components.subscriptions import (
    BillingPeriodPort,
    FixedTermBilling,
    SubscriptionManager,
)
from fanvault.components.tips import TipManager
from fanvault.domain.policy import PolicyEngine
from fanvault.ports.blobstore import BlobStorePort
from fanvault.ports.clock import ClockPort
from fanvault.ports.events import EventPublisherPort
from fanvault.ports.payment import PaymentPort
from fanvault.ports.uow import UnitOfWorkFactory
from fanvault.rules.models import Rules


@dataclass
class ServiceContext:
    """Every manager wired to one set of adapters."""

    rules: Rules
    uow_factory: UnitOfWorkFactory
    clock: ClockPort
    payments: PaymentPort
    events: EventPublisherPort
    blobs: BlobStorePort
    policy: PolicyEngine
    roles: RoleManager
    profiles: ProfileService
    posts: PostService
    subscriptions: SubscriptionManager
    purchases: PurchaseManager
    tips: TipManager
    earnings: EarningsService
    platform: PlatformService
    messaging: MessagingService
    notifications: NotificationService
    detach_fanout: list[Callable[[], None]] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        db_path: str,
        blob_path: str,
        rules: Rules,
        *,
        clock: ClockPort | None = None,
        payments: PaymentPort | None = None,
        events: EventPublisherPort | None = None,
        billing: BillingPeriodPort | None = None,
        blob_base_url: str = "/media",
        migrate: bool = True,
    ) -> ServiceContext:
        """SQLite-backed context. Pending migrations are applied unless migrate=False."""
        if migrate:
            SQLiteMigrator(db_path).run_migrations()
        return cls.assemble(
            SQLiteUnitOfWorkFactory(db_path),
            LocalBlobStore(blob_path, base_url=blob_base_url),
            rules,
            clock=clock,
            payments=payments,
            events=events,
            billing=billing,
        )

    @classmethod
    def create_in_memory(
        cls,
        blob_path: str,
        rules: Rules,
        *,
        clock: ClockPort | None = None,
        payments: PaymentPort | None = None,
        events: EventPublisherPort | None = None,
        billing: BillingPeriodPort | None = None,
    ) -> ServiceContext:
        return cls.assemble(
            InMemoryUnitOfWorkFactory(),
            LocalBlobStore(blob_path),
            rules,
            clock=clock,
            payments=payments,
            events=events,
            billing=billing,
        )

    @classmethod
    def assemble(
        cls,
        uow_factory: UnitOfWorkFactory,
        blobs: BlobStorePort,
        rules: Rules,
        *,
        clock: ClockPort | None = None,
        payments: PaymentPort | None = None,
        events: EventPublisherPort | None = None,
        billing: BillingPeriodPort | None = None,
    ) -> ServiceContext:
        clock = clock or SystemClock()
        payments = payments or PaymentStubAdapter()
        events = events or InMemoryEventBus()
        billing = billing or FixedTermBilling(rules.billing.period_days)
        policy = PolicyEngine(rules.rbac)

        fanout = NotificationFanout(uow_factory, clock)
        detach = fanout.attach(events)

        return cls(
            rules=rules,
            uow_factory=uow_factory,
            clock=clock,
            payments=payments,
            events=events,
            blobs=blobs,
            policy=policy,
            roles=RoleManager(uow_factory, clock),
            profiles=ProfileService(uow_factory, clock, blobs, rules.platform),
            posts=PostService(uow_factory, clock, blobs, events, policy),
            subscriptions=SubscriptionManager(
                uow_factory, clock, payments, events, rules.platform, billing
            ),
            purchases=PurchaseManager(uow_factory, clock, payments, events, rules.platform),
            tips=TipManager(uow_factory, clock, payments, events, rules.platform, rules.tips),
            earnings=EarningsService(uow_factory, clock),
            platform=PlatformService(uow_factory, clock, rules.platform, policy),
            messaging=MessagingService(uow_factory, clock, events),
            notifications=NotificationService(uow_factory),
            detach_fanout=detach,
        )
