"""
Subscriptions component unit tests.

Runs the manager against the in-memory unit of work with a frozen clock and
the payment stub.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from fanvault.adapters.clock import FrozenClock
from fanvault.adapters.event_bus import RecordingEventBus
from fanvault.adapters.memory import InMemoryUnitOfWorkFactory
from fanvault.adapters.payment_stub import PaymentStubAdapter
from fanvault.components.subscriptions import (
    DEFAULT_PERIOD_DAYS,
    FixedTermBilling,
    SubscriptionManager,
)
from fanvault.domain.entities import Identity, Profile, RoleAssignment, Subscription
from fanvault.domain.errors import (
    InvalidState,
    NotAuthenticated,
    NotFound,
    PaymentFailed,
    PermissionDenied,
)
from fanvault.ports.events import ENTITLEMENT_CHANGED, TRANSACTION_RECORDED
from fanvault.rules.models import PlatformRules

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


# --- Fixtures ---


@pytest.fixture
def uow_factory() -> InMemoryUnitOfWorkFactory:
    return InMemoryUnitOfWorkFactory()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest.fixture
def payments() -> PaymentStubAdapter:
    return PaymentStubAdapter()


@pytest.fixture
def bus() -> RecordingEventBus:
    return RecordingEventBus()


@pytest.fixture
def manager(uow_factory, clock, payments, bus) -> SubscriptionManager:
    return SubscriptionManager(
        uow_factory,
        clock,
        payments,
        bus,
        PlatformRules(platform_fee_percentage=Decimal("20")),
        FixedTermBilling(30),
    )


def _profile(uow_factory, *roles: str, price: str = "0") -> Identity:
    profile = Profile(subscription_price=Decimal(price))
    with uow_factory(write=True) as uow:
        uow.profiles.save(profile)
        for role in roles:
            uow.roles.grant(RoleAssignment(user_id=profile.id, role=role))
    return Identity(user_id=profile.id, roles=frozenset(roles))


@pytest.fixture
def creator(uow_factory) -> Identity:
    return _profile(uow_factory, "creator", "fan", price="9.99")


@pytest.fixture
def fan(uow_factory) -> Identity:
    return _profile(uow_factory, "fan")


# --- Tests ---


class TestFixedTermBilling:
    def test_period_spans_configured_days(self) -> None:
        start, end = FixedTermBilling(30).period(NOW)
        assert start == NOW
        assert end == NOW + timedelta(days=30)

    def test_default_period(self) -> None:
        assert FixedTermBilling().days == DEFAULT_PERIOD_DAYS

    def test_rejects_non_positive_days(self) -> None:
        with pytest.raises(ValueError):
            FixedTermBilling(0)


class TestSubscribe:
    def test_paid_subscription_charges_and_records(
        self, manager, creator, fan, payments, uow_factory
    ) -> None:
        result = manager.subscribe(fan, creator.user_id)

        assert result.created is True
        sub = result.subscription
        assert sub.status == "active"
        assert sub.current_period_start == NOW
        assert sub.current_period_end == NOW + timedelta(days=30)
        assert sub.billing_reference is not None
        assert len(payments.charges_for(fan.user_id)) == 1

        tx = result.transaction
        assert tx is not None
        assert tx.type == "subscription"
        assert tx.gross_amount == Decimal("9.99")
        assert tx.platform_fee == Decimal("1.998")
        assert tx.net_amount == Decimal("7.992")
        assert tx.fee_percentage == Decimal("20")

        with uow_factory() as uow:
            assert uow.transactions.list_for_creator(creator.user_id) == [tx]

    def test_publishes_entitlement_then_transaction(self, manager, creator, fan, bus) -> None:
        manager.subscribe(fan, creator.user_id)

        assert bus.topics() == [ENTITLEMENT_CHANGED, TRANSACTION_RECORDED]
        payload = bus.events[0].payload
        assert payload["kind"] == "subscription"
        assert payload["status"] == "active"
        assert bus.events[0].stream_key == fan.user_id

    def test_second_subscribe_is_idempotent(self, manager, creator, fan, payments) -> None:
        first = manager.subscribe(fan, creator.user_id)
        second = manager.subscribe(fan, creator.user_id)

        assert second.created is False
        assert second.subscription.id == first.subscription.id
        assert second.transaction is None
        assert len(payments.charges_for(fan.user_id)) == 1

    def test_free_creator_writes_no_transaction(
        self, manager, fan, payments, bus, uow_factory
    ) -> None:
        free = _profile(uow_factory, "creator", "fan", price="0")

        result = manager.subscribe(fan, free.user_id)

        assert result.created is True
        assert result.transaction is None
        assert payments.confirmed == []
        assert bus.topics() == [ENTITLEMENT_CHANGED]

    def test_payment_failure_writes_nothing(
        self, manager, creator, fan, payments, bus, uow_factory
    ) -> None:
        payments.decline_payer(fan.user_id)

        with pytest.raises(PaymentFailed):
            manager.subscribe(fan, creator.user_id)

        with uow_factory() as uow:
            assert uow.subscriptions.find_active(fan.user_id, creator.user_id) is None
            assert uow.transactions.list_for_creator(creator.user_id) == []
        assert bus.events == []

    def test_cannot_subscribe_to_self(self, manager, creator) -> None:
        with pytest.raises(InvalidState):
            manager.subscribe(creator, creator.user_id)

    def test_unknown_creator(self, manager, fan) -> None:
        with pytest.raises(NotFound):
            manager.subscribe(fan, uuid4())

    def test_target_must_be_creator(self, manager, fan, uow_factory) -> None:
        other_fan = _profile(uow_factory, "fan")
        with pytest.raises(InvalidState):
            manager.subscribe(fan, other_fan.user_id)

    def test_requires_identity(self, manager, creator) -> None:
        with pytest.raises(NotAuthenticated):
            manager.subscribe(None, creator.user_id)

    def test_stale_active_row_is_expired_and_replaced(
        self, manager, creator, fan, clock, payments, uow_factory
    ) -> None:
        first = manager.subscribe(fan, creator.user_id)
        clock.advance(days=31)

        renewed = manager.subscribe(fan, creator.user_id)

        assert renewed.created is True
        assert renewed.subscription.id != first.subscription.id
        assert len(payments.charges_for(fan.user_id)) == 2
        with uow_factory() as uow:
            history = uow.subscriptions.list_history(fan.user_id, creator.user_id)
        statuses = sorted(s.status for s in history)
        assert statuses == ["active", "expired"]


class TestUnsubscribe:
    def test_cancel_keeps_history(self, manager, creator, fan, bus, uow_factory) -> None:
        manager.subscribe(fan, creator.user_id)

        canceled = manager.unsubscribe(fan, creator.user_id)

        assert canceled is not None
        assert canceled.status == "canceled"
        assert manager.is_active(fan.user_id, creator.user_id) is False
        with uow_factory() as uow:
            history = uow.subscriptions.list_history(fan.user_id, creator.user_id)
        assert [s.status for s in history] == ["canceled"]
        assert bus.events[-1].payload["status"] == "canceled"

    def test_nothing_to_cancel(self, manager, creator, fan) -> None:
        assert manager.unsubscribe(fan, creator.user_id) is None

    def test_resubscribe_after_cancel(self, manager, creator, fan) -> None:
        manager.subscribe(fan, creator.user_id)
        manager.unsubscribe(fan, creator.user_id)

        result = manager.subscribe(fan, creator.user_id)

        assert result.created is True
        assert manager.is_active(fan.user_id, creator.user_id)


class TestIsActive:
    def test_period_boundaries(self, manager, creator, fan) -> None:
        manager.subscribe(fan, creator.user_id)
        end = NOW + timedelta(days=30)

        assert manager.is_active(fan.user_id, creator.user_id, NOW)
        assert manager.is_active(fan.user_id, creator.user_id, end - timedelta(seconds=1))
        assert not manager.is_active(fan.user_id, creator.user_id, end)
        assert not manager.is_active(fan.user_id, creator.user_id, NOW - timedelta(seconds=1))

    def test_past_due_row_does_not_entitle(self, manager, creator, fan, uow_factory) -> None:
        with uow_factory(write=True) as uow:
            uow.subscriptions.add(
                Subscription(
                    fan_id=fan.user_id,
                    creator_id=creator.user_id,
                    status="active",
                    current_period_start=NOW - timedelta(days=40),
                    current_period_end=NOW - timedelta(days=10),
                )
            )
        assert manager.is_active(fan.user_id, creator.user_id) is False


class TestListing:
    def test_list_subscriptions_and_subscribers(self, manager, creator, fan) -> None:
        manager.subscribe(fan, creator.user_id)

        mine = manager.list_subscriptions(fan)
        subscribers = manager.list_subscribers(creator)

        assert [s.creator_id for s in mine] == [creator.user_id]
        assert [s.fan_id for s in subscribers] == [fan.user_id]

    def test_subscribers_of_another_creator_denied(self, manager, creator, fan) -> None:
        with pytest.raises(PermissionDenied):
            manager.list_subscribers(fan, creator.user_id)
