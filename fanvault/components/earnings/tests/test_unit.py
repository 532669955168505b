"""
Earnings component unit tests.

The pure summary is tested directly; the service is exercised against the
in-memory store.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from fanvault.adapters.clock import FrozenClock
from fanvault.adapters.memory import InMemoryUnitOfWorkFactory
from fanvault.components.earnings import EarningsService, month_start, summarize
from fanvault.components.ledger import compute_split
from fanvault.domain.entities import Identity, Subscription, Transaction
from fanvault.domain.errors import NotAuthenticated, PermissionDenied

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


def _tx(creator_id: UUID, type: str, gross: str, at: datetime, pct: str = "20") -> Transaction:
    split = compute_split(Decimal(gross), Decimal(pct))
    return Transaction(
        creator_id=creator_id,
        fan_id=uuid4(),
        type=type,
        gross_amount=split.gross,
        platform_fee=split.platform_fee,
        net_amount=split.net,
        fee_percentage=split.fee_percentage,
        created_at=at,
    )


def _sub(creator_id: UUID, start: datetime, days: int = 30, status: str = "active") -> Subscription:
    return Subscription(
        fan_id=uuid4(),
        creator_id=creator_id,
        status=status,
        current_period_start=start,
        current_period_end=start + timedelta(days=days),
    )


class TestMonthStart:
    def test_truncates_to_first_of_month(self) -> None:
        assert month_start(NOW) == datetime(2026, 3, 1, tzinfo=UTC)

    def test_normalises_to_utc(self) -> None:
        local = datetime(2026, 4, 1, 1, 0, tzinfo=timezone(timedelta(hours=5)))
        assert month_start(local) == datetime(2026, 3, 1, tzinfo=UTC)

    def test_naive_is_taken_as_utc(self) -> None:
        assert month_start(datetime(2026, 3, 31, 23, 30)) == datetime(2026, 3, 1, tzinfo=UTC)


class TestSummarize:
    def test_empty_ledger(self) -> None:
        summary = summarize([], [], NOW)

        assert summary.total == Decimal("0")
        assert summary.monthly == Decimal("0")
        assert summary.subscriber_count == 0
        assert set(summary.by_type) == {"subscription", "tip", "ppv"}
        assert all(v == 0 for v in summary.by_type.values())

    def test_sums_net_amounts(self) -> None:
        creator = uuid4()
        txs = [
            _tx(creator, "subscription", "9.99", NOW),
            _tx(creator, "ppv", "5.00", NOW),
            _tx(creator, "tip", "10", NOW - timedelta(days=40)),
        ]

        summary = summarize(txs, [], NOW)

        assert summary.total == Decimal("19.992")
        assert summary.by_type["subscription"] == Decimal("7.992")
        assert summary.by_type["ppv"] == Decimal("4")
        assert summary.by_type["tip"] == Decimal("8")
        assert summary.monthly == Decimal("11.992")

    def test_month_boundary_is_inclusive(self) -> None:
        creator = uuid4()
        txs = [_tx(creator, "tip", "10", datetime(2026, 3, 1, tzinfo=UTC))]
        assert summarize(txs, [], NOW).monthly == Decimal("8")

    def test_historic_fee_percentage_is_kept(self) -> None:
        creator = uuid4()
        txs = [
            _tx(creator, "tip", "10", NOW, pct="20"),
            _tx(creator, "tip", "10", NOW, pct="10"),
        ]
        assert summarize(txs, [], NOW).total == Decimal("17")

    def test_counts_only_entitling_subscriptions(self) -> None:
        creator = uuid4()
        subs = [
            _sub(creator, NOW - timedelta(days=1)),
            _sub(creator, NOW - timedelta(days=60)),
            _sub(creator, NOW - timedelta(days=1), status="canceled"),
        ]
        assert summarize([], subs, NOW).subscriber_count == 1


class TestEarningsService:
    @pytest.fixture
    def uow_factory(self) -> InMemoryUnitOfWorkFactory:
        return InMemoryUnitOfWorkFactory()

    @pytest.fixture
    def service(self, uow_factory) -> EarningsService:
        return EarningsService(uow_factory, FrozenClock(NOW))

    def test_summary_for_self(self, service, uow_factory) -> None:
        creator = Identity(user_id=uuid4(), roles=frozenset({"creator", "fan"}))
        with uow_factory(write=True) as uow:
            uow.transactions.append(_tx(creator.user_id, "ppv", "5.00", NOW))
            uow.subscriptions.add(_sub(creator.user_id, NOW - timedelta(days=2)))

        summary = service.summarize(creator)

        assert summary.total == Decimal("4")
        assert summary.subscriber_count == 1
        assert len(service.list_transactions(creator)) == 1

    def test_admin_can_read_any_creator(self, service) -> None:
        admin = Identity(user_id=uuid4(), roles=frozenset({"admin"}))
        assert service.summarize(admin, uuid4()).total == Decimal("0")

    def test_other_users_denied(self, service) -> None:
        fan = Identity(user_id=uuid4(), roles=frozenset({"fan"}))
        with pytest.raises(PermissionDenied):
            service.summarize(fan, uuid4())
        with pytest.raises(PermissionDenied):
            service.list_transactions(fan, uuid4())

    def test_requires_identity(self, service) -> None:
        with pytest.raises(NotAuthenticated):
            service.summarize(None)

    def test_naive_as_of_is_read_as_utc(self, service, uow_factory) -> None:
        creator = Identity(user_id=uuid4(), roles=frozenset({"creator", "fan"}))
        with uow_factory(write=True) as uow:
            uow.subscriptions.add(_sub(creator.user_id, NOW - timedelta(days=2)))
            uow.transactions.append(_tx(creator.user_id, "tip", "10", NOW))

        summary = service.summarize(creator, as_of=datetime(2026, 3, 20))

        assert summary.subscriber_count == 1
        assert summary.monthly == Decimal("8")
        assert service.summarize(creator, as_of=datetime(2026, 4, 20)).subscriber_count == 0
