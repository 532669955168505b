"""
Ledger component unit tests.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from fanvault.components.ledger import compute_split, list_for_creator, record
from fanvault.domain.entities import PlatformSettings, Transaction
from fanvault.domain.errors import InvalidState

NOW = datetime(2026, 1, 10, 9, 30, tzinfo=UTC)


class MockTransactionRepo:
    """Append-only list, newest first on read."""

    def __init__(self) -> None:
        self.rows: list[Transaction] = []

    def append(self, transaction: Transaction) -> Transaction:
        self.rows.append(transaction)
        return transaction

    def list_for_creator(self, creator_id: object) -> list[Transaction]:
        return [t for t in reversed(self.rows) if t.creator_id == creator_id]


@pytest.fixture
def settings() -> PlatformSettings:
    return PlatformSettings(platform_fee_percentage=Decimal("20"))


class TestComputeSplit:
    def test_twenty_percent_of_subscription_price(self) -> None:
        split = compute_split(Decimal("9.99"), Decimal("20"))
        assert split.platform_fee == Decimal("1.998")
        assert split.net == Decimal("7.992")
        assert split.platform_fee + split.net == split.gross

    @pytest.mark.parametrize(
        "gross,pct",
        [
            ("5.00", "20"),
            ("0.01", "33.3"),
            ("123.45", "0"),
            ("77.77", "100"),
            ("1000000.01", "12.5"),
        ],
    )
    def test_net_plus_fee_equals_gross(self, gross: str, pct: str) -> None:
        split = compute_split(Decimal(gross), Decimal(pct))
        assert split.net + split.platform_fee == Decimal(gross)
        assert split.net >= 0
        assert split.platform_fee >= 0

    @pytest.mark.parametrize("gross", ["0", "-1.00"])
    def test_non_positive_gross_rejected(self, gross: str) -> None:
        with pytest.raises(InvalidState):
            compute_split(Decimal(gross), Decimal("20"))

    def test_percentage_out_of_range_rejected(self) -> None:
        with pytest.raises(InvalidState):
            compute_split(Decimal("10"), Decimal("101"))


class TestRecord:
    def test_captures_fee_percentage(self, settings: PlatformSettings) -> None:
        repo = MockTransactionRepo()
        creator, fan = uuid4(), uuid4()

        tx = record(
            creator, fan, "ppv", Decimal("5.00"), settings,
            repo=repo, now=NOW, payment_reference="mock_1",
        )

        assert tx.fee_percentage == Decimal("20")
        assert tx.platform_fee == Decimal("1.0000")
        assert tx.net_amount == Decimal("4.0000")
        assert tx.created_at == NOW
        assert tx.payment_reference == "mock_1"
        assert repo.rows == [tx]

    def test_entries_are_frozen(self, settings: PlatformSettings) -> None:
        tx = record(
            uuid4(), None, "tip", Decimal("2.50"), settings,
            repo=MockTransactionRepo(), now=NOW,
        )
        with pytest.raises(ValidationError):
            tx.gross_amount = Decimal("100")  # type: ignore[misc]

    def test_later_fee_change_does_not_touch_old_entries(self) -> None:
        repo = MockTransactionRepo()
        creator = uuid4()
        first = record(
            creator, None, "tip", Decimal("10"),
            PlatformSettings(platform_fee_percentage=Decimal("20")), repo=repo, now=NOW,
        )
        record(
            creator, None, "tip", Decimal("10"),
            PlatformSettings(platform_fee_percentage=Decimal("30")), repo=repo, now=NOW,
        )

        rows = list_for_creator(creator, repo=repo)
        assert [r.fee_percentage for r in rows] == [Decimal("30"), Decimal("20")]
        assert rows[-1] == first
        assert first.net_amount == Decimal("8.0")
