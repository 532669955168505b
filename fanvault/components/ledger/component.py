"""
Ledger component.

Append-only record of money movements. Each entry captures the fee
percentage in force when it was written; later settings changes never touch
existing entries. No rounding is applied: 20% of 9.99 is 1.998.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from fanvault.domain.entities import PlatformSettings, Transaction, TransactionType
from fanvault.domain.errors import InvalidState
from fanvault.ports.repo import TransactionRepoPort

from .models import FeeSplit

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def compute_split(gross: Decimal, fee_percentage: Decimal) -> FeeSplit:
    """
    Split `gross` using a percentage fee (20 means 20%).

    Raises:
        InvalidState: gross is not positive or the percentage is outside 0-100
    """
    if gross <= 0:
        raise InvalidState("Transaction amount must be positive")
    if not Decimal("0") <= fee_percentage <= HUNDRED:
        raise InvalidState("Fee percentage must be between 0 and 100")

    platform_fee = gross * fee_percentage / HUNDRED
    net = gross - platform_fee
    return FeeSplit(
        gross=gross,
        platform_fee=platform_fee,
        net=net,
        fee_percentage=fee_percentage,
    )


def record(
    creator_id: UUID,
    fan_id: UUID | None,
    type: TransactionType,
    gross: Decimal,
    settings: PlatformSettings,
    *,
    repo: TransactionRepoPort,
    now: datetime,
    payment_reference: str | None = None,
) -> Transaction:
    """Compute the split with the given settings and append the entry."""
    split = compute_split(gross, settings.platform_fee_percentage)
    transaction = Transaction(
        creator_id=creator_id,
        fan_id=fan_id,
        type=type,
        gross_amount=split.gross,
        platform_fee=split.platform_fee,
        net_amount=split.net,
        fee_percentage=split.fee_percentage,
        payment_reference=payment_reference,
        created_at=now,
    )
    repo.append(transaction)
    logger.info(
        "Recorded %s transaction for creator %s: gross=%s fee=%s net=%s",
        type,
        creator_id,
        split.gross,
        split.platform_fee,
        split.net,
    )
    return transaction


def list_for_creator(creator_id: UUID, *, repo: TransactionRepoPort) -> list[Transaction]:
    return repo.list_for_creator(creator_id)
