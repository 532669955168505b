"""
Payment port interface.

Boundary to the payment gateway. Confirmation either succeeds, returning a
reference to store alongside the ledger entry, or raises PaymentFailed. No
state may be written by callers when it raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol
from uuid import UUID


@dataclass(frozen=True)
class PaymentRequest:
    """
    A single charge to confirm.

    Attributes:
        payer_id: Profile being charged
        payee_id: Creator receiving the funds
        amount: Gross amount
        description: Human-readable purpose ("ppv:<post id>", "tip", ...)
    """

    payer_id: UUID
    payee_id: UUID
    amount: Decimal
    description: str


@dataclass(frozen=True)
class PaymentConfirmation:
    reference: str
    amount: Decimal


class PaymentPort(Protocol):
    """
    Implementations:
    - PaymentStubAdapter: confirms everything unless told to decline (dev/tests)
    - a gateway adapter (future)
    """

    def confirm(self, request: PaymentRequest) -> PaymentConfirmation:
        """
        Confirm a charge.

        Raises:
            PaymentFailed: the charge was declined
        """
        ...
