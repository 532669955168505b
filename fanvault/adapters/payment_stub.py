"""
Payment stub adapter (dev/MVP).

Stub implementation of PaymentPort that confirms every charge with a
`mock_` reference. Can be told to decline everything or specific payers so
the PaymentFailed path can be exercised.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from uuid import UUID, uuid4

from fanvault.domain.errors import PaymentFailed
from fanvault.ports.payment import PaymentConfirmation, PaymentPort, PaymentRequest

logger = logging.getLogger(__name__)


@dataclass
class PaymentStubAdapter:
    """
    Stub payment adapter.

    Every confirmed request is kept in `confirmed` so tests can assert that a
    fan was charged exactly once.
    """

    _decline_all: bool = False
    _declined_payers: set[UUID] = field(default_factory=set)
    confirmed: list[PaymentRequest] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def confirm(self, request: PaymentRequest) -> PaymentConfirmation:
        if self._decline_all or request.payer_id in self._declined_payers:
            logger.debug(
                "PaymentStubAdapter.confirm: declined payer=%s amount=%s",
                request.payer_id,
                request.amount,
            )
            raise PaymentFailed("Payment was declined")

        reference = f"mock_{uuid4().hex}"
        with self._lock:
            self.confirmed.append(request)

        logger.debug(
            "PaymentStubAdapter.confirm: payer=%s payee=%s amount=%s ref=%s",
            request.payer_id,
            request.payee_id,
            request.amount,
            reference,
        )
        return PaymentConfirmation(reference=reference, amount=request.amount)

    # --- Testing Helpers ---

    def decline_all(self, decline: bool = True) -> None:
        self._decline_all = decline

    def decline_payer(self, payer_id: UUID) -> None:
        self._declined_payers.add(payer_id)

    def clear_overrides(self) -> None:
        self._decline_all = False
        self._declined_payers.clear()

    def charges_for(self, payer_id: UUID) -> list[PaymentRequest]:
        return [r for r in self.confirmed if r.payer_id == payer_id]


def _verify_protocol_compliance() -> None:
    adapter: PaymentPort = PaymentStubAdapter()
    _ = adapter


_verify_protocol_compliance()
