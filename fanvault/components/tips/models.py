from __future__ import annotations

from dataclasses import dataclass

from fanvault.domain.entities import Tip, Transaction


@dataclass(frozen=True)
class TipResult:
    tip: Tip
    transaction: Transaction
