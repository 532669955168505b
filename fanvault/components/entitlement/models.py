"""
Entitlement component models.

Access decisions and the redacted post view handed to presentation code.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from fanvault.domain.entities import PostMedia, Visibility

AccessReason = Literal[
    "owner",
    "public",
    "subscribed",
    "purchased",
    "needs_subscription",
    "needs_purchase",
]


@dataclass(frozen=True)
class AccessDecision:
    """Whether a viewer may see a post's body and media, and why."""

    granted: bool
    reason: AccessReason


@dataclass(frozen=True)
class PostView:
    """
    A post as one viewer is allowed to see it.

    When `is_locked` is set, `content` and `media` are empty; `locked_reason`
    and `ppv_price` carry what the call-to-action needs.
    """

    id: UUID
    creator_id: UUID
    visibility: Visibility
    created_at: datetime
    is_locked: bool
    locked_reason: AccessReason | None = None
    ppv_price: Decimal | None = None
    content: str | None = None
    media: tuple[PostMedia, ...] = ()
    media_count: int = 0
