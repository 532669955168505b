from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from fanvault.domain.entities import Visibility


@dataclass(frozen=True)
class MediaUpload:
    filename: str
    content_type: str
    data: bytes


@dataclass(frozen=True)
class CreatePostInput:
    visibility: Visibility
    content: str | None = None
    ppv_price: Decimal | None = None
    media: tuple[MediaUpload, ...] = ()
