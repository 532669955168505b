from datetime import UTC, datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fanvault.domain.errors import InvalidState

# --- Enums / Literals ---
RoleType = Literal["admin", "creator", "fan"]
Visibility = Literal["public", "subscriber_only", "pay_per_view"]
MediaType = Literal["image", "video"]
SubscriptionStatus = Literal["active", "canceled", "past_due", "expired"]
TransactionType = Literal["subscription", "tip", "ppv"]
ReportStatus = Literal["pending", "reviewed", "resolved", "dismissed"]
NotificationType = Literal[
    "new_post", "new_message", "new_subscription", "tip_received", "ppv_purchased"
]

TRANSACTION_TYPES: tuple[TransactionType, ...] = ("subscription", "tip", "ppv")


def utcnow() -> datetime:
    return datetime.now(UTC)


# --- Identity & Roles ---

class Identity(BaseModel):
    """Authenticated caller as resolved from a session token."""

    model_config = ConfigDict(frozen=True)

    user_id: UUID
    roles: frozenset[RoleType] = frozenset()

    def has_role(self, role: RoleType) -> bool:
        return role in self.roles


class RoleAssignment(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    role: RoleType
    created_at: datetime = Field(default_factory=utcnow)


class Profile(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    username: str | None = None
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    banner_url: str | None = None
    subscription_price: Decimal = Decimal("0")
    is_age_verified: bool = False
    is_creator_verified: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _check_price(self) -> "Profile":
        if self.subscription_price < 0:
            raise InvalidState("subscription_price must not be negative")
        return self


# --- Posts ---

class PostMedia(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    media_type: MediaType
    media_url: str
    # Position is implicitly defined by tuple order in Post


class Post(BaseModel):
    """
    A creator's post.

    Exactly one visibility mode holds: public, subscriber_only (neither flag
    set) or pay_per_view. The constructor rejects any other combination, so an
    invalid Post can never reach a repository.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    creator_id: UUID
    content: str | None = None
    media: tuple[PostMedia, ...] = ()
    is_public: bool = False
    is_ppv: bool = False
    ppv_price: Decimal | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _check_visibility(self) -> "Post":
        if self.is_public and self.is_ppv:
            raise InvalidState("A post cannot be both public and pay-per-view")
        if self.is_ppv and (self.ppv_price is None or self.ppv_price <= 0):
            raise InvalidState("Pay-per-view posts require a positive ppv_price")
        if not self.is_ppv and self.ppv_price is not None:
            raise InvalidState("ppv_price is only allowed on pay-per-view posts")
        return self

    @property
    def visibility(self) -> Visibility:
        if self.is_public:
            return "public"
        if self.is_ppv:
            return "pay_per_view"
        return "subscriber_only"

    @classmethod
    def create(
        cls,
        creator_id: UUID,
        visibility: Visibility,
        content: str | None = None,
        ppv_price: Decimal | None = None,
        media: tuple[PostMedia, ...] = (),
        now: datetime | None = None,
    ) -> "Post":
        """Build a post from a visibility mode instead of raw flags."""
        now = now or utcnow()
        return cls(
            creator_id=creator_id,
            content=content,
            media=media,
            is_public=visibility == "public",
            is_ppv=visibility == "pay_per_view",
            ppv_price=ppv_price,
            created_at=now,
            updated_at=now,
        )


# --- Entitlement grants ---

class Subscription(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    fan_id: UUID
    creator_id: UUID
    status: SubscriptionStatus = "active"
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    billing_reference: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def is_entitling(self, now: datetime) -> bool:
        """Active status AND `now` inside [current_period_start, current_period_end)."""
        if self.status != "active":
            return False
        if self.current_period_start is None or self.current_period_end is None:
            return False
        return self.current_period_start <= now < self.current_period_end


class PPVPurchase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    fan_id: UUID
    post_id: UUID
    amount: Decimal
    payment_reference: str | None = None
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _check_amount(self) -> "PPVPurchase":
        if self.amount <= 0:
            raise InvalidState("Purchase amount must be positive")
        return self


# --- Ledger ---

class Transaction(BaseModel):
    """Immutable ledger entry. Amounts are never recomputed after creation."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    creator_id: UUID
    fan_id: UUID | None = None
    type: TransactionType
    gross_amount: Decimal
    platform_fee: Decimal
    net_amount: Decimal
    fee_percentage: Decimal
    payment_reference: str | None = None
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _check_amounts(self) -> "Transaction":
        if self.gross_amount <= 0:
            raise InvalidState("gross_amount must be positive")
        if self.platform_fee < 0 or self.net_amount < 0:
            raise InvalidState("Fee and net amounts must not be negative")
        if self.net_amount + self.platform_fee != self.gross_amount:
            raise InvalidState("net_amount + platform_fee must equal gross_amount")
        return self


class Tip(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    fan_id: UUID
    creator_id: UUID
    amount: Decimal
    message: str | None = None
    payment_reference: str | None = None
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _check_amount(self) -> "Tip":
        if self.amount <= 0:
            raise InvalidState("Tip amount must be positive")
        return self


# --- Platform / Moderation ---

class PlatformSettings(BaseModel):
    platform_fee_percentage: Decimal
    min_subscription_price: Decimal = Decimal("0")
    max_subscription_price: Decimal = Decimal("999.99")
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _check_bounds(self) -> "PlatformSettings":
        if not Decimal("0") <= self.platform_fee_percentage <= Decimal("100"):
            raise InvalidState("platform_fee_percentage must be between 0 and 100")
        if self.min_subscription_price < 0:
            raise InvalidState("min_subscription_price must not be negative")
        if self.min_subscription_price > self.max_subscription_price:
            raise InvalidState("min_subscription_price must not exceed max_subscription_price")
        return self


class Report(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    reporter_id: UUID
    reported_user_id: UUID | None = None
    reported_post_id: UUID | None = None
    reason: str
    status: ReportStatus = "pending"
    admin_notes: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _check_target(self) -> "Report":
        if not self.reason.strip():
            raise InvalidState("A report needs a reason")
        if self.reported_user_id is None and self.reported_post_id is None:
            raise InvalidState("A report must reference a user or a post")
        return self


# --- Notifications & Messaging ---

class Notification(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    type: NotificationType
    title: str
    message: str | None = None
    is_read: bool = False
    related_id: UUID | None = None
    created_at: datetime = Field(default_factory=utcnow)


class Conversation(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    participant_1_id: UUID
    participant_2_id: UUID
    last_message_at: datetime = Field(default_factory=utcnow)
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _check_participants(self) -> "Conversation":
        if self.participant_1_id == self.participant_2_id:
            raise InvalidState("A conversation needs two different participants")
        return self

    def involves(self, user_id: UUID) -> bool:
        return user_id in (self.participant_1_id, self.participant_2_id)

    def other_participant(self, user_id: UUID) -> UUID:
        return self.participant_2_id if user_id == self.participant_1_id else self.participant_1_id


class Message(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    conversation_id: UUID
    sender_id: UUID
    content: str
    is_read: bool = False
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _check_content(self) -> "Message":
        if not self.content.strip():
            raise InvalidState("Message content must not be empty")
        return self


