from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from fanvault.domain.entities import (
    PPVPurchase,
    ReportStatus,
    RoleType,
    Subscription,
    Tip,
    Transaction,
)


# --- Errors ---
class ErrorResponse(BaseModel):
    detail: str
    code: str


# --- Profiles ---
class RegisterRequest(BaseModel):
    username: str | None = Field(default=None, min_length=3, max_length=30)
    display_name: str | None = Field(default=None, max_length=80)


class ProfileUpdateRequest(BaseModel):
    username: str | None = Field(default=None, min_length=3, max_length=30)
    display_name: str | None = Field(default=None, max_length=80)
    bio: str | None = Field(default=None, max_length=1000)
    subscription_price: Decimal | None = None


class RolesResponse(BaseModel):
    user_id: UUID
    roles: list[RoleType]


# --- Monetization ---
class SubscribeResponse(BaseModel):
    subscription: Subscription
    created: bool


class PurchaseResponse(BaseModel):
    purchase: PPVPurchase
    created: bool


class TipRequest(BaseModel):
    creator_id: UUID
    amount: Decimal
    message: str | None = None


class TipResponse(BaseModel):
    tip: Tip
    transaction: Transaction


class AccessResponse(BaseModel):
    post_id: UUID
    has_access: bool


# --- Admin ---
class SettingsUpdateRequest(BaseModel):
    platform_fee_percentage: Decimal | None = None
    min_subscription_price: Decimal | None = None
    max_subscription_price: Decimal | None = None


class ReportCreateRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=2000)
    reported_user_id: UUID | None = None
    reported_post_id: UUID | None = None


class ReportTransitionRequest(BaseModel):
    status: ReportStatus
    admin_notes: str | None = None


class GrantRoleRequest(BaseModel):
    user_id: UUID
    role: RoleType


class GrantRoleResponse(BaseModel):
    user_id: UUID
    role: RoleType
    created: bool


# --- Messaging / Notifications ---
class ConversationCreateRequest(BaseModel):
    other_id: UUID


class MessageCreateRequest(BaseModel):
    content: str = Field(min_length=1)


class CountResponse(BaseModel):
    count: int


class UnsubscribeResponse(BaseModel):
    subscription: Subscription | None
    canceled_at: datetime | None = None
