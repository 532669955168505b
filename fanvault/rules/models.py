from decimal import Decimal

from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class PlatformRules(BaseModel):
    """Defaults used until an admin stores platform settings."""

    platform_fee_percentage: Decimal = Field(ge=0, le=100)
    min_subscription_price: Decimal = Field(default=Decimal("0"), ge=0)
    max_subscription_price: Decimal = Field(default=Decimal("999.99"), ge=0)


class BillingRules(BaseModel):
    period_days: int = Field(default=30, gt=0)


class TipRules(BaseModel):
    min_amount: Decimal = Field(default=Decimal("1.00"), gt=0)
    max_amount: Decimal = Field(default=Decimal("500.00"), gt=0)


class RbacRules(BaseModel):
    roles: dict[str, list[str]]
    public_permissions: list[str] = Field(default_factory=list)


class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)


class Rules(BaseModel):
    project: ProjectRules
    platform: PlatformRules
    billing: BillingRules = Field(default_factory=BillingRules)
    tips: TipRules = Field(default_factory=TipRules)
    rbac: RbacRules
    ops: OpsRules = Field(default_factory=OpsRules)
