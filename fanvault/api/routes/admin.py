"""
Admin API.

Platform settings, report moderation and role grants. Every route here is
admin-only; the managers enforce it for writes.
"""

from uuid import UUID

from fastapi import APIRouter

from fanvault.api.deps import Context, CurrentIdentity
from fanvault.api.schemas import (
    GrantRoleRequest,
    GrantRoleResponse,
    ReportTransitionRequest,
    SettingsUpdateRequest,
)
from fanvault.components.platform import UpdateSettingsInput
from fanvault.domain.entities import PlatformSettings, Report, ReportStatus
from fanvault.domain.policy import require_role

router = APIRouter()


@router.get("/settings", response_model=PlatformSettings)
def read_settings(identity: CurrentIdentity, ctx: Context) -> PlatformSettings:
    require_role(identity, "admin")
    return ctx.platform.get_settings()


@router.put("/settings", response_model=PlatformSettings)
def update_settings(
    body: SettingsUpdateRequest, identity: CurrentIdentity, ctx: Context
) -> PlatformSettings:
    return ctx.platform.update_settings(
        identity,
        UpdateSettingsInput(
            platform_fee_percentage=body.platform_fee_percentage,
            min_subscription_price=body.min_subscription_price,
            max_subscription_price=body.max_subscription_price,
        ),
    )


@router.get("/reports", response_model=list[Report])
def list_reports(
    identity: CurrentIdentity, ctx: Context, status: ReportStatus | None = None
) -> list[Report]:
    return ctx.platform.list_reports(identity, status)


@router.post("/reports/{report_id}/transition", response_model=Report)
def transition_report(
    report_id: UUID, body: ReportTransitionRequest, identity: CurrentIdentity, ctx: Context
) -> Report:
    return ctx.platform.transition_report(identity, report_id, body.status, body.admin_notes)


@router.post("/roles", response_model=GrantRoleResponse)
def grant_role(body: GrantRoleRequest, identity: CurrentIdentity, ctx: Context) -> GrantRoleResponse:
    created = ctx.roles.grant_role(identity, body.user_id, body.role)
    return GrantRoleResponse(user_id=body.user_id, role=body.role, created=created)
