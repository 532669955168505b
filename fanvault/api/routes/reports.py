from fastapi import APIRouter, status

from fanvault.api.deps import Context, CurrentIdentity
from fanvault.api.schemas import ReportCreateRequest
from fanvault.components.platform import CreateReportInput
from fanvault.domain.entities import Report

router = APIRouter()


@router.post("", response_model=Report, status_code=status.HTTP_201_CREATED)
def create_report(body: ReportCreateRequest, identity: CurrentIdentity, ctx: Context) -> Report:
    return ctx.platform.create_report(
        identity,
        CreateReportInput(
            reason=body.reason,
            reported_user_id=body.reported_user_id,
            reported_post_id=body.reported_post_id,
        ),
    )
