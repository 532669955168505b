from datetime import datetime
from uuid import UUID

from fastapi import APIRouter

from fanvault.api.deps import Context, CurrentIdentity
from fanvault.components.earnings import EarningsSummary
from fanvault.domain.entities import Transaction

router = APIRouter()


@router.get("", response_model=EarningsSummary)
def earnings_summary(
    identity: CurrentIdentity,
    ctx: Context,
    creator_id: UUID | None = None,
    as_of: datetime | None = None,
) -> EarningsSummary:
    return ctx.earnings.summarize(identity, creator_id, as_of)


@router.get("/transactions", response_model=list[Transaction])
def transactions(
    identity: CurrentIdentity,
    ctx: Context,
    creator_id: UUID | None = None,
) -> list[Transaction]:
    return ctx.earnings.list_transactions(identity, creator_id)
