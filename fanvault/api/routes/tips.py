from fastapi import APIRouter, status

from fanvault.api.deps import Context, CurrentIdentity
from fanvault.api.schemas import TipRequest, TipResponse
from fanvault.domain.entities import Tip

router = APIRouter()


@router.post("", response_model=TipResponse, status_code=status.HTTP_201_CREATED)
def send_tip(body: TipRequest, identity: CurrentIdentity, ctx: Context) -> TipResponse:
    result = ctx.tips.send_tip(identity, body.creator_id, body.amount, body.message)
    return TipResponse(tip=result.tip, transaction=result.transaction)


@router.get("/received", response_model=list[Tip])
def received_tips(identity: CurrentIdentity, ctx: Context) -> list[Tip]:
    return ctx.tips.list_received(identity)
