from uuid import UUID

from fastapi import APIRouter

from fanvault.api.deps import Context, CurrentIdentity
from fanvault.api.schemas import PurchaseResponse
from fanvault.domain.entities import PPVPurchase

router = APIRouter()


@router.get("", response_model=list[PPVPurchase])
def my_purchases(identity: CurrentIdentity, ctx: Context) -> list[PPVPurchase]:
    return ctx.purchases.list_purchases(identity)


@router.post("/{post_id}", response_model=PurchaseResponse)
def purchase(post_id: UUID, identity: CurrentIdentity, ctx: Context) -> PurchaseResponse:
    result = ctx.purchases.purchase(identity, post_id)
    return PurchaseResponse(purchase=result.purchase, created=result.created)
