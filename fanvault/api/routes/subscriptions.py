from uuid import UUID

from fastapi import APIRouter

from fanvault.api.deps import Context, CurrentIdentity
from fanvault.api.schemas import SubscribeResponse, UnsubscribeResponse
from fanvault.domain.entities import Subscription

router = APIRouter()


@router.get("", response_model=list[Subscription])
def my_subscriptions(identity: CurrentIdentity, ctx: Context) -> list[Subscription]:
    return ctx.subscriptions.list_subscriptions(identity)


@router.get("/subscribers", response_model=list[Subscription])
def my_subscribers(identity: CurrentIdentity, ctx: Context) -> list[Subscription]:
    return ctx.subscriptions.list_subscribers(identity)


@router.post("/{creator_id}", response_model=SubscribeResponse)
def subscribe(creator_id: UUID, identity: CurrentIdentity, ctx: Context) -> SubscribeResponse:
    result = ctx.subscriptions.subscribe(identity, creator_id)
    return SubscribeResponse(subscription=result.subscription, created=result.created)


@router.delete("/{creator_id}", response_model=UnsubscribeResponse)
def unsubscribe(creator_id: UUID, identity: CurrentIdentity, ctx: Context) -> UnsubscribeResponse:
    canceled = ctx.subscriptions.unsubscribe(identity, creator_id)
    return UnsubscribeResponse(
        subscription=canceled,
        canceled_at=canceled.updated_at if canceled else None,
    )
