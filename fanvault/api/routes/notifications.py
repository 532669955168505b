from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from fanvault.api.deps import Context, CurrentIdentity
from fanvault.api.schemas import CountResponse
from fanvault.domain.entities import Notification
from fanvault.domain.errors import NotFound

router = APIRouter()


@router.get("", response_model=list[Notification])
def list_notifications(
    identity: CurrentIdentity,
    ctx: Context,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> list[Notification]:
    return ctx.notifications.list_notifications(identity, limit)


@router.get("/unread-count", response_model=CountResponse)
def unread_count(identity: CurrentIdentity, ctx: Context) -> CountResponse:
    return CountResponse(count=ctx.notifications.unread_count(identity))


@router.post("/read-all", response_model=CountResponse)
def mark_all_read(identity: CurrentIdentity, ctx: Context) -> CountResponse:
    return CountResponse(count=ctx.notifications.mark_all_read(identity))


@router.post("/{notification_id}/read", response_model=CountResponse)
def mark_read(notification_id: UUID, identity: CurrentIdentity, ctx: Context) -> CountResponse:
    if not ctx.notifications.mark_read(identity, notification_id):
        raise NotFound("Notification not found")
    return CountResponse(count=1)
