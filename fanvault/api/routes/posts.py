"""
Posts API.

Every read returns a view redacted for the caller: locked posts carry no
content or media.
"""

from decimal import Decimal
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, File, Form, Query, Response, UploadFile, status

from fanvault.api.deps import Context, CurrentIdentity, OptionalIdentity
from fanvault.api.schemas import AccessResponse
from fanvault.components.entitlement import PostView
from fanvault.components.posts import CreatePostInput, MediaUpload
from fanvault.domain.entities import Post, Visibility

router = APIRouter()


@router.post("", response_model=Post, status_code=status.HTTP_201_CREATED)
async def create_post(
    identity: CurrentIdentity,
    ctx: Context,
    visibility: Annotated[Visibility, Form()],
    content: Annotated[str | None, Form()] = None,
    ppv_price: Annotated[Decimal | None, Form()] = None,
    files: Annotated[list[UploadFile] | None, File()] = None,
) -> Post:
    uploads = []
    for f in files or []:
        uploads.append(
            MediaUpload(
                filename=f.filename or "upload",
                content_type=f.content_type or "application/octet-stream",
                data=await f.read(),
            )
        )
    return ctx.posts.create_post(
        identity,
        CreatePostInput(
            visibility=visibility,
            content=content,
            ppv_price=ppv_price,
            media=tuple(uploads),
        ),
    )


@router.get("", response_model=list[PostView])
def feed(
    identity: OptionalIdentity,
    ctx: Context,
    creator_id: UUID | None = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[PostView]:
    return ctx.posts.feed(identity, creator_id=creator_id, limit=limit, offset=offset)


@router.get("/{post_id}", response_model=PostView)
def get_post(post_id: UUID, identity: OptionalIdentity, ctx: Context) -> PostView:
    return ctx.posts.get_post_view(identity, post_id)


@router.get("/{post_id}/access", response_model=AccessResponse)
def check_access(post_id: UUID, identity: OptionalIdentity, ctx: Context) -> AccessResponse:
    viewer_id = identity.user_id if identity else None
    return AccessResponse(post_id=post_id, has_access=ctx.purchases.has_access(viewer_id, post_id))


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(post_id: UUID, identity: CurrentIdentity, ctx: Context) -> Response:
    ctx.posts.delete_post(identity, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
