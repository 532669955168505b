"""
Profiles API.

Registration (first sign-in), profile editing, image uploads and creator
discovery.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from fanvault.api.deps import Context, CurrentIdentity, get_registering_user
from fanvault.api.schemas import ProfileUpdateRequest, RegisterRequest, RolesResponse
from fanvault.components.profiles import UpdateProfileInput
from fanvault.domain.entities import Profile

router = APIRouter()


@router.post("", response_model=Profile, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    user_id: Annotated[UUID, Depends(get_registering_user)],
    ctx: Context,
) -> Profile:
    return ctx.profiles.register(user_id, body.username, body.display_name)


@router.get("/discover", response_model=list[Profile])
def discover(
    ctx: Context,
    q: str = "",
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> list[Profile]:
    return ctx.profiles.discover(q, limit)


@router.get("/me", response_model=Profile)
def get_me(identity: CurrentIdentity, ctx: Context) -> Profile:
    return ctx.profiles.get_profile(identity.user_id)


@router.patch("/me", response_model=Profile)
def update_me(body: ProfileUpdateRequest, identity: CurrentIdentity, ctx: Context) -> Profile:
    return ctx.profiles.update_profile(
        identity,
        identity.user_id,
        UpdateProfileInput(
            username=body.username,
            display_name=body.display_name,
            bio=body.bio,
            subscription_price=body.subscription_price,
        ),
    )


@router.post("/me/avatar", response_model=Profile)
async def upload_avatar(
    identity: CurrentIdentity,
    ctx: Context,
    file: UploadFile = File(...),
) -> Profile:
    data = await file.read()
    return ctx.profiles.upload_avatar(identity, file.filename or "avatar", data)


@router.post("/me/banner", response_model=Profile)
async def upload_banner(
    identity: CurrentIdentity,
    ctx: Context,
    file: UploadFile = File(...),
) -> Profile:
    data = await file.read()
    return ctx.profiles.upload_banner(identity, file.filename or "banner", data)


@router.post("/me/become-creator", response_model=RolesResponse)
def become_creator(identity: CurrentIdentity, ctx: Context) -> RolesResponse:
    roles = ctx.roles.become_creator(identity)
    return RolesResponse(user_id=identity.user_id, roles=sorted(roles))


@router.get("/by-username/{username}", response_model=Profile)
def get_by_username(username: str, ctx: Context) -> Profile:
    return ctx.profiles.get_by_username(username)


@router.get("/{profile_id}", response_model=Profile)
def get_profile(profile_id: UUID, ctx: Context) -> Profile:
    return ctx.profiles.get_profile(profile_id)
