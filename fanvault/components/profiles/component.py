"""
Profiles component.

Profiles are created on first sign-in and never hard-deleted. Every price
update is held to the platform's current subscription price bounds, whether
or not the profile is a creator yet.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal
from uuid import UUID

from fanvault.components.platform import effective_settings
from fanvault.domain.entities import Identity, Profile, RoleAssignment
from fanvault.domain.errors import AlreadyExists, InvalidState, NotFound, PermissionDenied
from fanvault.domain.policy import require_authenticated
from fanvault.ports.blobstore import BlobStorePort
from fanvault.ports.clock import ClockPort
from fanvault.ports.uow import UnitOfWorkFactory
from fanvault.rules.models import PlatformRules

from .models import UpdateProfileInput

logger = logging.getLogger(__name__)

AVATAR_BUCKET = "avatars"
BANNER_BUCKET = "banners"

ImageSlot = Literal["avatar", "banner"]


def _extension(filename: str) -> str:
    return Path(filename).suffix.lstrip(".").lower() or "bin"


class ProfileService:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        clock: ClockPort,
        blobs: BlobStorePort,
        platform_rules: PlatformRules,
    ):
        self.uow_factory = uow_factory
        self.clock = clock
        self.blobs = blobs
        self.platform_rules = platform_rules

    def register(
        self,
        user_id: UUID,
        username: str | None = None,
        display_name: str | None = None,
    ) -> Profile:
        """
        Create the profile for a newly authenticated user and grant the fan role.
        Returns the existing profile if there is one.
        """
        now = self.clock.now()
        with self.uow_factory(write=True) as uow:
            existing = uow.profiles.get(user_id)
            if existing is not None:
                return existing

            if username and uow.profiles.get_by_username(username) is not None:
                raise InvalidState(f"Username '{username}' is taken")

            profile = Profile(
                id=user_id,
                username=username,
                display_name=display_name or username,
                created_at=now,
                updated_at=now,
            )
            uow.profiles.save(profile)
            uow.roles.grant(RoleAssignment(user_id=user_id, role="fan", created_at=now))

        logger.info("Registered profile %s", user_id)
        return profile

    def get_profile(self, profile_id: UUID) -> Profile:
        with self.uow_factory() as uow:
            profile = uow.profiles.get(profile_id)
        if profile is None:
            raise NotFound("Profile not found")
        return profile

    def get_by_username(self, username: str) -> Profile:
        with self.uow_factory() as uow:
            profile = uow.profiles.get_by_username(username)
        if profile is None:
            raise NotFound("Profile not found")
        return profile

    def update_profile(
        self, actor: Identity | None, profile_id: UUID, inp: UpdateProfileInput
    ) -> Profile:
        """
        Owner-only profile update.

        Raises:
            PermissionDenied: actor is not the owner
            NotFound: no such profile
            InvalidState: username taken, or price outside platform bounds
        """
        actor = require_authenticated(actor)
        if actor.user_id != profile_id:
            raise PermissionDenied("You can only edit your own profile")

        now = self.clock.now()
        with self.uow_factory(write=True) as uow:
            profile = uow.profiles.get(profile_id)
            if profile is None:
                raise NotFound("Profile not found")

            updates: dict[str, object] = {"updated_at": now}
            if inp.username is not None and inp.username != profile.username:
                clash = uow.profiles.get_by_username(inp.username)
                if clash is not None and clash.id != profile_id:
                    raise InvalidState(f"Username '{inp.username}' is taken")
                updates["username"] = inp.username
            if inp.display_name is not None:
                updates["display_name"] = inp.display_name
            if inp.bio is not None:
                updates["bio"] = inp.bio

            if inp.subscription_price is not None:
                price = inp.subscription_price
                if price < 0:
                    raise InvalidState("Subscription price must not be negative")
                settings = effective_settings(uow.settings, self.platform_rules, now)
                if not (
                    settings.min_subscription_price <= price <= settings.max_subscription_price
                ):
                    raise InvalidState(
                        "Subscription price must be between "
                        f"{settings.min_subscription_price} and "
                        f"{settings.max_subscription_price}"
                    )
                updates["subscription_price"] = price

            updated = profile.model_copy(update=updates)
            try:
                uow.profiles.save(updated)
            except AlreadyExists as e:
                raise InvalidState(f"Username '{inp.username}' is taken") from e

        logger.info("Updated profile %s", profile_id)
        return updated

    def upload_avatar(self, actor: Identity | None, filename: str, data: bytes) -> Profile:
        return self._upload_image(actor, "avatar", filename, data)

    def upload_banner(self, actor: Identity | None, filename: str, data: bytes) -> Profile:
        return self._upload_image(actor, "banner", filename, data)

    def _upload_image(
        self, actor: Identity | None, slot: ImageSlot, filename: str, data: bytes
    ) -> Profile:
        actor = require_authenticated(actor)
        if not data:
            raise InvalidState("Uploaded file is empty")

        now = self.clock.now()
        bucket = AVATAR_BUCKET if slot == "avatar" else BANNER_BUCKET
        path = f"{actor.user_id}/{int(now.timestamp() * 1000)}.{_extension(filename)}"
        stored = self.blobs.upload(bucket, path, data)
        url = self.blobs.public_url(bucket, stored)

        with self.uow_factory(write=True) as uow:
            profile = uow.profiles.get(actor.user_id)
            if profile is None:
                raise NotFound("Profile not found")
            updated = profile.model_copy(update={f"{slot}_url": url, "updated_at": now})
            uow.profiles.save(updated)

        logger.info("Profile %s uploaded new %s", actor.user_id, slot)
        return updated

    def discover(self, term: str = "", limit: int = 20) -> list[Profile]:
        """Creators whose username or display name contains `term`."""
        with self.uow_factory() as uow:
            return uow.profiles.search_creators(term.strip(), limit)
