"""
Posts component.

Post creation goes through the validated Post constructor, so a post with
contradictory visibility flags never reaches storage. Reads always return
PostViews redacted for the viewer.
"""

from __future__ import annotations

import logging
from pathlib import Path
from uuid import UUID, uuid4

from fanvault.components.entitlement import (
    PostView,
    PurchaseRepoLookup,
    SubscriptionRepoLookup,
    evaluate_access,
    redact_post,
)
from fanvault.domain.entities import Identity, MediaType, Post, PostMedia
from fanvault.domain.errors import InvalidState, NotFound, PermissionDenied
from fanvault.domain.policy import PolicyEngine, require_authenticated
from fanvault.ports.blobstore import BlobStorePort
from fanvault.ports.clock import ClockPort
from fanvault.ports.events import POST_CREATED, DomainEvent, EventPublisherPort
from fanvault.ports.uow import UnitOfWorkFactory

from .models import CreatePostInput, MediaUpload

logger = logging.getLogger(__name__)

MEDIA_BUCKET = "post-media"
MAX_FEED_PAGE = 100


def media_type_for(content_type: str) -> MediaType:
    return "video" if content_type.lower().startswith("video/") else "image"


class PostService:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        clock: ClockPort,
        blobs: BlobStorePort,
        events: EventPublisherPort,
        policy: PolicyEngine,
    ):
        self.uow_factory = uow_factory
        self.clock = clock
        self.blobs = blobs
        self.events = events
        self.policy = policy

    def create_post(self, actor: Identity | None, inp: CreatePostInput) -> Post:
        """
        Raises:
            PermissionDenied: actor may not create posts
            InvalidState: invalid visibility/price combination or empty post
        """
        actor = self.policy.require(actor, "posts:create")
        if not (inp.content and inp.content.strip()) and not inp.media:
            raise InvalidState("A post needs content or media")

        now = self.clock.now()
        # Validate before anything is uploaded
        post = Post.create(
            creator_id=actor.user_id,
            visibility=inp.visibility,
            content=inp.content,
            ppv_price=inp.ppv_price,
            now=now,
        )

        stored: list[str] = []
        try:
            if inp.media:
                media = tuple(
                    self._store_media(post, i, m, stored) for i, m in enumerate(inp.media)
                )
                post = post.model_copy(update={"media": media})

            with self.uow_factory(write=True) as uow:
                uow.posts.save(post)
        except Exception:
            self._discard_media(stored)
            raise

        logger.info(
            "Creator %s published %s post %s", actor.user_id, post.visibility, post.id
        )
        self.events.publish(
            DomainEvent(
                topic=POST_CREATED,
                stream_key=post.creator_id,
                created_at=now,
                payload={
                    "post_id": str(post.id),
                    "creator_id": str(post.creator_id),
                    "visibility": post.visibility,
                },
            )
        )
        return post

    def _store_media(
        self, post: Post, index: int, upload: MediaUpload, stored: list[str]
    ) -> PostMedia:
        if not upload.data:
            raise InvalidState(f"Media file '{upload.filename}' is empty")
        ext = Path(upload.filename).suffix.lstrip(".").lower() or "bin"
        path = f"{post.creator_id}/{post.id}/{index}-{uuid4().hex[:8]}.{ext}"
        stored_path = self.blobs.upload(MEDIA_BUCKET, path, upload.data)
        stored.append(stored_path)
        return PostMedia(
            media_type=media_type_for(upload.content_type),
            media_url=self.blobs.public_url(MEDIA_BUCKET, stored_path),
        )

    def _discard_media(self, stored: list[str]) -> None:
        """Best-effort removal of blobs uploaded for a post that was never saved."""
        for path in stored:
            try:
                self.blobs.delete(MEDIA_BUCKET, path)
            except OSError:
                logger.exception("Could not remove orphaned media %s", path)
        if stored:
            logger.warning("Discarded %d media files of an unsaved post", len(stored))

    def delete_post(self, actor: Identity | None, post_id: UUID) -> None:
        actor = require_authenticated(actor)
        with self.uow_factory(write=True) as uow:
            post = uow.posts.get(post_id)
            if post is None:
                raise NotFound("Post not found")
            if not actor.has_role("admin"):
                if post.creator_id != actor.user_id:
                    raise PermissionDenied("Only the creator may delete this post")
                self.policy.require(actor, "posts:delete_own")
            uow.posts.delete(post_id)

        logger.info("Post %s deleted by %s", post_id, actor.user_id)

    def get_post_view(self, viewer: Identity | None, post_id: UUID) -> PostView:
        now = self.clock.now()
        viewer_id = viewer.user_id if viewer else None
        with self.uow_factory() as uow:
            post = uow.posts.get(post_id)
            if post is None:
                raise NotFound("Post not found")
            decision = evaluate_access(
                viewer_id,
                post,
                subscriptions=SubscriptionRepoLookup(uow.subscriptions),
                purchases=PurchaseRepoLookup(uow.purchases),
                now=now,
            )
        return redact_post(post, decision)

    def feed(
        self,
        viewer: Identity | None,
        creator_id: UUID | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[PostView]:
        """Posts newest first, each redacted for `viewer`."""
        limit = max(1, min(limit, MAX_FEED_PAGE))
        offset = max(0, offset)
        now = self.clock.now()
        viewer_id = viewer.user_id if viewer else None

        with self.uow_factory() as uow:
            posts = uow.posts.list_posts(creator_id=creator_id, limit=limit, offset=offset)
            subscriptions = SubscriptionRepoLookup(uow.subscriptions)
            purchases = PurchaseRepoLookup(uow.purchases)
            return [
                redact_post(
                    post,
                    evaluate_access(
                        viewer_id,
                        post,
                        subscriptions=subscriptions,
                        purchases=purchases,
                        now=now,
                    ),
                )
                for post in posts
            ]
