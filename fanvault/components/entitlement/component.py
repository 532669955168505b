"""
Entitlement component.

Pure access decision for a (viewer, post) pair plus server-side redaction.
The decision depends only on its arguments: the lookups are injected and
`now` is passed in.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fanvault.domain.entities import Post
from fanvault.ports.repo import PurchaseRepoPort, SubscriptionRepoPort

from .models import AccessDecision, PostView
from .ports import PurchaseLookup, SubscriptionLookup


def evaluate_access(
    viewer_id: UUID | None,
    post: Post,
    *,
    subscriptions: SubscriptionLookup,
    purchases: PurchaseLookup,
    now: datetime,
) -> AccessDecision:
    """
    Decide whether `viewer_id` may see the body and media of `post`.

    Args:
        viewer_id: Signed-in profile, or None for anonymous viewers
        post: The post being viewed
        subscriptions: Active-subscription lookup
        purchases: PPV purchase lookup
        now: Evaluation instant

    Returns:
        AccessDecision; denials carry needs_subscription or needs_purchase
    """
    if viewer_id is not None and viewer_id == post.creator_id:
        return AccessDecision(granted=True, reason="owner")

    visibility = post.visibility

    if visibility == "public":
        return AccessDecision(granted=True, reason="public")

    if visibility == "subscriber_only":
        if viewer_id is not None and subscriptions.is_active(viewer_id, post.creator_id, now):
            return AccessDecision(granted=True, reason="subscribed")
        return AccessDecision(granted=False, reason="needs_subscription")

    # pay_per_view: a subscription does not unlock it
    if viewer_id is not None and purchases.has_purchased(viewer_id, post.id):
        return AccessDecision(granted=True, reason="purchased")
    return AccessDecision(granted=False, reason="needs_purchase")


def redact_post(post: Post, decision: AccessDecision) -> PostView:
    """Strip content and media from a post the viewer may not see."""
    if decision.granted:
        return PostView(
            id=post.id,
            creator_id=post.creator_id,
            visibility=post.visibility,
            created_at=post.created_at,
            is_locked=False,
            ppv_price=post.ppv_price,
            content=post.content,
            media=post.media,
            media_count=len(post.media),
        )

    return PostView(
        id=post.id,
        creator_id=post.creator_id,
        visibility=post.visibility,
        created_at=post.created_at,
        is_locked=True,
        locked_reason=decision.reason,
        ppv_price=post.ppv_price,
        media_count=len(post.media),
    )


# --- Repository-backed lookups ---


class SubscriptionRepoLookup:
    """SubscriptionLookup over a repository inside an open unit of work."""

    def __init__(self, repo: SubscriptionRepoPort):
        self.repo = repo

    def is_active(self, fan_id: UUID, creator_id: UUID, now: datetime) -> bool:
        sub = self.repo.find_active(fan_id, creator_id)
        return sub is not None and sub.is_entitling(now)


class PurchaseRepoLookup:
    def __init__(self, repo: PurchaseRepoPort):
        self.repo = repo

    def has_purchased(self, fan_id: UUID, post_id: UUID) -> bool:
        return self.repo.get(fan_id, post_id) is not None
