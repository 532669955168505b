"""
Integration tests for the SQLite repositories and unit of work.

Every test runs against a freshly migrated database file; profiles are
seeded first because the schema enforces foreign keys.
"""

import sqlite3
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from fanvault.domain.entities import (
    Conversation,
    Message,
    Notification,
    PlatformSettings,
    Post,
    PostMedia,
    PPVPurchase,
    Profile,
    Report,
    RoleAssignment,
    Subscription,
    Tip,
    Transaction,
)
from fanvault.domain.errors import AlreadyExists

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
def uow(ctx):
    return ctx.uow_factory


# --- Profiles & roles ---


def test_profile_round_trip(uow):
    profile = Profile(
        username="alice",
        display_name="Alice",
        bio="hi",
        subscription_price=Decimal("9.99"),
        is_age_verified=True,
    )
    with uow(write=True) as u:
        u.profiles.save(profile)

    with uow() as u:
        fetched = u.profiles.get(profile.id)
        by_name = u.profiles.get_by_username("alice")

    assert fetched == profile
    assert by_name is not None and by_name.id == profile.id
    assert fetched.subscription_price == Decimal("9.99")


def test_profile_update_keeps_created_at(uow):
    profile = Profile(username="bob", created_at=T0, updated_at=T0)
    with uow(write=True) as u:
        u.profiles.save(profile)
        u.profiles.save(
            profile.model_copy(update={"bio": "new", "updated_at": T0 + timedelta(days=1)})
        )

    with uow() as u:
        fetched = u.profiles.get(profile.id)
    assert fetched is not None
    assert fetched.bio == "new"
    assert fetched.created_at == T0


def test_username_clash_raises_already_exists(uow):
    with uow(write=True) as u:
        u.profiles.save(Profile(username="taken"))

    with pytest.raises(AlreadyExists):
        with uow(write=True) as u:
            u.profiles.save(Profile(username="taken"))


def test_profiles_without_username_coexist(uow):
    with uow(write=True) as u:
        u.profiles.save(Profile())
        u.profiles.save(Profile())


def test_missing_profile_is_none(uow):
    with uow() as u:
        assert u.profiles.get(uuid4()) is None
        assert u.profiles.get_by_username("ghost") is None


def test_roles_grant_and_duplicate(uow, make_user):
    user = make_user("fan")
    with uow(write=True) as u:
        u.roles.grant(RoleAssignment(user_id=user.user_id, role="creator"))

    with uow() as u:
        assert u.roles.roles_of(user.user_id) == {"fan", "creator"}

    with pytest.raises(AlreadyExists):
        with uow(write=True) as u:
            u.roles.grant(RoleAssignment(user_id=user.user_id, role="fan"))


def test_role_for_unknown_profile_violates_foreign_key(uow):
    with pytest.raises(sqlite3.IntegrityError):
        with uow(write=True) as u:
            u.roles.grant(RoleAssignment(user_id=uuid4(), role="fan"))


def test_search_creators_only_matches_creators(uow, make_user):
    make_user("creator", username="artsy_anna")
    make_user("fan", username="artsy_fan")

    with uow() as u:
        found = u.profiles.search_creators("artsy")
    assert [p.username for p in found] == ["artsy_anna"]


def test_search_creators_escapes_wildcards(uow, make_user):
    make_user("creator", username="a_b")
    make_user("creator", username="axb")

    with uow() as u:
        underscore = u.profiles.search_creators("a_b")
        percent = u.profiles.search_creators("%")
    assert [p.username for p in underscore] == ["a_b"]
    assert percent == []


# --- Posts ---


def test_post_round_trip_keeps_media_order(uow, make_user):
    creator = make_user("creator")
    media = (
        PostMedia(media_type="video", media_url="/media/post-media/2.mp4"),
        PostMedia(media_type="image", media_url="/media/post-media/1.png"),
    )
    post = Post.create(
        creator.user_id, "pay_per_view", "hello", Decimal("5.00"), media, now=T0
    )
    with uow(write=True) as u:
        u.posts.save(post)

    with uow() as u:
        fetched = u.posts.get(post.id)

    assert fetched is not None
    assert fetched.visibility == "pay_per_view"
    assert fetched.ppv_price == Decimal("5.00")
    assert [m.media_url for m in fetched.media] == [m.media_url for m in media]


def test_post_update_replaces_media(uow, make_user):
    creator = make_user("creator")
    post = Post.create(
        creator.user_id,
        "public",
        media=(PostMedia(media_type="image", media_url="/a.png"),),
    )
    with uow(write=True) as u:
        u.posts.save(post)
        u.posts.save(post.model_copy(update={"media": (), "content": "edited"}))

    with uow() as u:
        fetched = u.posts.get(post.id)
    assert fetched is not None
    assert fetched.media == ()
    assert fetched.content == "edited"


def test_post_delete_removes_media(uow, make_user):
    creator = make_user("creator")
    post = Post.create(
        creator.user_id,
        "subscriber_only",
        media=(PostMedia(media_type="image", media_url="/a.png"),),
    )
    with uow(write=True) as u:
        u.posts.save(post)
    with uow(write=True) as u:
        u.posts.delete(post.id)

    with uow() as u:
        assert u.posts.get(post.id) is None
        row = u.conn.execute("SELECT COUNT(*) AS n FROM post_media").fetchone()
    assert row["n"] == 0


def test_list_posts_newest_first_with_paging(uow, make_user):
    creator = make_user("creator")
    other = make_user("creator")
    posts = [
        Post.create(creator.user_id, "public", f"p{i}", now=T0 + timedelta(hours=i))
        for i in range(3)
    ]
    with uow(write=True) as u:
        for p in posts:
            u.posts.save(p)
        u.posts.save(Post.create(other.user_id, "public", "other"))

    with uow() as u:
        mine = u.posts.list_posts(creator.user_id)
        page = u.posts.list_posts(creator.user_id, limit=1, offset=1)
        everyone = u.posts.list_posts()

    assert [p.content for p in mine] == ["p2", "p1", "p0"]
    assert [p.content for p in page] == ["p1"]
    assert len(everyone) == 4


def test_schema_rejects_public_ppv_row(uow, make_user):
    creator = make_user("creator")
    with pytest.raises(sqlite3.IntegrityError):
        with uow(write=True) as u:
            u.conn.execute(
                "INSERT INTO posts (id, creator_id, is_public, is_ppv, ppv_price, "
                "created_at, updated_at) VALUES (?, ?, 1, 1, '5', ?, ?)",
                (str(uuid4()), str(creator.user_id), T0.isoformat(), T0.isoformat()),
            )


# --- Subscriptions & purchases ---


def test_one_active_subscription_per_pair(uow, make_user):
    fan = make_user("fan")
    creator = make_user("creator")
    with uow(write=True) as u:
        u.subscriptions.add(Subscription(fan_id=fan.user_id, creator_id=creator.user_id))

    with pytest.raises(AlreadyExists):
        with uow(write=True) as u:
            u.subscriptions.add(Subscription(fan_id=fan.user_id, creator_id=creator.user_id))


def test_canceled_rows_do_not_block_new_active(uow, make_user):
    fan = make_user("fan")
    creator = make_user("creator")
    first = Subscription(fan_id=fan.user_id, creator_id=creator.user_id, created_at=T0)
    with uow(write=True) as u:
        u.subscriptions.add(first)
        u.subscriptions.set_status(first.id, "canceled", T0 + timedelta(days=1))
        second = u.subscriptions.add(
            Subscription(
                fan_id=fan.user_id,
                creator_id=creator.user_id,
                created_at=T0 + timedelta(days=2),
            )
        )

    with uow() as u:
        active = u.subscriptions.find_active(fan.user_id, creator.user_id)
        history = u.subscriptions.list_history(fan.user_id, creator.user_id)
        for_fan = u.subscriptions.list_active_for_fan(fan.user_id)
        for_creator = u.subscriptions.list_active_for_creator(creator.user_id)

    assert active is not None and active.id == second.id
    assert [s.status for s in history] == ["canceled", "active"]
    assert [s.id for s in for_fan] == [second.id]
    assert [s.id for s in for_creator] == [second.id]


def test_subscription_period_round_trip(uow, make_user):
    fan = make_user("fan")
    creator = make_user("creator")
    sub = Subscription(
        fan_id=fan.user_id,
        creator_id=creator.user_id,
        current_period_start=T0,
        current_period_end=T0 + timedelta(days=30),
        billing_reference="sub_ref",
    )
    with uow(write=True) as u:
        u.subscriptions.add(sub)

    with uow() as u:
        fetched = u.subscriptions.find_active(fan.user_id, creator.user_id)
    assert fetched == sub


def test_purchase_is_unique_per_fan_and_post(uow, make_user):
    fan = make_user("fan")
    post_id = uuid4()
    with uow(write=True) as u:
        u.purchases.add(PPVPurchase(fan_id=fan.user_id, post_id=post_id, amount=Decimal("5")))

    with pytest.raises(AlreadyExists):
        with uow(write=True) as u:
            u.purchases.add(
                PPVPurchase(fan_id=fan.user_id, post_id=post_id, amount=Decimal("5"))
            )

    with uow() as u:
        assert u.purchases.get(fan.user_id, post_id) is not None
        assert u.purchases.count_for_post(post_id) == 1
        assert len(u.purchases.list_for_fan(fan.user_id)) == 1


# --- Ledger ---


def _transaction(creator_id, fan_id=None, **kw) -> Transaction:
    values = dict(
        creator_id=creator_id,
        fan_id=fan_id,
        type="subscription",
        gross_amount=Decimal("9.99"),
        platform_fee=Decimal("1.998"),
        net_amount=Decimal("7.992"),
        fee_percentage=Decimal("20"),
    )
    values.update(kw)
    return Transaction(**values)


def test_transaction_amounts_survive_exactly(uow, make_user):
    creator = make_user("creator")
    fan = make_user("fan")
    tx = _transaction(creator.user_id, fan.user_id)
    with uow(write=True) as u:
        u.transactions.append(tx)

    with uow() as u:
        [fetched] = u.transactions.list_for_creator(creator.user_id)
    assert fetched == tx
    assert fetched.platform_fee + fetched.net_amount == fetched.gross_amount


def test_transactions_cannot_be_updated(uow, make_user):
    creator = make_user("creator")
    with uow(write=True) as u:
        u.transactions.append(_transaction(creator.user_id))

    with pytest.raises(sqlite3.IntegrityError, match="immutable"):
        with uow(write=True) as u:
            u.conn.execute("UPDATE transactions SET net_amount = '0'")


def test_transactions_cannot_be_deleted(uow, make_user):
    creator = make_user("creator")
    with uow(write=True) as u:
        u.transactions.append(_transaction(creator.user_id))

    with pytest.raises(sqlite3.IntegrityError, match="immutable"):
        with uow(write=True) as u:
            u.conn.execute("DELETE FROM transactions")

    with uow() as u:
        assert len(u.transactions.list_for_creator(creator.user_id)) == 1


def test_tips_listed_for_creator(uow, make_user):
    creator = make_user("creator")
    fan = make_user("fan")
    tip = Tip(fan_id=fan.user_id, creator_id=creator.user_id, amount=Decimal("3"), message="ty")
    with uow(write=True) as u:
        u.tips.add(tip)

    with uow() as u:
        assert u.tips.list_for_creator(creator.user_id) == [tip]


# --- Platform & moderation ---


def test_settings_singleton_upsert(uow):
    with uow() as u:
        assert u.settings.get() is None

    with uow(write=True) as u:
        u.settings.save(PlatformSettings(platform_fee_percentage=Decimal("20")))
        u.settings.save(
            PlatformSettings(
                platform_fee_percentage=Decimal("12.5"),
                min_subscription_price=Decimal("1"),
            )
        )

    with uow() as u:
        settings = u.settings.get()
        count = u.conn.execute("SELECT COUNT(*) AS n FROM platform_settings").fetchone()
    assert settings is not None
    assert settings.platform_fee_percentage == Decimal("12.5")
    assert settings.min_subscription_price == Decimal("1")
    assert count["n"] == 1


def test_report_save_and_filter(uow, make_user):
    reporter = make_user("fan")
    report = Report(reporter_id=reporter.user_id, reported_post_id=uuid4(), reason="spam")
    with uow(write=True) as u:
        u.reports.add(report)
        u.reports.save(report.model_copy(update={"status": "reviewed", "admin_notes": "seen"}))

    with uow() as u:
        fetched = u.reports.get(report.id)
        pending = u.reports.list_reports("pending")
        reviewed = u.reports.list_reports("reviewed")
        everything = u.reports.list_reports()

    assert fetched is not None
    assert fetched.status == "reviewed"
    assert fetched.admin_notes == "seen"
    assert pending == []
    assert [r.id for r in reviewed] == [report.id]
    assert len(everything) == 1


# --- Notifications & messaging ---


def test_notifications_mark_read(uow, make_user):
    user = make_user("creator")
    stranger = make_user("fan")
    first = Notification(user_id=user.user_id, type="tip_received", title="Tip", created_at=T0)
    second = Notification(
        user_id=user.user_id,
        type="new_subscription",
        title="Sub",
        created_at=T0 + timedelta(minutes=1),
    )
    with uow(write=True) as u:
        u.notifications.add(first)
        u.notifications.add(second)

    with uow(write=True) as u:
        assert u.notifications.count_unread(user.user_id) == 2
        assert u.notifications.count_unread(stranger.user_id) == 0
        assert u.notifications.mark_read(first.id, stranger.user_id) is False
        assert u.notifications.mark_read(first.id, user.user_id) is True
        assert u.notifications.mark_all_read(user.user_id) == 1
        assert u.notifications.count_unread(user.user_id) == 0

    with uow() as u:
        listed = u.notifications.list_for_user(user.user_id)
        limited = u.notifications.list_for_user(user.user_id, limit=1)
    assert [n.id for n in listed] == [second.id, first.id]
    assert all(n.is_read for n in listed)
    assert len(limited) == 1


def test_conversation_and_messages(uow, make_user):
    alice = make_user("fan")
    bob = make_user("creator")
    conv = Conversation(
        participant_1_id=alice.user_id,
        participant_2_id=bob.user_id,
        last_message_at=T0,
        created_at=T0,
    )
    with uow(write=True) as u:
        u.conversations.add(conv)
        u.messages.add(
            Message(conversation_id=conv.id, sender_id=alice.user_id, content="hi", created_at=T0)
        )
        u.messages.add(
            Message(
                conversation_id=conv.id,
                sender_id=bob.user_id,
                content="hello",
                created_at=T0 + timedelta(minutes=1),
            )
        )
        u.conversations.touch(conv.id, T0 + timedelta(minutes=1))

    with uow(write=True) as u:
        found = u.conversations.find_between(bob.user_id, alice.user_id)
        marked = u.messages.mark_read(conv.id, alice.user_id)

    with uow() as u:
        messages = u.messages.list_for_conversation(conv.id)
        listed = u.conversations.list_for_user(bob.user_id)

    assert found is not None and found.id == conv.id
    assert found.last_message_at == T0 + timedelta(minutes=1)
    assert marked == 1
    assert [m.content for m in messages] == ["hi", "hello"]
    assert [m.is_read for m in messages] == [False, True]
    assert [c.id for c in listed] == [conv.id]


# --- Unit of work ---


def test_uow_rolls_back_on_error(uow):
    profile = Profile(username="ghost")
    with pytest.raises(RuntimeError):
        with uow(write=True) as u:
            u.profiles.save(profile)
            raise RuntimeError("boom")

    with uow() as u:
        assert u.profiles.get(profile.id) is None


def test_uow_commits_all_or_nothing(uow, make_user):
    fan = make_user("fan")
    with pytest.raises(sqlite3.IntegrityError):
        with uow(write=True) as u:
            u.tips.add(
                Tip(fan_id=fan.user_id, creator_id=fan.user_id, amount=Decimal("1"))
            )
            u.transactions.append(_transaction(uuid4()))

    with uow() as u:
        assert u.tips.list_for_creator(fan.user_id) == []
