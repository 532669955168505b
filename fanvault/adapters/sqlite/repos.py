import sqlite3
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

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
    ReportStatus,
    RoleAssignment,
    RoleType,
    Subscription,
    SubscriptionStatus,
    Tip,
    Transaction,
)
from fanvault.domain.errors import AlreadyExists


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _ts(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


def _opt_ts(value: datetime | None) -> str | None:
    return _ts(value) if value else None


def _parse_ts(s: str | None) -> datetime | None:
    return datetime.fromisoformat(s) if s else None


def _req_ts(s: str) -> datetime:
    return datetime.fromisoformat(s)


def _opt_uuid(s: str | None) -> UUID | None:
    return UUID(s) if s else None


def _opt_str(value: object | None) -> str | None:
    return str(value) if value is not None else None


def _is_unique_violation(exc: sqlite3.IntegrityError) -> bool:
    return "UNIQUE constraint failed" in str(exc)


class _SQLiteRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn


# --- Profiles & Roles ---


class SQLiteProfileRepo(_SQLiteRepo):
    def _row_to_profile(self, row: dict[str, Any]) -> Profile:
        return Profile(
            id=UUID(row["id"]),
            username=row["username"],
            display_name=row["display_name"],
            bio=row["bio"],
            avatar_url=row["avatar_url"],
            banner_url=row["banner_url"],
            subscription_price=Decimal(row["subscription_price"]),
            is_age_verified=bool(row["is_age_verified"]),
            is_creator_verified=bool(row["is_creator_verified"]),
            created_at=_req_ts(row["created_at"]),
            updated_at=_req_ts(row["updated_at"]),
        )

    def get(self, profile_id: UUID) -> Profile | None:
        row = self.conn.execute(
            "SELECT * FROM profiles WHERE id = ?", (str(profile_id),)
        ).fetchone()
        return self._row_to_profile(row) if row else None

    def get_by_username(self, username: str) -> Profile | None:
        row = self.conn.execute(
            "SELECT * FROM profiles WHERE username = ?", (username,)
        ).fetchone()
        return self._row_to_profile(row) if row else None

    def save(self, profile: Profile) -> Profile:
        try:
            self.conn.execute(
                """
                INSERT INTO profiles (
                    id, username, display_name, bio, avatar_url, banner_url,
                    subscription_price, is_age_verified, is_creator_verified,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    username=excluded.username,
                    display_name=excluded.display_name,
                    bio=excluded.bio,
                    avatar_url=excluded.avatar_url,
                    banner_url=excluded.banner_url,
                    subscription_price=excluded.subscription_price,
                    is_age_verified=excluded.is_age_verified,
                    is_creator_verified=excluded.is_creator_verified,
                    updated_at=excluded.updated_at
                """,
                (
                    str(profile.id),
                    profile.username,
                    profile.display_name,
                    profile.bio,
                    profile.avatar_url,
                    profile.banner_url,
                    str(profile.subscription_price),
                    int(profile.is_age_verified),
                    int(profile.is_creator_verified),
                    _ts(profile.created_at),
                    _ts(profile.updated_at),
                ),
            )
        except sqlite3.IntegrityError as e:
            if _is_unique_violation(e):
                raise AlreadyExists(f"Username '{profile.username}' is taken") from e
            raise
        return profile

    def search_creators(self, term: str, limit: int = 20) -> list[Profile]:
        escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        rows = self.conn.execute(
            """
            SELECT p.* FROM profiles p
            JOIN role_assignments r ON r.user_id = p.id AND r.role = 'creator'
            WHERE p.username LIKE ? ESCAPE '\\' OR p.display_name LIKE ? ESCAPE '\\'
            ORDER BY p.display_name, p.username
            LIMIT ?
            """,
            (pattern, pattern, limit),
        ).fetchall()
        return [self._row_to_profile(r) for r in rows]


class SQLiteRoleRepo(_SQLiteRepo):
    def roles_of(self, user_id: UUID) -> set[RoleType]:
        rows = self.conn.execute(
            "SELECT role FROM role_assignments WHERE user_id = ?", (str(user_id),)
        ).fetchall()
        return {r["role"] for r in rows}

    def grant(self, assignment: RoleAssignment) -> None:
        try:
            self.conn.execute(
                "INSERT INTO role_assignments (id, user_id, role, created_at) "
                "VALUES (?, ?, ?, ?)",
                (
                    str(assignment.id),
                    str(assignment.user_id),
                    assignment.role,
                    _ts(assignment.created_at),
                ),
            )
        except sqlite3.IntegrityError as e:
            if _is_unique_violation(e):
                raise AlreadyExists(f"Role '{assignment.role}' already granted") from e
            raise


# --- Posts ---


class SQLitePostRepo(_SQLiteRepo):
    def save(self, post: Post) -> Post:
        self.conn.execute(
            """
            INSERT INTO posts (
                id, creator_id, content, is_public, is_ppv, ppv_price,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                content=excluded.content,
                is_public=excluded.is_public,
                is_ppv=excluded.is_ppv,
                ppv_price=excluded.ppv_price,
                updated_at=excluded.updated_at
            """,
            (
                str(post.id),
                str(post.creator_id),
                post.content,
                int(post.is_public),
                int(post.is_ppv),
                _opt_str(post.ppv_price),
                _ts(post.created_at),
                _ts(post.updated_at),
            ),
        )

        self.conn.execute("DELETE FROM post_media WHERE post_id = ?", (str(post.id),))
        for i, media in enumerate(post.media):
            self.conn.execute(
                "INSERT INTO post_media (id, post_id, media_type, media_url, position) "
                "VALUES (?, ?, ?, ?, ?)",
                (str(media.id), str(post.id), media.media_type, media.media_url, i),
            )
        return post

    def get(self, post_id: UUID) -> Post | None:
        row = self.conn.execute("SELECT * FROM posts WHERE id = ?", (str(post_id),)).fetchone()
        if not row:
            return None

        media_rows = self.conn.execute(
            "SELECT * FROM post_media WHERE post_id = ? ORDER BY position ASC",
            (str(post_id),),
        ).fetchall()
        media = tuple(
            PostMedia(id=UUID(m["id"]), media_type=m["media_type"], media_url=m["media_url"])
            for m in media_rows
        )

        return Post(
            id=UUID(row["id"]),
            creator_id=UUID(row["creator_id"]),
            content=row["content"],
            media=media,
            is_public=bool(row["is_public"]),
            is_ppv=bool(row["is_ppv"]),
            ppv_price=Decimal(row["ppv_price"]) if row["ppv_price"] is not None else None,
            created_at=_req_ts(row["created_at"]),
            updated_at=_req_ts(row["updated_at"]),
        )

    def delete(self, post_id: UUID) -> None:
        # Media rows first (handles DBs without ON DELETE CASCADE)
        self.conn.execute("DELETE FROM post_media WHERE post_id = ?", (str(post_id),))
        self.conn.execute("DELETE FROM posts WHERE id = ?", (str(post_id),))

    def list_posts(
        self, creator_id: UUID | None = None, limit: int = 50, offset: int = 0
    ) -> list[Post]:
        query = "SELECT id FROM posts"
        params: list[str | int] = []
        if creator_id is not None:
            query += " WHERE creator_id = ?"
            params.append(str(creator_id))
        query += " ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        rows = self.conn.execute(query, params).fetchall()
        posts = []
        for row in rows:
            post = self.get(UUID(row["id"]))
            if post:
                posts.append(post)
        return posts


# --- Entitlement grants ---


class SQLiteSubscriptionRepo(_SQLiteRepo):
    def _row_to_subscription(self, row: dict[str, Any]) -> Subscription:
        return Subscription(
            id=UUID(row["id"]),
            fan_id=UUID(row["fan_id"]),
            creator_id=UUID(row["creator_id"]),
            status=row["status"],
            current_period_start=_parse_ts(row["current_period_start"]),
            current_period_end=_parse_ts(row["current_period_end"]),
            billing_reference=row["billing_reference"],
            created_at=_req_ts(row["created_at"]),
            updated_at=_req_ts(row["updated_at"]),
        )

    def add(self, subscription: Subscription) -> Subscription:
        try:
            self.conn.execute(
                """
                INSERT INTO subscriptions (
                    id, fan_id, creator_id, status, current_period_start,
                    current_period_end, billing_reference, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(subscription.id),
                    str(subscription.fan_id),
                    str(subscription.creator_id),
                    subscription.status,
                    _opt_ts(subscription.current_period_start),
                    _opt_ts(subscription.current_period_end),
                    subscription.billing_reference,
                    _ts(subscription.created_at),
                    _ts(subscription.updated_at),
                ),
            )
        except sqlite3.IntegrityError as e:
            if _is_unique_violation(e):
                raise AlreadyExists("An active subscription already exists") from e
            raise
        return subscription

    def set_status(
        self, subscription_id: UUID, status: SubscriptionStatus, updated_at: datetime
    ) -> None:
        self.conn.execute(
            "UPDATE subscriptions SET status = ?, updated_at = ? WHERE id = ?",
            (status, _ts(updated_at), str(subscription_id)),
        )

    def find_active(self, fan_id: UUID, creator_id: UUID) -> Subscription | None:
        row = self.conn.execute(
            "SELECT * FROM subscriptions "
            "WHERE fan_id = ? AND creator_id = ? AND status = 'active'",
            (str(fan_id), str(creator_id)),
        ).fetchone()
        return self._row_to_subscription(row) if row else None

    def list_history(self, fan_id: UUID, creator_id: UUID) -> list[Subscription]:
        rows = self.conn.execute(
            "SELECT * FROM subscriptions WHERE fan_id = ? AND creator_id = ? "
            "ORDER BY created_at ASC, rowid ASC",
            (str(fan_id), str(creator_id)),
        ).fetchall()
        return [self._row_to_subscription(r) for r in rows]

    def list_active_for_fan(self, fan_id: UUID) -> list[Subscription]:
        rows = self.conn.execute(
            "SELECT * FROM subscriptions WHERE fan_id = ? AND status = 'active' "
            "ORDER BY created_at DESC",
            (str(fan_id),),
        ).fetchall()
        return [self._row_to_subscription(r) for r in rows]

    def list_active_for_creator(self, creator_id: UUID) -> list[Subscription]:
        rows = self.conn.execute(
            "SELECT * FROM subscriptions WHERE creator_id = ? AND status = 'active' "
            "ORDER BY created_at DESC",
            (str(creator_id),),
        ).fetchall()
        return [self._row_to_subscription(r) for r in rows]


class SQLitePurchaseRepo(_SQLiteRepo):
    def _row_to_purchase(self, row: dict[str, Any]) -> PPVPurchase:
        return PPVPurchase(
            id=UUID(row["id"]),
            fan_id=UUID(row["fan_id"]),
            post_id=UUID(row["post_id"]),
            amount=Decimal(row["amount"]),
            payment_reference=row["payment_reference"],
            created_at=_req_ts(row["created_at"]),
        )

    def add(self, purchase: PPVPurchase) -> PPVPurchase:
        try:
            self.conn.execute(
                "INSERT INTO ppv_purchases "
                "(id, fan_id, post_id, amount, payment_reference, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    str(purchase.id),
                    str(purchase.fan_id),
                    str(purchase.post_id),
                    str(purchase.amount),
                    purchase.payment_reference,
                    _ts(purchase.created_at),
                ),
            )
        except sqlite3.IntegrityError as e:
            if _is_unique_violation(e):
                raise AlreadyExists("Post already purchased") from e
            raise
        return purchase

    def get(self, fan_id: UUID, post_id: UUID) -> PPVPurchase | None:
        row = self.conn.execute(
            "SELECT * FROM ppv_purchases WHERE fan_id = ? AND post_id = ?",
            (str(fan_id), str(post_id)),
        ).fetchone()
        return self._row_to_purchase(row) if row else None

    def list_for_fan(self, fan_id: UUID) -> list[PPVPurchase]:
        rows = self.conn.execute(
            "SELECT * FROM ppv_purchases WHERE fan_id = ? ORDER BY created_at DESC",
            (str(fan_id),),
        ).fetchall()
        return [self._row_to_purchase(r) for r in rows]

    def count_for_post(self, post_id: UUID) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) AS n FROM ppv_purchases WHERE post_id = ?", (str(post_id),)
        ).fetchone()
        return int(row["n"])


# --- Ledger ---


class SQLiteTransactionRepo(_SQLiteRepo):
    def _row_to_transaction(self, row: dict[str, Any]) -> Transaction:
        return Transaction(
            id=UUID(row["id"]),
            creator_id=UUID(row["creator_id"]),
            fan_id=_opt_uuid(row["fan_id"]),
            type=row["type"],
            gross_amount=Decimal(row["gross_amount"]),
            platform_fee=Decimal(row["platform_fee"]),
            net_amount=Decimal(row["net_amount"]),
            fee_percentage=Decimal(row["fee_percentage"]),
            payment_reference=row["payment_reference"],
            created_at=_req_ts(row["created_at"]),
        )

    def append(self, transaction: Transaction) -> Transaction:
        self.conn.execute(
            """
            INSERT INTO transactions (
                id, creator_id, fan_id, type, gross_amount, platform_fee,
                net_amount, fee_percentage, payment_reference, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                str(transaction.id),
                str(transaction.creator_id),
                _opt_str(transaction.fan_id),
                transaction.type,
                str(transaction.gross_amount),
                str(transaction.platform_fee),
                str(transaction.net_amount),
                str(transaction.fee_percentage),
                transaction.payment_reference,
                _ts(transaction.created_at),
            ),
        )
        return transaction

    def list_for_creator(self, creator_id: UUID) -> list[Transaction]:
        rows = self.conn.execute(
            "SELECT * FROM transactions WHERE creator_id = ? "
            "ORDER BY created_at DESC, rowid DESC",
            (str(creator_id),),
        ).fetchall()
        return [self._row_to_transaction(r) for r in rows]


class SQLiteTipRepo(_SQLiteRepo):
    def add(self, tip: Tip) -> Tip:
        self.conn.execute(
            "INSERT INTO tips "
            "(id, fan_id, creator_id, amount, message, payment_reference, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                str(tip.id),
                str(tip.fan_id),
                str(tip.creator_id),
                str(tip.amount),
                tip.message,
                tip.payment_reference,
                _ts(tip.created_at),
            ),
        )
        return tip

    def list_for_creator(self, creator_id: UUID) -> list[Tip]:
        rows = self.conn.execute(
            "SELECT * FROM tips WHERE creator_id = ? ORDER BY created_at DESC",
            (str(creator_id),),
        ).fetchall()
        return [
            Tip(
                id=UUID(r["id"]),
                fan_id=UUID(r["fan_id"]),
                creator_id=UUID(r["creator_id"]),
                amount=Decimal(r["amount"]),
                message=r["message"],
                payment_reference=r["payment_reference"],
                created_at=_req_ts(r["created_at"]),
            )
            for r in rows
        ]


# --- Platform / Moderation ---


class SQLitePlatformSettingsRepo(_SQLiteRepo):
    def get(self) -> PlatformSettings | None:
        row = self.conn.execute("SELECT * FROM platform_settings WHERE id = 1").fetchone()
        if not row:
            return None
        return PlatformSettings(
            platform_fee_percentage=Decimal(row["platform_fee_percentage"]),
            min_subscription_price=Decimal(row["min_subscription_price"]),
            max_subscription_price=Decimal(row["max_subscription_price"]),
            updated_at=_req_ts(row["updated_at"]),
        )

    def save(self, settings: PlatformSettings) -> PlatformSettings:
        self.conn.execute(
            """
            INSERT INTO platform_settings (
                id, platform_fee_percentage, min_subscription_price,
                max_subscription_price, updated_at
            ) VALUES (1, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                platform_fee_percentage=excluded.platform_fee_percentage,
                min_subscription_price=excluded.min_subscription_price,
                max_subscription_price=excluded.max_subscription_price,
                updated_at=excluded.updated_at
            """,
            (
                str(settings.platform_fee_percentage),
                str(settings.min_subscription_price),
                str(settings.max_subscription_price),
                _ts(settings.updated_at),
            ),
        )
        return settings


class SQLiteReportRepo(_SQLiteRepo):
    def _row_to_report(self, row: dict[str, Any]) -> Report:
        return Report(
            id=UUID(row["id"]),
            reporter_id=UUID(row["reporter_id"]),
            reported_user_id=_opt_uuid(row["reported_user_id"]),
            reported_post_id=_opt_uuid(row["reported_post_id"]),
            reason=row["reason"],
            status=row["status"],
            admin_notes=row["admin_notes"],
            created_at=_req_ts(row["created_at"]),
            updated_at=_req_ts(row["updated_at"]),
        )

    def add(self, report: Report) -> Report:
        return self.save(report)

    def get(self, report_id: UUID) -> Report | None:
        row = self.conn.execute(
            "SELECT * FROM reports WHERE id = ?", (str(report_id),)
        ).fetchone()
        return self._row_to_report(row) if row else None

    def save(self, report: Report) -> Report:
        self.conn.execute(
            """
            INSERT INTO reports (
                id, reporter_id, reported_user_id, reported_post_id, reason,
                status, admin_notes, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                status=excluded.status,
                admin_notes=excluded.admin_notes,
                updated_at=excluded.updated_at
            """,
            (
                str(report.id),
                str(report.reporter_id),
                _opt_str(report.reported_user_id),
                _opt_str(report.reported_post_id),
                report.reason,
                report.status,
                report.admin_notes,
                _ts(report.created_at),
                _ts(report.updated_at),
            ),
        )
        return report

    def list_reports(self, status: ReportStatus | None = None) -> list[Report]:
        if status is None:
            rows = self.conn.execute(
                "SELECT * FROM reports ORDER BY created_at DESC"
            ).fetchall()
        else:
            rows = self.conn.execute(
                "SELECT * FROM reports WHERE status = ? ORDER BY created_at DESC", (status,)
            ).fetchall()
        return [self._row_to_report(r) for r in rows]


# --- Notifications & Messaging ---


class SQLiteNotificationRepo(_SQLiteRepo):
    def add(self, notification: Notification) -> Notification:
        self.conn.execute(
            "INSERT INTO notifications "
            "(id, user_id, type, title, message, is_read, related_id, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                str(notification.id),
                str(notification.user_id),
                notification.type,
                notification.title,
                notification.message,
                int(notification.is_read),
                _opt_str(notification.related_id),
                _ts(notification.created_at),
            ),
        )
        return notification

    def list_for_user(self, user_id: UUID, limit: int = 50) -> list[Notification]:
        rows = self.conn.execute(
            "SELECT * FROM notifications WHERE user_id = ? "
            "ORDER BY created_at DESC, rowid DESC LIMIT ?",
            (str(user_id), limit),
        ).fetchall()
        return [
            Notification(
                id=UUID(r["id"]),
                user_id=UUID(r["user_id"]),
                type=r["type"],
                title=r["title"],
                message=r["message"],
                is_read=bool(r["is_read"]),
                related_id=_opt_uuid(r["related_id"]),
                created_at=_req_ts(r["created_at"]),
            )
            for r in rows
        ]

    def count_unread(self, user_id: UUID) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) AS n FROM notifications WHERE user_id = ? AND is_read = 0",
            (str(user_id),),
        ).fetchone()
        return int(row["n"])

    def mark_read(self, notification_id: UUID, user_id: UUID) -> bool:
        cursor = self.conn.execute(
            "UPDATE notifications SET is_read = 1 WHERE id = ? AND user_id = ?",
            (str(notification_id), str(user_id)),
        )
        return cursor.rowcount > 0

    def mark_all_read(self, user_id: UUID) -> int:
        cursor = self.conn.execute(
            "UPDATE notifications SET is_read = 1 WHERE user_id = ? AND is_read = 0",
            (str(user_id),),
        )
        return cursor.rowcount


class SQLiteConversationRepo(_SQLiteRepo):
    def _row_to_conversation(self, row: dict[str, Any]) -> Conversation:
        return Conversation(
            id=UUID(row["id"]),
            participant_1_id=UUID(row["participant_1_id"]),
            participant_2_id=UUID(row["participant_2_id"]),
            last_message_at=_req_ts(row["last_message_at"]),
            created_at=_req_ts(row["created_at"]),
        )

    def add(self, conversation: Conversation) -> Conversation:
        self.conn.execute(
            "INSERT INTO conversations "
            "(id, participant_1_id, participant_2_id, last_message_at, created_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (
                str(conversation.id),
                str(conversation.participant_1_id),
                str(conversation.participant_2_id),
                _ts(conversation.last_message_at),
                _ts(conversation.created_at),
            ),
        )
        return conversation

    def get(self, conversation_id: UUID) -> Conversation | None:
        row = self.conn.execute(
            "SELECT * FROM conversations WHERE id = ?", (str(conversation_id),)
        ).fetchone()
        return self._row_to_conversation(row) if row else None

    def find_between(self, user_a: UUID, user_b: UUID) -> Conversation | None:
        row = self.conn.execute(
            """
            SELECT * FROM conversations
            WHERE (participant_1_id = ? AND participant_2_id = ?)
               OR (participant_1_id = ? AND participant_2_id = ?)
            """,
            (str(user_a), str(user_b), str(user_b), str(user_a)),
        ).fetchone()
        return self._row_to_conversation(row) if row else None

    def touch(self, conversation_id: UUID, at: datetime) -> None:
        self.conn.execute(
            "UPDATE conversations SET last_message_at = ? WHERE id = ?",
            (_ts(at), str(conversation_id)),
        )

    def list_for_user(self, user_id: UUID) -> list[Conversation]:
        rows = self.conn.execute(
            "SELECT * FROM conversations WHERE participant_1_id = ? OR participant_2_id = ? "
            "ORDER BY last_message_at DESC",
            (str(user_id), str(user_id)),
        ).fetchall()
        return [self._row_to_conversation(r) for r in rows]


class SQLiteMessageRepo(_SQLiteRepo):
    def add(self, message: Message) -> Message:
        self.conn.execute(
            "INSERT INTO messages "
            "(id, conversation_id, sender_id, content, is_read, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                str(message.id),
                str(message.conversation_id),
                str(message.sender_id),
                message.content,
                int(message.is_read),
                _ts(message.created_at),
            ),
        )
        return message

    def list_for_conversation(self, conversation_id: UUID) -> list[Message]:
        rows = self.conn.execute(
            "SELECT * FROM messages WHERE conversation_id = ? "
            "ORDER BY created_at ASC, rowid ASC",
            (str(conversation_id),),
        ).fetchall()
        return [
            Message(
                id=UUID(r["id"]),
                conversation_id=UUID(r["conversation_id"]),
                sender_id=UUID(r["sender_id"]),
                content=r["content"],
                is_read=bool(r["is_read"]),
                created_at=_req_ts(r["created_at"]),
            )
            for r in rows
        ]

    def mark_read(self, conversation_id: UUID, reader_id: UUID) -> int:
        cursor = self.conn.execute(
            "UPDATE messages SET is_read = 1 "
            "WHERE conversation_id = ? AND sender_id != ? AND is_read = 0",
            (str(conversation_id), str(reader_id)),
        )
        return cursor.rowcount
