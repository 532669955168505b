import logging
import sqlite3
from types import TracebackType

from .repos import (
    SQLiteConversationRepo,
    SQLiteMessageRepo,
    SQLiteNotificationRepo,
    SQLitePlatformSettingsRepo,
    SQLitePostRepo,
    SQLiteProfileRepo,
    SQLitePurchaseRepo,
    SQLiteReportRepo,
    SQLiteRoleRepo,
    SQLiteSubscriptionRepo,
    SQLiteTipRepo,
    SQLiteTransactionRepo,
    dict_factory,
)

logger = logging.getLogger(__name__)


class SQLiteUnitOfWork:
    """
    One SQLite transaction shared by every repository it exposes.

    Write units start with BEGIN IMMEDIATE so the database write lock is
    taken up front; two writers never interleave their reads and inserts.
    """

    profiles: SQLiteProfileRepo
    roles: SQLiteRoleRepo
    posts: SQLitePostRepo
    subscriptions: SQLiteSubscriptionRepo
    purchases: SQLitePurchaseRepo
    transactions: SQLiteTransactionRepo
    tips: SQLiteTipRepo
    settings: SQLitePlatformSettingsRepo
    reports: SQLiteReportRepo
    notifications: SQLiteNotificationRepo
    conversations: SQLiteConversationRepo
    messages: SQLiteMessageRepo

    def __init__(self, db_path: str, write: bool = False, timeout: float = 30.0):
        self.db_path = db_path
        self.write = write
        self.timeout = timeout
        self.conn: sqlite3.Connection | None = None

    def __enter__(self) -> "SQLiteUnitOfWork":
        conn = sqlite3.connect(
            self.db_path,
            timeout=self.timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute("BEGIN IMMEDIATE" if self.write else "BEGIN")
        self.conn = conn

        self.profiles = SQLiteProfileRepo(conn)
        self.roles = SQLiteRoleRepo(conn)
        self.posts = SQLitePostRepo(conn)
        self.subscriptions = SQLiteSubscriptionRepo(conn)
        self.purchases = SQLitePurchaseRepo(conn)
        self.transactions = SQLiteTransactionRepo(conn)
        self.tips = SQLiteTipRepo(conn)
        self.settings = SQLitePlatformSettingsRepo(conn)
        self.reports = SQLiteReportRepo(conn)
        self.notifications = SQLiteNotificationRepo(conn)
        self.conversations = SQLiteConversationRepo(conn)
        self.messages = SQLiteMessageRepo(conn)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        conn = self.conn
        if conn is None:
            return
        try:
            if exc_type is None:
                conn.execute("COMMIT")
            else:
                logger.debug("Rolling back unit of work: %s", exc_type.__name__)
                conn.execute("ROLLBACK")
        finally:
            conn.close()
            self.conn = None


class SQLiteUnitOfWorkFactory:
    def __init__(self, db_path: str, timeout: float = 30.0):
        self.db_path = db_path
        self.timeout = timeout

    def __call__(self, *, write: bool = False) -> SQLiteUnitOfWork:
        return SQLiteUnitOfWork(self.db_path, write=write, timeout=self.timeout)
