# =============================================================================
# Database Connection and Schema Management
# =============================================================================
# Manages SQLite database connection and schema migrations.
#
# Schema overview:
#   - sender_accounts: Sender identities (API keys are in the keyring)
#   - sent_emails: History of emails accepted by Resend
#   - stored_attachments: Metadata for attachment copies on disk
#
# Relationships:
#   - sent_emails.sender_account_id -> sender_accounts  ON DELETE SET NULL
#     (deleting an account keeps its history)
#   - stored_attachments.sent_email_id -> sent_emails   ON DELETE CASCADE
#
# Uses aiosqlite for async operations, with WAL mode for better
# concurrent performance.
# =============================================================================

import aiosqlite
from pathlib import Path

from justsend.config import Config


# Current schema version - increment when making schema changes
SCHEMA_VERSION = 1


class Database:
    """
    Manages the SQLite database connection and schema.

    This class handles:
        - A single shared connection
        - Schema creation and migrations
        - Enabling SQLite options (WAL mode, foreign keys)

    Usage:
        >>> db = Database()
        >>> await db.connect()
        >>> async with db.conn.execute("SELECT ...") as cursor:
        ...     rows = await cursor.fetchall()
        >>> await db.close()

    Attributes:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        """
        Initialize the database manager.

        Args:
            db_path: Path to database file. Defaults to XDG data location.
        """
        self.db_path = db_path or Config.database_path()
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """
        Open the database connection and ensure schema is up to date.

        Creates the database file if it doesn't exist.
        Runs any pending migrations.
        """
        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # Open connection
        self._connection = await aiosqlite.connect(self.db_path)

        # Enable foreign keys (off by default in SQLite) - the cascade and
        # set-null rules depend on it
        await self._connection.execute("PRAGMA foreign_keys = ON")

        # Enable WAL mode for better concurrent performance
        await self._connection.execute("PRAGMA journal_mode = WAL")

        # Initialize or migrate schema
        await self._init_schema()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def conn(self) -> aiosqlite.Connection:
        """
        Get the active database connection.

        Raises:
            RuntimeError: If not connected.
        """
        if self._connection is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    async def _init_schema(self) -> None:
        """
        Initialize the database schema.

        Creates tables if they don't exist, runs migrations if needed.
        """
        # Check current schema version
        try:
            async with self.conn.execute(
                "SELECT version FROM schema_version"
            ) as cursor:
                row = await cursor.fetchone()
                current_version = row[0] if row else 0
        except aiosqlite.OperationalError:
            # Table doesn't exist, this is a fresh database
            current_version = 0

        if current_version < SCHEMA_VERSION:
            await self._create_schema()
            await self._run_migrations(current_version)

    async def _create_schema(self) -> None:
        """Create the database schema from scratch."""
        schema = """
        -- Schema version tracking
        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER PRIMARY KEY
        );

        -- Sender identities
        CREATE TABLE IF NOT EXISTS sender_accounts (
            id TEXT PRIMARY KEY,
            website_name TEXT NOT NULL,
            email_address TEXT NOT NULL,
            signature TEXT,
            created_at TEXT NOT NULL,
            is_default INTEGER NOT NULL DEFAULT 0
        );

        -- Sent email history
        CREATE TABLE IF NOT EXISTS sent_emails (
            id TEXT PRIMARY KEY,
            from_address TEXT NOT NULL,
            recipients TEXT NOT NULL,   -- JSON array
            cc TEXT,                    -- JSON array or NULL
            bcc TEXT,                   -- JSON array or NULL
            subject TEXT NOT NULL,
            html_content TEXT NOT NULL,
            text_content TEXT,
            sent_at TEXT NOT NULL,
            resend_id TEXT,
            sender_account_id TEXT
                REFERENCES sender_accounts(id) ON DELETE SET NULL
        );

        -- Attachment copies (files live in the attachment store)
        CREATE TABLE IF NOT EXISTS stored_attachments (
            id TEXT PRIMARY KEY,
            sent_email_id TEXT NOT NULL
                REFERENCES sent_emails(id) ON DELETE CASCADE,
            filename TEXT NOT NULL,
            content_type TEXT,
            file_size INTEGER NOT NULL,
            local_path TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        -- Indexes for common queries
        CREATE INDEX IF NOT EXISTS idx_accounts_created ON sender_accounts(created_at DESC);
        CREATE INDEX IF NOT EXISTS idx_sent_emails_date ON sent_emails(sent_at DESC);
        CREATE INDEX IF NOT EXISTS idx_sent_emails_account ON sent_emails(sender_account_id);
        CREATE INDEX IF NOT EXISTS idx_attachments_email ON stored_attachments(sent_email_id);
        """

        # Execute schema creation
        await self.conn.executescript(schema)

        # Set schema version
        await self.conn.execute(
            "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
            (SCHEMA_VERSION,)
        )
        await self.conn.commit()

    async def _run_migrations(self, from_version: int) -> None:
        """
        Run schema migrations from the given version to current.

        Args:
            from_version: Version to migrate from.
        """
        # No migrations yet - we're at version 1
        pass
