# =============================================================================
# Repository - Data Access Layer
# =============================================================================
# Provides high-level CRUD operations for all domain models.
#
# This is the main interface between the application logic and the database.
# It handles:
#   - Converting between domain models and database rows
#   - Queries (history search, ordering)
#   - Transaction management (one commit per public method)
#
# All methods are async for non-blocking database access.
# =============================================================================

import json
from datetime import datetime
from typing import TYPE_CHECKING

from justsend.core import SenderAccount, SentEmail, StoredAttachment

if TYPE_CHECKING:
    from justsend.storage.database import Database


class Repository:
    """
    Data access layer for JustSend.

    Provides CRUD operations for all domain models, abstracting away
    the SQLite details.

    Usage:
        >>> repo = Repository(database)
        >>> accounts = await repo.get_all_accounts()
        >>> await repo.save_sent_email(email)
        >>> history = await repo.get_sent_emails(search="invoice")

    Attributes:
        db: Database instance for executing queries.
    """

    def __init__(self, db: "Database") -> None:
        """
        Initialize the repository.

        Args:
            db: Connected Database instance.
        """
        self.db = db

    # =========================================================================
    # Sender Account Operations
    # =========================================================================

    async def get_all_accounts(self) -> list[SenderAccount]:
        """
        Get all sender accounts, newest first.

        Returns:
            List of SenderAccount objects.
        """
        async with self.db.conn.execute(
            "SELECT * FROM sender_accounts ORDER BY created_at DESC, rowid DESC"
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_account(row) for row in rows]

    async def get_account(self, account_id: str) -> SenderAccount | None:
        """
        Get an account by ID.

        Args:
            account_id: Primary key of the account.

        Returns:
            SenderAccount if found, None otherwise.
        """
        async with self.db.conn.execute(
            "SELECT * FROM sender_accounts WHERE id = ?", (account_id,)
        ) as cursor:
            row = await cursor.fetchone()
            return self._row_to_account(row) if row else None

    async def save_account(self, account: SenderAccount) -> SenderAccount:
        """
        Save an account (insert or update).

        Args:
            account: Account to save.

        Returns:
            The saved account.
        """
        await self._upsert_account(account)
        await self.db.conn.commit()
        return account

    async def save_accounts(self, accounts: list[SenderAccount]) -> None:
        """
        Save several accounts in a single transaction.

        Used when moving the default flag, so the database never holds two
        defaults at once.
        """
        for account in accounts:
            await self._upsert_account(account)
        await self.db.conn.commit()

    async def _upsert_account(self, account: SenderAccount) -> None:
        await self.db.conn.execute(
            """INSERT INTO sender_accounts
               (id, website_name, email_address, signature, created_at, is_default)
               VALUES (?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                   website_name=excluded.website_name,
                   email_address=excluded.email_address,
                   signature=excluded.signature,
                   is_default=excluded.is_default""",
            (account.id, account.website_name, account.email_address,
             account.signature, account.created_at.isoformat(),
             1 if account.is_default else 0)
        )

    async def delete_account(self, account_id: str) -> None:
        """
        Delete an account.

        Sent emails keep their history; SET NULL clears their link.

        Args:
            account_id: ID of account to delete.
        """
        await self.db.conn.execute(
            "DELETE FROM sender_accounts WHERE id = ?", (account_id,)
        )
        await self.db.conn.commit()

    def _row_to_account(self, row) -> SenderAccount:
        """Convert a database row to a SenderAccount object."""
        return SenderAccount(
            id=row[0],
            website_name=row[1],
            email_address=row[2],
            signature=row[3],
            created_at=datetime.fromisoformat(row[4]),
            is_default=bool(row[5]),
        )

    # =========================================================================
    # Sent Email Operations
    # =========================================================================

    async def get_sent_emails(
        self,
        *,
        search: str = "",
        limit: int | None = None,
    ) -> list[SentEmail]:
        """
        Get sent email history, newest first, with attachments loaded.

        Args:
            search: Case-insensitive substring matched against subject,
                    From and To. Empty returns everything.
            limit: Maximum number of emails to return.

        Returns:
            List of SentEmail objects.
        """
        query = "SELECT * FROM sent_emails"
        params: list = []

        if search:
            pattern = f"%{_escape_like(search.lower())}%"
            query += (
                " WHERE lower(subject) LIKE ? ESCAPE '\\'"
                " OR lower(from_address) LIKE ? ESCAPE '\\'"
                " OR lower(recipients) LIKE ? ESCAPE '\\'"
            )
            params.extend([pattern, pattern, pattern])

        query += " ORDER BY sent_at DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        async with self.db.conn.execute(query, params) as cursor:
            rows = await cursor.fetchall()
            emails = [self._row_to_sent_email(row) for row in rows]

        for email in emails:
            email.attachments = await self._get_attachments(email.id)

        return emails

    async def get_sent_email(self, email_id: str) -> SentEmail | None:
        """
        Get a single sent email with its attachments.

        Args:
            email_id: Primary key of the email.

        Returns:
            SentEmail if found, None otherwise.
        """
        async with self.db.conn.execute(
            "SELECT * FROM sent_emails WHERE id = ?", (email_id,)
        ) as cursor:
            row = await cursor.fetchone()
            if not row:
                return None

            email = self._row_to_sent_email(row)

        email.attachments = await self._get_attachments(email_id)
        return email

    async def save_sent_email(self, email: SentEmail) -> SentEmail:
        """
        Insert a sent email and its attachment records in one transaction.

        Sent emails are immutable history, so there is no update path.

        Args:
            email: Email to insert.

        Returns:
            The saved email.
        """
        try:
            await self.db.conn.execute(
                """INSERT INTO sent_emails
                   (id, from_address, recipients, cc, bcc, subject,
                    html_content, text_content, sent_at, resend_id,
                    sender_account_id)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (email.id, email.from_address, json.dumps(email.to),
                 json.dumps(email.cc) if email.cc is not None else None,
                 json.dumps(email.bcc) if email.bcc is not None else None,
                 email.subject, email.html_content, email.text_content,
                 email.sent_at.isoformat(), email.resend_id,
                 email.sender_account_id)
            )

            for att in email.attachments:
                await self.db.conn.execute(
                    """INSERT INTO stored_attachments
                       (id, sent_email_id, filename, content_type, file_size,
                        local_path, created_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    (att.id, email.id, att.filename, att.content_type,
                     att.file_size, att.local_path, att.created_at.isoformat())
                )

            await self.db.conn.commit()
        except Exception:
            await self.db.conn.rollback()
            raise

        return email

    async def delete_sent_email(self, email_id: str) -> None:
        """
        Delete a sent email. CASCADE removes its attachment records.

        The attachment files are NOT touched; callers delete the folder.

        Args:
            email_id: ID of email to delete.
        """
        await self.db.conn.execute(
            "DELETE FROM sent_emails WHERE id = ?", (email_id,)
        )
        await self.db.conn.commit()

    async def get_sent_email_ids(self) -> set[str]:
        """Get the ids of every sent email (used to spot orphaned folders)."""
        async with self.db.conn.execute("SELECT id FROM sent_emails") as cursor:
            rows = await cursor.fetchall()
            return {row[0] for row in rows}

    async def get_sent_email_count(self) -> int:
        """Get the total number of sent emails."""
        async with self.db.conn.execute("SELECT COUNT(*) FROM sent_emails") as cursor:
            row = await cursor.fetchone()
            return row[0] if row else 0

    async def get_attachment_count(self) -> int:
        """Get the total number of stored attachment records."""
        async with self.db.conn.execute(
            "SELECT COUNT(*) FROM stored_attachments"
        ) as cursor:
            row = await cursor.fetchone()
            return row[0] if row else 0

    async def _get_attachments(self, email_id: str) -> list[StoredAttachment]:
        """Load attachment records for an email."""
        async with self.db.conn.execute(
            "SELECT * FROM stored_attachments WHERE sent_email_id = ? ORDER BY rowid",
            (email_id,)
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_attachment(row) for row in rows]

    def _row_to_sent_email(self, row) -> SentEmail:
        """Convert a database row to a SentEmail object."""
        return SentEmail(
            id=row[0],
            from_address=row[1],
            to=json.loads(row[2]) if row[2] else [],
            cc=json.loads(row[3]) if row[3] is not None else None,
            bcc=json.loads(row[4]) if row[4] is not None else None,
            subject=row[5],
            html_content=row[6],
            text_content=row[7],
            sent_at=datetime.fromisoformat(row[8]),
            resend_id=row[9],
            sender_account_id=row[10],
        )

    def _row_to_attachment(self, row) -> StoredAttachment:
        """Convert a database row to a StoredAttachment object."""
        # row[1] is sent_email_id, implied by the owning SentEmail
        return StoredAttachment(
            id=row[0],
            filename=row[2],
            content_type=row[3],
            file_size=row[4],
            local_path=row[5],
            created_at=datetime.fromisoformat(row[6]),
        )


def _escape_like(text: str) -> str:
    """Escape LIKE wildcards so user text matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
