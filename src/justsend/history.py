# =============================================================================
# Sent History
# =============================================================================
# Browsing and cleaning up the local record of sent emails.
#
# Deleting an email touches two places: the attachment folder on disk and
# the database row (whose CASCADE removes the attachment rows). The folder
# goes first; if the row delete then fails, the record survives with
# missing files rather than leaving files nothing points to.
# =============================================================================

import logging
from collections import defaultdict
from datetime import date
from typing import TYPE_CHECKING

from justsend.core import SentEmail

if TYPE_CHECKING:
    from justsend.storage import AttachmentStore, Repository

logger = logging.getLogger(__name__)


class SentHistory:
    """
    Sent email history with search, deletion and statistics.

    Usage:
        >>> history = SentHistory(repo, attachment_store)
        >>> await history.refresh(search="invoice")
        >>> for day, emails in history.emails_by_date():
        ...     print(day, len(emails))
        >>> await history.delete_email(history.emails[0])

    Attributes:
        emails: Loaded emails, newest first.
        search: The search text used by the last refresh().
    """

    def __init__(
        self,
        repository: "Repository",
        attachment_store: "AttachmentStore",
    ) -> None:
        self.repository = repository
        self.attachment_store = attachment_store
        self.emails: list[SentEmail] = []
        self.search = ""

    async def refresh(self, search: str | None = None) -> list[SentEmail]:
        """
        Reload emails from the database.

        Args:
            search: Case-insensitive text matched against subject, From and
                    To. None keeps the previous search.
        """
        if search is not None:
            self.search = search
        self.emails = await self.repository.get_sent_emails(search=self.search)
        return self.emails

    async def get(self, email_id: str) -> SentEmail | None:
        """Look up one email by id or unique id prefix."""
        email = await self.repository.get_sent_email(email_id)
        if email is not None:
            return email

        matches = [e for e in await self.repository.get_sent_emails() if e.id.startswith(email_id)]
        return matches[0] if email_id and len(matches) == 1 else None

    async def delete_email(self, email: SentEmail) -> None:
        """Delete an email's attachment files and its record."""
        self.attachment_store.delete_email_folder(email.id)
        await self.repository.delete_sent_email(email.id)
        logger.info(f"Deleted sent email {email.id}")
        await self.refresh()

    async def delete_all(self) -> int:
        """
        Delete every email in history, ignoring the current search.

        Returns:
            Number of emails deleted.
        """
        emails = await self.repository.get_sent_emails()
        for email in emails:
            self.attachment_store.delete_email_folder(email.id)
            await self.repository.delete_sent_email(email.id)

        logger.info(f"Deleted {len(emails)} sent emails")
        await self.refresh()
        return len(emails)

    async def sweep_orphaned_folders(self) -> list[str]:
        """
        Delete attachment folders that have no sent email record.

        These are left behind when the app stops between writing the files
        and saving the record, or when that save fails.

        Returns:
            Ids of the folders that were removed.
        """
        known = await self.repository.get_sent_email_ids()
        orphans = sorted(self.attachment_store.email_folder_ids() - known)

        for email_id in orphans:
            self.attachment_store.delete_email_folder(email_id)

        if orphans:
            logger.info(f"Removed {len(orphans)} orphaned attachment folders")
        return orphans

    # -------------------------------------------------------------------------
    # Grouping and Statistics
    # -------------------------------------------------------------------------

    def emails_by_date(self) -> list[tuple[date, list[SentEmail]]]:
        """
        Loaded emails grouped by the day they were sent, newest day first.
        """
        groups: dict[date, list[SentEmail]] = defaultdict(list)
        for email in self.emails:
            groups[email.sent_at.date()].append(email)
        return sorted(groups.items(), key=lambda item: item[0], reverse=True)

    @property
    def total_emails_sent(self) -> int:
        return len(self.emails)

    @property
    def total_attachments(self) -> int:
        return sum(email.attachment_count for email in self.emails)

    @property
    def storage_used(self) -> str:
        """Disk space used by attachment copies, human-readable."""
        return self.attachment_store.formatted_storage_used()
