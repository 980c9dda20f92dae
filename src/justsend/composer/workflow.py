# =============================================================================
# Composer Workflow
# =============================================================================
# Holds the state of the email being written and runs the send pipeline:
#
#   1. Check that a sender account (with an API key) is selected
#   2. Validate the form
#   3. Derive the plain-text alternative from the HTML body
#   4. POST to Resend (the only step that decides success)
#   5. Save a SentEmail record, copying attachments into the AttachmentStore
#   6. Clear the form
#
# Step 5 is best effort. Once Resend has accepted the email it is sent, so
# a failure to write local history is logged and the user is still told the
# email went out. A failure in step 4 leaves the form untouched.
# =============================================================================

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from justsend.composer.signature import append_signature, strip_signature
from justsend.core import (
    EmailAttachment,
    SenderAccount,
    SentEmail,
    StoredAttachment,
    is_valid_email_format,
    parse_recipient_list,
)
from justsend.rendering import extract_plain_text
from justsend.resend import AttachmentError, ResendClient, ResendError

if TYPE_CHECKING:
    from justsend.storage import AttachmentStore, Repository, SecretStore

logger = logging.getLogger(__name__)

# Resend's limit for the whole email is about 40MB after base64 encoding
DEFAULT_ATTACHMENT_SOFT_LIMIT = 40 * 1024 * 1024

ClientFactory = Callable[[str], ResendClient]


@dataclass
class Alert:
    """
    A message for the user about the last action.

    Attributes:
        title: Short heading ("Success", "Error").
        message: Human-readable description.
    """
    title: str
    message: str

    @property
    def is_error(self) -> bool:
        return self.title != "Success"


@dataclass
class SendResult:
    """
    Outcome of a successful send.

    Attributes:
        resend_id: Message id returned by Resend.
        sent_email: The history record, or None if it couldn't be saved.
    """
    resend_id: str
    sent_email: SentEmail | None


class NoAccountSelectedError(Exception):
    """Raised when sending without a sender account that has an API key."""

    def __init__(self) -> None:
        super().__init__("No sender account selected. Please select an account first.")


class EmailComposer:
    """
    State and send pipeline for one email being composed.

    The form fields are plain attributes, set directly by the front end.
    `is_sending` is an advisory flag for the front end to disable its send
    button; it does not lock out concurrent calls to send().

    Usage:
        >>> composer = EmailComposer(repo, attachment_store, secrets)
        >>> composer.select_account(manager.default_account)
        >>> composer.to = "customer@example.com"
        >>> composer.subject = "Your order"
        >>> composer.html_content = "<p>Thanks!</p>" + composer.html_content
        >>> result = await composer.send()
        >>> composer.alert.title
        'Success'

    Attributes:
        to: Recipient address (single address).
        from_address: Sender address, set from the selected account.
        subject: Subject line.
        cc: Comma-separated CC addresses.
        bcc: Comma-separated BCC addresses.
        reply_to: Comma-separated Reply-To addresses.
        html_content: HTML body, including the signature block if any.
        attachments: Files queued for sending.
        selected_account: Current sender account.
        is_sending: True while a send is in progress.
        alert: Result of the last send, for display.
    """

    def __init__(
        self,
        repository: "Repository",
        attachment_store: "AttachmentStore",
        secret_store: "SecretStore",
        *,
        client_factory: ClientFactory = ResendClient,
        attachment_soft_limit: int = DEFAULT_ATTACHMENT_SOFT_LIMIT,
    ) -> None:
        """
        Initialize the composer.

        Args:
            repository: Where sent emails are recorded.
            attachment_store: Where attachment copies are written.
            secret_store: Where API keys are read from.
            client_factory: Builds an API client from an API key.
            attachment_soft_limit: Advisory total attachment size in bytes.
        """
        self.repository = repository
        self.attachment_store = attachment_store
        self.secret_store = secret_store
        self.client_factory = client_factory
        self.attachment_soft_limit = attachment_soft_limit

        # Form fields
        self.to = ""
        self.from_address = ""
        self.subject = ""
        self.cc = ""
        self.bcc = ""
        self.reply_to = ""
        self.html_content = ""
        self.attachments: list[EmailAttachment] = []

        # State
        self.selected_account: SenderAccount | None = None
        self.is_sending = False
        self.alert: Alert | None = None

        self._client: ResendClient | None = None

    # -------------------------------------------------------------------------
    # Account Selection
    # -------------------------------------------------------------------------

    def select_account(self, account: SenderAccount | None) -> None:
        """
        Switch the sender account.

        Removes the previous account's signature block if the body still
        ends with it, then sets From and appends the new account's
        signature block.

        Args:
            account: New sender, or None to deselect.
        """
        previous = self.selected_account
        if previous is not None:
            self.html_content = strip_signature(self.html_content, previous.signature)

        self.selected_account = account
        self._client = None

        if account is None:
            return

        self.from_address = account.email_address

        api_key = self.secret_store.get(account.id)
        if api_key:
            self._client = self.client_factory(api_key)
        else:
            logger.warning(f"No API key stored for {account.email_address}")

        self.html_content = append_signature(self.html_content, account.signature)

    @property
    def has_client(self) -> bool:
        """True when a send can be attempted (account with an API key)."""
        return self._client is not None

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    @property
    def is_valid(self) -> bool:
        """
        True when the form can be sent: To, From, subject and body are all
        filled in and To and From look like email addresses.
        """
        return (
            bool(self.to)
            and bool(self.from_address)
            and bool(self.subject)
            and bool(self.html_content)
            and is_valid_email_format(self.to)
            and is_valid_email_format(self.from_address)
        )

    @staticmethod
    def parse_recipient_list(text: str) -> list[str] | None:
        """See justsend.core.validation.parse_recipient_list."""
        return parse_recipient_list(text)

    def extract_plain_text(self) -> str:
        """Plain-text rendering of the current body."""
        return extract_plain_text(self.html_content)

    # -------------------------------------------------------------------------
    # Attachments
    # -------------------------------------------------------------------------

    def add_attachment(self, attachment: EmailAttachment) -> None:
        """Queue an attachment. Duplicates are allowed."""
        self.attachments.append(attachment)

    def add_attachment_from_path(self, path: Path | str) -> EmailAttachment:
        """
        Read a file and queue it as an attachment.

        Raises:
            AttachmentError: If the file can't be read.
        """
        try:
            attachment = EmailAttachment.from_path(path)
        except OSError as e:
            raise AttachmentError(f"Could not read {path}: {e.strerror or e}") from e

        self.add_attachment(attachment)
        if self.attachments_over_soft_limit:
            logger.warning(
                f"Attachments total {self.total_attachment_size} bytes, "
                f"over the {self.attachment_soft_limit} byte guideline"
            )
        return attachment

    def remove_attachment(self, index: int) -> None:
        """Remove the attachment at index. Out-of-range indexes are ignored."""
        if 0 <= index < len(self.attachments):
            del self.attachments[index]

    @property
    def total_attachment_size(self) -> int:
        """Decoded size of all queued attachments, in bytes."""
        return sum(attachment.size for attachment in self.attachments)

    @property
    def attachments_over_soft_limit(self) -> bool:
        """True if the attachments exceed the advisory size limit."""
        return self.total_attachment_size > self.attachment_soft_limit

    # -------------------------------------------------------------------------
    # Sending
    # -------------------------------------------------------------------------

    async def send(self) -> SendResult | None:
        """
        Send the composed email and record it in history.

        The outcome is also left in self.alert for display.

        Returns:
            SendResult on success, None if nothing was sent.
        """
        if self._client is None:
            error = NoAccountSelectedError()
            self.alert = Alert("Error", str(error))
            logger.warning(str(error))
            return None

        if not self.is_valid:
            self.alert = Alert(
                "Error",
                "Please fill in To, Subject and the message, using valid email addresses.",
            )
            return None

        self.is_sending = True
        try:
            plain_text = self.extract_plain_text()
            cc = parse_recipient_list(self.cc)
            bcc = parse_recipient_list(self.bcc)

            try:
                response = await self._client.send(
                    from_address=self.from_address,
                    to=[self.to],
                    subject=self.subject,
                    html=self.html_content,
                    text=plain_text,
                    cc=cc,
                    bcc=bcc,
                    reply_to=parse_recipient_list(self.reply_to),
                    attachments=self.attachments or None,
                )
            except ResendError as e:
                logger.error(f"Failed to send email: {e}")
                self.alert = Alert("Error", str(e))
                return None

            sent_email = await self._save_to_history(response.id, plain_text, cc, bcc)

            recipient_count = 1 + len(cc or []) + len(bcc or [])
            logger.info(
                f"email_sent has_attachments={bool(self.attachments)} "
                f"recipient_count={recipient_count}"
            )

            self.alert = Alert("Success", "Your email has been sent successfully!")
            self.clear_form()
            return SendResult(resend_id=response.id, sent_email=sent_email)
        finally:
            self.is_sending = False

    async def _save_to_history(
        self,
        resend_id: str,
        plain_text: str,
        cc: list[str] | None,
        bcc: list[str] | None,
    ) -> SentEmail | None:
        """
        Record the sent email, copying attachments to local storage.

        Never raises: the email is already sent. A failing attachment is
        logged and skipped. A failing record save (database error, closed
        connection) is logged; files already written stay on disk.

        Returns:
            The saved SentEmail, or None if the record couldn't be saved.
        """
        email_id = str(uuid.uuid4())
        stored: list[StoredAttachment] = []

        for attachment in self.attachments:
            try:
                data = attachment.decoded()
                local_path = self.attachment_store.save_attachment(
                    data, attachment.filename, email_id
                )
            except Exception as e:
                # Sent already; the copy is only for history
                logger.error(f"Failed to save attachment {attachment.filename!r}: {e}")
                continue

            stored.append(
                StoredAttachment(
                    filename=attachment.filename,
                    content_type=attachment.content_type,
                    file_size=len(data),
                    local_path=local_path,
                )
            )

        sent_email = SentEmail(
            id=email_id,
            from_address=self.from_address,
            to=[self.to],
            cc=cc,
            bcc=bcc,
            subject=self.subject,
            html_content=self.html_content,
            text_content=plain_text,
            resend_id=resend_id,
            attachments=stored,
            sender_account_id=self.selected_account.id if self.selected_account else None,
        )

        try:
            await self.repository.save_sent_email(sent_email)
        except Exception as e:
            logger.error(f"Failed to save sent email {email_id} to history: {e}")
            return None

        return sent_email

    def clear_form(self) -> None:
        """Reset everything except the sender account and From."""
        self.to = ""
        self.subject = ""
        self.cc = ""
        self.bcc = ""
        self.reply_to = ""
        self.html_content = ""
        self.attachments = []
