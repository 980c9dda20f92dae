# =============================================================================
# Message Models
# =============================================================================
# Models for outbound email and its local history:
#   - EmailAttachment: a file queued in the composer, base64-encoded and
#     ready to go into the API payload
#   - SentEmail: the immutable history record of a dispatched message
#   - StoredAttachment: metadata for an attachment copy kept on local disk
#
# A SentEmail owns its StoredAttachments (deleting the email deletes them).
# The attachment bytes themselves live in the AttachmentStore, not in the
# database; StoredAttachment.local_path is the only link between the two.
# =============================================================================

import base64
import binascii
import mimetypes
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path


# Fallback MIME type when the extension is unknown
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def human_size(size: float) -> str:
    """
    Returns a human-readable file size.

    Examples:
        - 500 -> "500 B"
        - 1536 -> "1.5 KB"
        - 1500000 -> "1.4 MB"
    """
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024:
            return f"{size:.1f} {unit}" if size != int(size) else f"{int(size)} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def guess_content_type(filename: str) -> str:
    """Guess a MIME type from a filename, falling back to octet-stream."""
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or DEFAULT_CONTENT_TYPE


@dataclass
class EmailAttachment:
    """
    A file attached to an email that is being composed.

    The content is kept base64-encoded because that is what the Resend API
    expects in the request body.

    Attributes:
        filename: Name the recipient will see.
        content: Base64-encoded file content.
        content_type: MIME type (e.g., "application/pdf"). Optional; Resend
                      infers it from the filename when absent.
    """
    filename: str
    content: str
    content_type: str | None = None

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        filename: str,
        content_type: str | None = None,
    ) -> "EmailAttachment":
        """Create an attachment from raw bytes."""
        return cls(
            filename=filename,
            content=base64.b64encode(data).decode("ascii"),
            content_type=content_type,
        )

    @classmethod
    def from_path(cls, path: Path | str) -> "EmailAttachment":
        """
        Create an attachment from a file on disk.

        The MIME type is guessed from the file extension.

        Raises:
            OSError: If the file can't be read.
        """
        path = Path(path)
        data = path.read_bytes()
        return cls.from_bytes(data, path.name, guess_content_type(path.name))

    def decoded(self) -> bytes:
        """
        Returns the original file bytes.

        Raises:
            ValueError: If the content is not valid base64.
        """
        try:
            return base64.b64decode(self.content, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Attachment {self.filename!r} is not valid base64") from e

    @property
    def size(self) -> int:
        """Decoded size in bytes, computed from the base64 length."""
        padding = self.content.count("=", max(len(self.content) - 2, 0))
        return (len(self.content) * 3) // 4 - padding


@dataclass
class StoredAttachment:
    """
    Metadata for an attachment copy persisted alongside a SentEmail.

    Attributes:
        filename: Original filename as it was sent.
        file_size: Size in bytes.
        local_path: Path relative to the attachments base directory
                    (e.g., "<email-id>/report_1.pdf"). Relative so the base
                    directory can move without invalidating records.
        content_type: MIME type, if known.
        id: Unique identifier (UUID string).
        created_at: When the copy was written.
    """
    filename: str
    file_size: int
    local_path: str
    content_type: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def human_size(self) -> str:
        """Returns the file size in human-readable form."""
        return human_size(self.file_size)

    @property
    def is_image(self) -> bool:
        """Returns True if this attachment is an image."""
        return bool(self.content_type and self.content_type.startswith("image/"))


@dataclass
class SentEmail:
    """
    History record of an email accepted by Resend.

    Created only after the remote send succeeded and never modified
    afterwards. Deleting one must also delete its attachment folder; the
    database doesn't know about the files.

    Attributes:
        from_address: The From address used.
        to: Recipient addresses.
        subject: Subject line.
        html_content: HTML body as sent.
        cc: CC addresses, or None when none were given.
        bcc: BCC addresses, or None when none were given.
        text_content: Plain-text fallback that was sent, if any.
        sent_at: When the send completed.
        resend_id: Message id returned by Resend.
        attachments: Locally stored attachment copies (owned).
        sender_account_id: Account used to send. Becomes None if that
                           account is later deleted; the history remains.
        id: Unique identifier (UUID string). Also the name of the
            attachment folder on disk.
    """
    from_address: str
    to: list[str]
    subject: str
    html_content: str
    cc: list[str] | None = None
    bcc: list[str] | None = None
    text_content: str | None = None
    sent_at: datetime = field(default_factory=datetime.now)
    resend_id: str | None = None
    attachments: list[StoredAttachment] = field(default_factory=list)
    sender_account_id: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def recipients_summary(self) -> str:
        """Comma-separated list of To addresses."""
        return ", ".join(self.to)

    @property
    def has_attachments(self) -> bool:
        """Returns True if any attachment copies were stored."""
        return len(self.attachments) > 0

    @property
    def attachment_count(self) -> int:
        return len(self.attachments)

    def __str__(self) -> str:
        """Human-readable representation."""
        return f"{self.sent_at:%Y-%m-%d %H:%M} {self.recipients_summary}: {self.subject}"
