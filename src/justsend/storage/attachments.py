# =============================================================================
# Attachment Store
# =============================================================================
# Keeps a copy of every attachment that was sent, on local disk.
#
# Layout:
#     <base>/<email-id>/<filename>
#     <base>/<email-id>/<name>_1.<ext>     (second file with the same name)
#
# The database only stores paths relative to <base>, so the whole folder
# can be moved without breaking history records.
#
# File writes are NOT part of the database transaction. A crash between
# writing files and saving the SentEmail leaves an orphaned folder; see
# SentHistory.sweep_orphaned_folders() for the cleanup pass.
# =============================================================================

import logging
import shutil
from pathlib import Path

from justsend.core.message import human_size

logger = logging.getLogger(__name__)


class AttachmentStore:
    """
    Filesystem storage for attachment copies, one folder per sent email.

    Usage:
        >>> store = AttachmentStore(Path("~/.local/share/justsend/Attachments"))
        >>> path = store.save_attachment(b"%PDF...", "report.pdf", email.id)
        >>> path
        '8d3c.../report.pdf'
        >>> store.load_attachment(path)
        b'%PDF...'

    Attributes:
        base_dir: Root directory all relative paths resolve against.
    """

    def __init__(self, base_dir: Path) -> None:
        """
        Initialize the store, creating the base directory if needed.

        Args:
            base_dir: Root directory for attachment folders.
        """
        self.base_dir = Path(base_dir).expanduser()
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            # Not fatal yet - saving will report the real error
            logger.warning(f"Could not create attachments directory {self.base_dir}: {e}")

    # -------------------------------------------------------------------------
    # Email Folder Management
    # -------------------------------------------------------------------------

    def email_folder(self, email_id: str) -> Path:
        """
        Returns the folder for an email's attachments.

        Raises:
            InvalidPathError: If the id isn't a plain folder name.
        """
        if not email_id or email_id in (".", "..") or "/" in email_id or "\\" in email_id:
            raise InvalidPathError(f"Invalid email id for storage: {email_id!r}")
        return self.base_dir / email_id

    def create_email_folder(self, email_id: str) -> Path:
        """
        Create the folder for an email (and any missing parents).

        Raises:
            InvalidPathError: If the id isn't a plain folder name.
            SaveFailedError: If the folder can't be created.
        """
        folder = self.email_folder(email_id)
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SaveFailedError(f"Failed to create folder {folder}: {e}") from e
        return folder

    def delete_email_folder(self, email_id: str) -> None:
        """
        Delete an email's attachment folder and everything in it.

        Best effort: a missing folder or a failed delete is logged, never
        raised.
        """
        try:
            folder = self.email_folder(email_id)
        except InvalidPathError as e:
            logger.warning(str(e))
            return

        try:
            shutil.rmtree(folder)
            logger.debug(f"Deleted attachment folder {folder}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not delete attachment folder {folder}: {e}")

    def email_folder_ids(self) -> set[str]:
        """Returns the ids of all email folders currently on disk."""
        if not self.base_dir.is_dir():
            return set()
        return {entry.name for entry in self.base_dir.iterdir() if entry.is_dir()}

    # -------------------------------------------------------------------------
    # File Operations
    # -------------------------------------------------------------------------

    def save_attachment(self, data: bytes, filename: str, email_id: str) -> str:
        """
        Write attachment bytes into the email's folder.

        If a file with the same name already exists in the folder, "_1",
        "_2", ... is inserted before the extension until the name is free.

        Args:
            data: File content.
            filename: Original filename.
            email_id: Id of the SentEmail the file belongs to.

        Returns:
            Path of the written file relative to the base directory.

        Raises:
            InvalidPathError: If the filename or id would escape the folder.
            SaveFailedError: If the folder or file can't be written.
        """
        if not filename or Path(filename).name != filename or filename in (".", ".."):
            raise InvalidPathError(f"Invalid attachment filename: {filename!r}")

        folder = self.create_email_folder(email_id)
        target = _unique_path(folder, filename)

        try:
            target.write_bytes(data)
        except OSError as e:
            raise SaveFailedError(f"Failed to save {filename}: {e}") from e

        logger.debug(f"Saved attachment {target.name} ({human_size(len(data))})")
        return f"{email_id}/{target.name}"

    def save_attachment_from_path(self, source: Path, email_id: str) -> tuple[str, int]:
        """
        Copy a file from disk into the email's folder.

        Returns:
            (relative path, size in bytes)

        Raises:
            SaveFailedError: If the source can't be read or the copy fails.
        """
        source = Path(source)
        try:
            data = source.read_bytes()
        except OSError as e:
            raise SaveFailedError(f"Failed to read {source}: {e}") from e

        return self.save_attachment(data, source.name, email_id), len(data)

    def full_path(self, relative_path: str) -> Path:
        """
        Resolve a stored relative path to an absolute path.

        Raises:
            InvalidPathError: If the path is empty or points outside the
                              base directory.
        """
        if not relative_path:
            raise InvalidPathError("Empty attachment path")

        base = self.base_dir.resolve()
        resolved = (base / relative_path).resolve()
        if not resolved.is_relative_to(base) or resolved == base:
            raise InvalidPathError(f"Attachment path outside storage: {relative_path!r}")
        return resolved

    def load_attachment(self, relative_path: str) -> bytes:
        """
        Read a stored attachment.

        Raises:
            InvalidPathError: If the path can't be resolved.
            FileNotFoundInStoreError: If the file is gone.
        """
        path = self.full_path(relative_path)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise FileNotFoundInStoreError(f"File not found: {relative_path}") from e
        except IsADirectoryError as e:
            raise InvalidPathError(f"Not a file: {relative_path}") from e

    def delete_attachment(self, relative_path: str) -> None:
        """Delete a single stored file. Best effort, like delete_email_folder."""
        try:
            self.full_path(relative_path).unlink(missing_ok=True)
        except (InvalidPathError, OSError) as e:
            logger.warning(f"Could not delete attachment {relative_path}: {e}")

    # -------------------------------------------------------------------------
    # Utilities
    # -------------------------------------------------------------------------

    def total_storage_used(self) -> int:
        """
        Total size in bytes of everything under the base directory.

        Only used for display; nothing enforces a quota.
        """
        if not self.base_dir.is_dir():
            return 0

        total = 0
        for path in self.base_dir.rglob("*"):
            try:
                if path.is_file():
                    total += path.stat().st_size
            except OSError:
                # File vanished mid-walk
                continue
        return total

    def formatted_storage_used(self) -> str:
        """Returns total_storage_used() in human-readable form."""
        return human_size(self.total_storage_used())


def _unique_path(folder: Path, filename: str) -> Path:
    """
    Returns folder/filename, or folder/name_N.ext for the first free N.
    """
    candidate = folder / filename
    if not candidate.exists():
        return candidate

    # "archive.tar.gz" -> "archive.tar" + ".gz", ".env" keeps no extension
    stem, suffix = Path(filename).stem, Path(filename).suffix
    counter = 1
    while candidate.exists():
        candidate = folder / f"{stem}_{counter}{suffix}"
        counter += 1
    return candidate


# =============================================================================
# Exceptions
# =============================================================================

class StorageError(Exception):
    """Base exception for attachment storage."""
    pass


class InvalidPathError(StorageError):
    """Raised when a storage path can't be resolved safely."""
    pass


class FileNotFoundInStoreError(InvalidPathError):
    """Raised when a stored attachment file no longer exists."""
    pass


class SaveFailedError(StorageError):
    """Raised when a file or folder can't be written."""
    pass
