# =============================================================================
# Storage Module
# =============================================================================
# Handles everything JustSend keeps on this machine.
#
# Provides:
#   - Database: SQLite connection and schema (accounts, sent emails,
#     attachment records) via aiosqlite
#   - Repository: CRUD operations over the database
#   - AttachmentStore: attachment copies on disk, one folder per email
#   - SecretStore: API keys in the system keyring
#
# The database is stored in the XDG data directory (~/.local/share/justsend/).
# =============================================================================

from justsend.storage.attachments import (
    AttachmentStore,
    FileNotFoundInStoreError,
    InvalidPathError,
    SaveFailedError,
    StorageError,
)
from justsend.storage.database import Database
from justsend.storage.repository import Repository
from justsend.storage.secrets import SecretStore

__all__ = [
    "AttachmentStore",
    "Database",
    "Repository",
    "SecretStore",
    "StorageError",
    "InvalidPathError",
    "FileNotFoundInStoreError",
    "SaveFailedError",
]
