# =============================================================================
# Accounts Module
# =============================================================================
# Sender account management: add/update/delete, default selection, API key
# storage in the keyring, and input format checks.
# =============================================================================

from justsend.accounts.manager import AccountError, AccountManager

__all__ = ["AccountManager", "AccountError"]
