# =============================================================================
# Secret Store
# =============================================================================
# Keeps Resend API keys in the system keyring (macOS Keychain, Secret
# Service, Windows Credential Locker, ...) via the 'keyring' library.
#
# Keys are stored under a single service name with the account id as the
# username, so they can be inspected from the keyring CLI if needed:
#     keyring get justsend:api-keys <account-id>
#
# The store is a plain object handed to whoever needs it. Tests swap in an
# in-memory object with the same three methods.
# =============================================================================

import logging

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

logger = logging.getLogger(__name__)

SERVICE_NAME = "justsend:api-keys"


class SecretStore:
    """
    API key storage backed by the system keyring.

    Usage:
        >>> secrets = SecretStore()
        >>> secrets.set(account.id, "re_123456789")
        >>> secrets.get(account.id)
        're_123456789'
        >>> secrets.delete(account.id)
        True

    Attributes:
        service_name: Keyring service all keys are stored under.
    """

    def __init__(self, service_name: str = SERVICE_NAME) -> None:
        self.service_name = service_name

    def get(self, account_id: str) -> str | None:
        """
        Look up the API key for an account.

        Returns:
            The key, or None if none is stored or the keyring is unavailable.
        """
        try:
            return keyring.get_password(self.service_name, account_id)
        except KeyringError as e:
            logger.warning(f"Could not read API key from keyring: {e}")
            return None

    def set(self, account_id: str, api_key: str) -> None:
        """
        Store (or replace) the API key for an account.

        Raises:
            KeyringError: If the keyring refuses the write.
        """
        keyring.set_password(self.service_name, account_id, api_key)

    def delete(self, account_id: str) -> bool:
        """
        Remove the API key for an account.

        Returns:
            True if the key was removed or there was nothing to remove,
            False if the keyring failed.
        """
        try:
            keyring.delete_password(self.service_name, account_id)
        except PasswordDeleteError:
            # Nothing stored - already in the state we want
            return True
        except KeyringError as e:
            logger.warning(f"Could not delete API key from keyring: {e}")
            return False
        return True
