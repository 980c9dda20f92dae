# =============================================================================
# Account Manager
# =============================================================================
# CRUD over sender accounts, plus the rules the database doesn't enforce:
#
#   - The first account ever added becomes the default
#   - At most one account is the default; setting a new default clears the
#     flag everywhere else first
#   - Deleting the default promotes the first remaining account
#   - Deleting an account also deletes its API key from the keyring
#
# Accounts are kept newest first, so "the first remaining account" is the
# most recently added one.
# =============================================================================

import logging
from typing import TYPE_CHECKING

from justsend.core import SenderAccount, is_valid_api_key_format, is_valid_email_format

if TYPE_CHECKING:
    from justsend.storage import Repository, SecretStore

logger = logging.getLogger(__name__)


class AccountManager:
    """
    Manages sender accounts and their API keys.

    Usage:
        >>> manager = AccountManager(repo, SecretStore())
        >>> await manager.refresh()
        >>> account = await manager.add_account(
        ...     "My Shop", "hello@myshop.com", "re_123456789", signature="Cheers"
        ... )
        >>> manager.default_account is account
        True

    Attributes:
        accounts: Loaded accounts, newest first. Call refresh() to reload.
    """

    def __init__(self, repository: "Repository", secret_store: "SecretStore") -> None:
        """
        Initialize the manager.

        Args:
            repository: Where account records are stored.
            secret_store: Where API keys are stored.
        """
        self.repository = repository
        self.secret_store = secret_store
        self.accounts: list[SenderAccount] = []

    async def refresh(self) -> list[SenderAccount]:
        """Reload accounts from the database."""
        self.accounts = await self.repository.get_all_accounts()
        return self.accounts

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    async def add_account(
        self,
        website_name: str,
        email_address: str,
        api_key: str,
        signature: str | None = None,
    ) -> SenderAccount:
        """
        Add a sender account and store its API key.

        The account becomes the default if it is the first one.

        Raises:
            AccountError: If the website name is blank or the address invalid.
            KeyringError: If the API key can't be stored.
        """
        website_name, email_address = self._check_input(website_name, email_address)

        # The default rule depends on what's in the database right now
        await self.refresh()

        account = SenderAccount(
            website_name=website_name,
            email_address=email_address,
            signature=signature or None,
            is_default=not self.accounts,
        )

        # Key first: if the keyring refuses it, nothing has been saved
        if api_key:
            self.secret_store.set(account.id, api_key)
        try:
            await self.repository.save_account(account)
        except Exception:
            if api_key:
                self.secret_store.delete(account.id)
            raise

        logger.info(f"account_added website_domain={account.domain}")
        await self.refresh()
        return account

    async def update_account(
        self,
        account: SenderAccount,
        website_name: str,
        email_address: str,
        api_key: str,
        signature: str | None,
    ) -> SenderAccount:
        """
        Update an account's details and replace its API key.

        An empty api_key leaves the stored key as it is.

        Raises:
            AccountError: If the website name is blank or the address invalid.
            KeyringError: If the API key can't be stored.
        """
        website_name, email_address = self._check_input(website_name, email_address)

        if api_key:
            self.secret_store.set(account.id, api_key)

        account.website_name = website_name
        account.email_address = email_address
        account.signature = signature or None
        await self.repository.save_account(account)

        logger.info(f"Updated account {account.id}")
        await self.refresh()
        return account

    async def delete_account(self, account: SenderAccount) -> None:
        """
        Delete an account and its API key.

        Sent emails from this account stay in history. If the account was
        the default, the first remaining account becomes the default.
        """
        if not self.secret_store.delete(account.id):
            logger.warning(f"API key for account {account.id} may still be in the keyring")

        await self.repository.delete_account(account.id)
        logger.info(f"Deleted account {account.id}")
        await self.refresh()

        if account.is_default and self.accounts:
            await self.set_as_default(self.accounts[0])

    async def set_as_default(self, account: SenderAccount) -> None:
        """
        Make an account the default and clear the flag on all others.
        """
        for other in self.accounts:
            other.is_default = False
        account.is_default = True

        # Saved together so the database never holds two defaults
        changed = [a for a in self.accounts if a.id != account.id] + [account]
        await self.repository.save_accounts(changed)

        logger.info(f"Default account is now {account.id}")
        await self.refresh()

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @property
    def default_account(self) -> SenderAccount | None:
        """The default account, else the first account, else None."""
        for account in self.accounts:
            if account.is_default:
                return account
        return self.accounts[0] if self.accounts else None

    def find(self, identifier: str) -> SenderAccount | None:
        """
        Find an account by id, unique id prefix, or email address.

        Returns:
            The matching account, or None if there is no unique match.
        """
        for account in self.accounts:
            if account.id == identifier:
                return account

        by_email = [
            a for a in self.accounts
            if a.email_address.casefold() == identifier.casefold()
        ]
        if len(by_email) == 1:
            return by_email[0]

        by_prefix = [a for a in self.accounts if a.id.startswith(identifier)]
        if identifier and len(by_prefix) == 1:
            return by_prefix[0]

        return None

    def get_api_key(self, account: SenderAccount) -> str | None:
        """The account's API key from the keyring, if any."""
        return self.secret_store.get(account.id)

    def _find_by_website_name(self, website_name: str) -> SenderAccount | None:
        wanted = website_name.casefold()
        for account in self.accounts:
            if account.website_name.casefold() == wanted:
                return account
        return None

    def get_existing_api_key(self, website_name: str) -> str | None:
        """
        API key of an existing account with the same website name
        (case-insensitive), to pre-fill a new address on the same site.
        """
        account = self._find_by_website_name(website_name)
        return self.get_api_key(account) if account else None

    def get_existing_domain(self, website_name: str) -> str | None:
        """
        Email domain of an existing account with the same website name
        (case-insensitive).
        """
        account = self._find_by_website_name(website_name)
        return account.domain if account else None

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    @staticmethod
    def validate_api_key_format(api_key: str) -> bool:
        """True if the key starts with "re_" and is longer than 10 characters."""
        return is_valid_api_key_format(api_key)

    @staticmethod
    def validate_email_format(email: str) -> bool:
        """True if the string looks like an email address."""
        return is_valid_email_format(email)

    def _check_input(self, website_name: str, email_address: str) -> tuple[str, str]:
        website_name = website_name.strip()
        email_address = email_address.strip()

        if not website_name:
            raise AccountError("Website name is required")
        if not self.validate_email_format(email_address):
            raise AccountError(f"Invalid email address: {email_address!r}")

        return website_name, email_address


# =============================================================================
# Exceptions
# =============================================================================

class AccountError(Exception):
    """Raised when account details are rejected."""
    pass
