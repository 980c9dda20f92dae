# =============================================================================
# Sender Account Model
# =============================================================================
# Represents a sender identity: a verified From-address on a Resend domain,
# plus an optional plain-text signature.
#
# IMPORTANT: API keys are NOT stored here. They live in the system keyring,
# keyed by the account id, and are reached through the AccountManager. This
# keeps credentials out of the database file.
# =============================================================================

import uuid
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class SenderAccount:
    """
    Represents a sender account used for outbound mail.

    Attributes:
        website_name: Display name for the account, usually the website or
                      product the domain belongs to (e.g., "My Shop").
                      Several accounts may share a website name with
                      different addresses on the same domain.
        email_address: The From address. Must be on a domain verified in
                       Resend for sends to succeed.
        signature: Optional plain-text signature appended to the composed
                   body when the account is selected.
        id: Unique identifier (UUID string). Also the keyring username
            under which the API key is stored.
        created_at: When the account was added.
        is_default: Whether this is the account selected on startup. At most
                    one account has this set; the AccountManager enforces it.

    Example:
        >>> account = SenderAccount(
        ...     website_name="My Shop",
        ...     email_address="hello@myshop.com",
        ...     signature="Best,\\nThe My Shop team",
        ... )
    """

    website_name: str
    email_address: str
    signature: str | None = None

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.now)
    is_default: bool = False

    @property
    def domain(self) -> str | None:
        """
        Returns the domain part of the email address, or None if the
        address has no '@'.
        """
        parts = self.email_address.split("@")
        return parts[-1] if len(parts) > 1 else None

    @property
    def has_signature(self) -> bool:
        """Returns True if the account has a non-empty signature."""
        return bool(self.signature)

    def __str__(self) -> str:
        """Human-readable representation showing website name and address."""
        return f"{self.website_name} <{self.email_address}>"

    def __repr__(self) -> str:
        """Developer-friendly representation with key fields."""
        return (
            f"SenderAccount(id={self.id!r}, website_name={self.website_name!r}, "
            f"email_address={self.email_address!r}, is_default={self.is_default})"
        )
