# =============================================================================
# Input Validation
# =============================================================================
# Format checks shared by the composer and the account manager.
#
# The email pattern is deliberately conservative. It rejects some addresses
# RFC 5322 allows (quoted local parts, IP literals), which is fine for
# sender and recipient fields typed by hand.
# =============================================================================

import re

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")

# Every Resend API key starts with this prefix
API_KEY_PREFIX = "re_"
API_KEY_MIN_LENGTH = 11


def is_valid_email_format(email: str) -> bool:
    """Returns True if the string looks like a single email address."""
    # fullmatch so a trailing newline doesn't sneak past "$"
    return EMAIL_PATTERN.fullmatch(email) is not None


def is_valid_api_key_format(api_key: str) -> bool:
    """
    Returns True if the string looks like a Resend API key.

    A key must start with "re_" and be longer than 10 characters. This is a
    format check only; whether the key works is up to the API.
    """
    return api_key.startswith(API_KEY_PREFIX) and len(api_key) >= API_KEY_MIN_LENGTH


def parse_recipient_list(text: str) -> list[str] | None:
    """
    Split a comma-separated address field into addresses.

    Whitespace around each address is trimmed and empty entries dropped.

    Returns:
        The list of addresses, or None if the field held no addresses.
        None means "not provided", which keeps the key out of the API
        payload entirely.

    Example:
        >>> parse_recipient_list(" a@x.com, ,b@y.org ")
        ['a@x.com', 'b@y.org']
        >>> parse_recipient_list("  ") is None
        True
    """
    addresses = [part.strip() for part in text.split(",")]
    addresses = [address for address in addresses if address]
    return addresses or None
