# =============================================================================
# JustSend Core Module
# =============================================================================
# This module contains the core domain models for JustSend. These are pure
# Python dataclasses with no external dependencies, so they can be imported
# anywhere without causing circular dependency issues.
#
# The core models represent the fundamental concepts:
#   - SenderAccount: A From identity (address, signature; key in keyring)
#   - EmailAttachment: A file queued for sending
#   - SentEmail: History record of a sent email
#   - StoredAttachment: Local copy of a sent attachment
# =============================================================================

from justsend.core.account import SenderAccount
from justsend.core.message import (
    EmailAttachment,
    SentEmail,
    StoredAttachment,
    guess_content_type,
    human_size,
)
from justsend.core.validation import (
    is_valid_api_key_format,
    is_valid_email_format,
    parse_recipient_list,
)

__all__ = [
    "SenderAccount",
    "EmailAttachment",
    "SentEmail",
    "StoredAttachment",
    "guess_content_type",
    "human_size",
    "is_valid_api_key_format",
    "is_valid_email_format",
    "parse_recipient_list",
]
