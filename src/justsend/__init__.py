# =============================================================================
# JustSend: Send HTML Email Through Resend
# =============================================================================
#
# JustSend is a small client for the Resend transactional email API. It
# keeps several sender identities, sends HTML email with attachments, and
# remembers everything it sent.
#
# Features:
#   - Multiple sender accounts, API keys kept in the system keyring
#   - Per-account signatures
#   - HTML email with plain-text alternative and attachments
#   - Local history of sent emails, with copies of attachments
#   - XDG Base Directory compliant
#
# =============================================================================

__version__ = "0.1.0"
__app_name__ = "justsend"

# Main entry point - this is what gets called by the 'justsend' command
from justsend.app import main

__all__ = ["main", "__version__", "__app_name__"]
