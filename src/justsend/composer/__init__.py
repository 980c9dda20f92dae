# =============================================================================
# Composer Module
# =============================================================================
# Writing and sending an email:
#   - EmailComposer: form state, validation, send-then-record pipeline
#   - Signature blocks appended/removed when the sender changes
# =============================================================================

from justsend.composer.signature import (
    SIGNATURE_SEPARATOR,
    append_signature,
    render_signature,
    strip_signature,
)
from justsend.composer.workflow import (
    Alert,
    EmailComposer,
    NoAccountSelectedError,
    SendResult,
)

__all__ = [
    "EmailComposer",
    "Alert",
    "SendResult",
    "NoAccountSelectedError",
    "SIGNATURE_SEPARATOR",
    "render_signature",
    "strip_signature",
    "append_signature",
]
