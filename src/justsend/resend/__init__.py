# =============================================================================
# Resend Module
# =============================================================================
# Handles sending email through the Resend REST API.
#
# Features:
#   - Typed request with optional fields omitted from the payload
#   - Base64 attachments
#   - Error mapping (API error body vs. bare HTTP status vs. transport)
# =============================================================================

from justsend.resend.client import (
    DEFAULT_BASE_URL,
    ApiError,
    AttachmentError,
    HttpError,
    InvalidRequestError,
    InvalidResponseError,
    MissingCredentialError,
    ResendClient,
    ResendError,
    SendEmailRequest,
    SendEmailResponse,
    TransportError,
)

__all__ = [
    "DEFAULT_BASE_URL",
    "ResendClient",
    "SendEmailRequest",
    "SendEmailResponse",
    "ResendError",
    "MissingCredentialError",
    "InvalidRequestError",
    "InvalidResponseError",
    "TransportError",
    "AttachmentError",
    "HttpError",
    "ApiError",
]
