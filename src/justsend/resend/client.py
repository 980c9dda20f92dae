# =============================================================================
# Resend API Client
# =============================================================================
# Provides an async client for the Resend transactional email API.
#
# Key responsibilities:
#   - Building the JSON payload for POST /emails (typed request, optional
#     fields omitted rather than sent as null)
#   - Bearer authentication with the account's API key
#   - Mapping HTTP responses onto a small error hierarchy
#
# Exactly one request per send. There is no retry and no queueing: if the
# request fails, the caller decides what to tell the user.
#
# Uses httpx for async HTTP.
# =============================================================================

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from justsend.core.message import EmailAttachment

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.resend.com"


@dataclass
class SendEmailRequest:
    """
    A single outbound email, shaped like the Resend /emails request.

    Required fields are plain attributes; optional fields default to None.
    to_payload() drops every optional field that is None or empty, so the
    API never sees "cc": [] or "text": null.

    Attributes:
        from_address: Sender address ("from" in the payload).
        to: Recipient addresses. Must not be empty.
        subject: Subject line.
        html: HTML body.
        text: Plain-text alternative.
        cc: CC addresses.
        bcc: BCC addresses.
        reply_to: Reply-To addresses ("reply_to" in the payload).
        attachments: Files to attach, already base64-encoded.
    """
    from_address: str
    to: list[str]
    subject: str
    html: str
    text: str | None = None
    cc: list[str] | None = None
    bcc: list[str] | None = None
    reply_to: list[str] | None = None
    attachments: list[EmailAttachment] | None = None

    def to_payload(self) -> dict[str, Any]:
        """
        Build the JSON body for POST /emails.

        Example:
            >>> SendEmailRequest("a@x.com", ["b@y.com"], "Hi", "<p>Hi</p>", cc=[]).to_payload()
            {'from': 'a@x.com', 'to': ['b@y.com'], 'subject': 'Hi', 'html': '<p>Hi</p>'}
        """
        payload: dict[str, Any] = {
            "from": self.from_address,
            "to": list(self.to),
            "subject": self.subject,
            "html": self.html,
        }

        if self.text:
            payload["text"] = self.text
        if self.cc:
            payload["cc"] = list(self.cc)
        if self.bcc:
            payload["bcc"] = list(self.bcc)
        if self.reply_to:
            payload["reply_to"] = list(self.reply_to)
        if self.attachments:
            payload["attachments"] = [
                _attachment_payload(attachment) for attachment in self.attachments
            ]

        return payload


def _attachment_payload(attachment: EmailAttachment) -> dict[str, str]:
    item = {
        "filename": attachment.filename,
        "content": attachment.content,
    }
    if attachment.content_type:
        item["content_type"] = attachment.content_type
    return item


@dataclass
class SendEmailResponse:
    """
    Successful response from POST /emails.

    Attributes:
        id: Resend's id for the accepted message.
    """
    id: str


class ResendClient:
    """
    Async client for sending email through Resend.

    The API key is fixed for the lifetime of the client; create a new
    client when the active sender account changes.

    Usage:
        >>> client = ResendClient("re_123456789")
        >>> response = await client.send(
        ...     from_address="hello@myshop.com",
        ...     to=["customer@example.com"],
        ...     subject="Your order",
        ...     html="<p>Thanks!</p>",
        ... )
        >>> response.id
        'msg_...'

    Attributes:
        base_url: Root URL of the API.
        timeout: Request timeout in seconds, or None to wait indefinitely.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: Resend API key (sent as a bearer token).
            base_url: Root URL of the API.
            timeout: Request timeout in seconds. None disables it.
            transport: Optional httpx transport (used by tests to fake the API).
        """
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def endpoint(self) -> str:
        """Full URL of the send endpoint."""
        return f"{self.base_url}/emails"

    async def send(
        self,
        from_address: str,
        to: list[str],
        subject: str,
        html: str,
        *,
        text: str | None = None,
        cc: list[str] | None = None,
        bcc: list[str] | None = None,
        reply_to: list[str] | None = None,
        attachments: list[EmailAttachment] | None = None,
    ) -> SendEmailResponse:
        """Keyword form of send_email()."""
        return await self.send_email(
            SendEmailRequest(
                from_address=from_address,
                to=to,
                subject=subject,
                html=html,
                text=text,
                cc=cc,
                bcc=bcc,
                reply_to=reply_to,
                attachments=attachments,
            )
        )

    async def send_email(self, request: SendEmailRequest) -> SendEmailResponse:
        """
        Send an email.

        Args:
            request: The email to send.

        Returns:
            The response holding Resend's message id.

        Raises:
            MissingCredentialError: If the client has no API key.
            InvalidRequestError: If the request has no recipients.
            TransportError: If the request never got a response.
            InvalidResponseError: If a success response can't be decoded.
            ApiError: If the API rejected the request with an error body.
            HttpError: If the API failed without a readable error body.
        """
        if not self._api_key:
            raise MissingCredentialError(
                "API key is missing. Please configure your Resend API key."
            )

        if not request.to:
            raise InvalidRequestError("No recipients specified")

        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        logger.info(f"Sending email to {', '.join(request.to)} via {self.endpoint}")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            ) as http:
                response = await http.post(
                    self.endpoint,
                    headers=headers,
                    json=request.to_payload(),
                )
        except httpx.DecodingError as e:
            # Body arrived but couldn't be decoded (bad content-encoding)
            logger.error(f"Undecodable response from Resend: {e}")
            raise InvalidResponseError(
                "Received an invalid response from the server."
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Failed to reach Resend: {e}")
            raise TransportError(f"Could not reach the email service: {e}") from e

        return self._parse_response(response)

    def _parse_response(self, response: httpx.Response) -> SendEmailResponse:
        """
        Turn an HTTP response into a SendEmailResponse or an exception.
        """
        status = response.status_code

        if status in (200, 201):
            try:
                data = response.json()
            except ValueError as e:
                raise InvalidResponseError(
                    "Received an invalid response from the server."
                ) from e

            message_id = data.get("id") if isinstance(data, dict) else None
            if not isinstance(message_id, str):
                raise InvalidResponseError(
                    "Received an invalid response from the server."
                )

            logger.info(f"Email accepted by Resend: {message_id}")
            return SendEmailResponse(id=message_id)

        # Error path - prefer the structured body when there is one
        error = _parse_error_body(response)
        if error is not None:
            message, name = error
            logger.error(f"Resend rejected email ({status} {name or ''}): {message}")
            raise ApiError(status, message, name)

        logger.error(f"Resend returned HTTP {status} without an error body")
        raise HttpError(status)


def _parse_error_body(response: httpx.Response) -> tuple[str, str | None] | None:
    """
    Decode a Resend error body {"statusCode"?, "message", "name"?}.

    Returns:
        (message, name) if the body has that shape, None otherwise.
    """
    try:
        data = response.json()
    except ValueError:
        return None

    if not isinstance(data, dict) or not isinstance(data.get("message"), str):
        return None

    name = data.get("name")
    return data["message"], name if isinstance(name, str) else None


# =============================================================================
# Exceptions
# =============================================================================

class ResendError(Exception):
    """Base exception for email API operations."""
    pass


class MissingCredentialError(ResendError):
    """Raised when no API key is configured for the sender."""
    pass


class InvalidRequestError(ResendError):
    """Raised when a request is rejected locally before being sent."""
    pass


class InvalidResponseError(ResendError):
    """Raised when the server's response can't be understood."""
    pass


class TransportError(ResendError):
    """Raised when the request fails before a response arrives."""
    pass


class AttachmentError(ResendError):
    """Raised when a file can't be read or encoded as an attachment."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Attachment error: {message}")
        self.message = message


class HttpError(ResendError):
    """Raised for a non-success status with no readable error body."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP error with status code: {status_code}")
        self.status_code = status_code


class ApiError(ResendError):
    """
    Raised when the API returns a structured error.

    str(error) is the API's own message, which is already written for
    humans (e.g., "Invalid API key").
    """

    def __init__(self, status_code: int, message: str, name: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.name = name
