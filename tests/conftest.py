# =============================================================================
# Pytest Configuration and Fixtures
# =============================================================================
# Shared fixtures for the JustSend test suite.
#
# Nothing here touches the real keyring, the real Resend API, or the user's
# data directory: API keys go to an in-memory store, HTTP goes through
# httpx.MockTransport, and the database and attachments live in tmp_path.
# =============================================================================

import json
from datetime import datetime

import httpx
import pytest
import pytest_asyncio
from keyring.errors import KeyringError

from justsend.composer import EmailComposer
from justsend.core import SenderAccount, SentEmail, StoredAttachment
from justsend.resend import ResendClient
from justsend.storage import AttachmentStore, Database, Repository


class MemorySecretStore:
    """In-memory stand-in for SecretStore with the same interface."""

    def __init__(self) -> None:
        self.keys: dict[str, str] = {}
        self.fail_set = False
        self.fail_delete = False

    def get(self, account_id: str) -> str | None:
        return self.keys.get(account_id)

    def set(self, account_id: str, api_key: str) -> None:
        if self.fail_set:
            raise KeyringError("No recommended backend was available")
        self.keys[account_id] = api_key

    def delete(self, account_id: str) -> bool:
        if self.fail_delete:
            return False
        self.keys.pop(account_id, None)
        return True


class FakeResendAPI:
    """
    Records requests and answers them like the Resend /emails endpoint.

    Set `status` and `body` to change the next responses; set `error` to
    raise an httpx exception instead of answering.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status = 200
        self.body: object = {"id": "msg_12345"}
        self.error: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.body, (dict, list)):
            return httpx.Response(self.status, json=self.body)
        return httpx.Response(self.status, content=self.body or b"")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def payloads(self) -> list[dict]:
        return [json.loads(request.content) for request in self.requests]


@pytest.fixture
def fake_api():
    """A fake Resend API; pass fake_api.transport to ResendClient."""
    return FakeResendAPI()


@pytest.fixture
def secret_store():
    """Empty in-memory API key store."""
    return MemorySecretStore()


@pytest.fixture
def attachment_store(tmp_path):
    """AttachmentStore rooted in a temporary directory."""
    return AttachmentStore(tmp_path / "Attachments")


@pytest_asyncio.fixture
async def database(tmp_path):
    """Connected Database on a temporary file."""
    db = Database(tmp_path / "justsend.db")
    await db.connect()
    yield db
    await db.close()


@pytest.fixture
def repository(database):
    """Repository over the temporary database."""
    return Repository(database)


@pytest.fixture
def client_factory(fake_api):
    """Builds ResendClients that talk to the fake API."""
    def factory(api_key: str) -> ResendClient:
        return ResendClient(api_key, transport=fake_api.transport)
    return factory


@pytest.fixture
def composer(repository, attachment_store, secret_store, client_factory):
    """EmailComposer wired to fakes, with no account selected."""
    return EmailComposer(
        repository,
        attachment_store,
        secret_store,
        client_factory=client_factory,
    )


@pytest.fixture
def sample_account():
    """Create a sample SenderAccount for testing."""
    return SenderAccount(
        website_name="My Shop",
        email_address="hello@myshop.com",
        signature="Best,\nThe My Shop team",
        is_default=True,
    )


@pytest.fixture
def sample_sent_email():
    """Create a sample SentEmail with one attachment record."""
    return SentEmail(
        from_address="hello@myshop.com",
        to=["customer@example.com"],
        cc=["boss@myshop.com"],
        subject="Your invoice",
        html_content="<p>Invoice attached.</p>",
        text_content="Invoice attached.",
        sent_at=datetime(2024, 1, 15, 10, 30, 0),
        resend_id="msg_abc",
        attachments=[
            StoredAttachment(
                filename="invoice.pdf",
                content_type="application/pdf",
                file_size=1234,
                local_path="placeholder/invoice.pdf",
            )
        ],
    )


@pytest.fixture
def sample_html_email():
    """Sample HTML email content for rendering tests."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
        <style>
            body { font-family: Arial, sans-serif; }
            .header { background: #4a90d9; color: white; padding: 20px; }
        </style>
    </head>
    <body>
        <div class="header">
            <h1>Your order has shipped</h1>
        </div>
        <p>Hello <strong>Anna</strong>,</p>
        <ul>
            <li>1 x Mug</li>
            <li>2 x Spoon</li>
        </ul>
        <p>Track it <a href="https://example.com/track">here</a>.</p>
        <script>alert("hi")</script>
    </body>
    </html>
    """
