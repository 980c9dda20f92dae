# =============================================================================
# Tests for the composer workflow
# =============================================================================

import pytest
import pytest_asyncio

from justsend.composer import EmailComposer
from justsend.core import EmailAttachment, SenderAccount
from justsend.resend import AttachmentError

SIGNATURE_BLOCK = "<br><br>--<br>Best,<br>The My Shop team"


@pytest_asyncio.fixture
async def account(repository, secret_store, sample_account):
    """The sample account, saved and with an API key."""
    await repository.save_account(sample_account)
    secret_store.set(sample_account.id, "re_123456789")
    return sample_account


def fill_form(composer, to="customer@example.com"):
    composer.to = to
    composer.subject = "Your order"
    composer.html_content = "<p>Thanks for your order!</p>" + composer.html_content


class TestAccountSelection:

    def test_sets_from_and_signature(self, composer, account):
        composer.select_account(account)

        assert composer.from_address == "hello@myshop.com"
        assert composer.html_content == SIGNATURE_BLOCK
        assert composer.has_client

    def test_switching_replaces_signature(self, composer, account):
        other = SenderAccount("Blog", "me@blog.com", signature="Cheers")
        composer.select_account(account)
        composer.html_content = "<p>Hi</p>" + composer.html_content

        composer.select_account(other)

        assert composer.html_content == "<p>Hi</p><br><br>--<br>Cheers"
        assert composer.from_address == "me@blog.com"

    def test_edited_signature_is_left_alone(self, composer, account):
        other = SenderAccount("Blog", "me@blog.com")
        composer.select_account(account)
        composer.html_content += "<p>P.S.</p>"

        composer.select_account(other)

        assert composer.html_content == SIGNATURE_BLOCK + "<p>P.S.</p>"

    def test_account_without_signature(self, composer, secret_store):
        plain = SenderAccount("Blog", "me@blog.com")
        secret_store.set(plain.id, "re_123456789")
        composer.html_content = "<p>Hi</p>"

        composer.select_account(plain)
        assert composer.html_content == "<p>Hi</p>"

    def test_account_without_key_has_no_client(self, composer, account):
        keyless = SenderAccount("Blog", "me@blog.com")
        composer.select_account(account)

        composer.select_account(keyless)
        assert not composer.has_client

    def test_deselect(self, composer, account):
        composer.select_account(account)
        composer.select_account(None)

        assert composer.selected_account is None
        assert not composer.has_client
        assert composer.html_content == ""


class TestValidation:

    def test_valid_form(self, composer, account):
        composer.select_account(account)
        fill_form(composer)
        assert composer.is_valid

    @pytest.mark.parametrize("field,value", [
        ("to", ""),
        ("to", "invalid"),
        ("to", "a@x.com, b@y.com"),
        ("subject", ""),
        ("html_content", ""),
        ("from_address", "not-an-address"),
    ])
    def test_invalid_form(self, composer, account, field, value):
        composer.select_account(account)
        fill_form(composer)
        setattr(composer, field, value)
        assert not composer.is_valid

    def test_plain_text_extraction(self, composer):
        composer.html_content = "<p>Hello <b>World</b></p>"
        assert composer.extract_plain_text() == "Hello World"

    def test_parse_recipient_list(self):
        assert EmailComposer.parse_recipient_list("a@x.com,  b@y.com") == ["a@x.com", "b@y.com"]
        assert EmailComposer.parse_recipient_list(" ") is None


class TestAttachments:

    def test_add_from_path(self, composer, tmp_path):
        path = tmp_path / "report.pdf"
        path.write_bytes(b"%PDF-1.4")

        attachment = composer.add_attachment_from_path(path)

        assert composer.attachments == [attachment]
        assert composer.total_attachment_size == 8

    def test_add_missing_file(self, composer, tmp_path):
        with pytest.raises(AttachmentError):
            composer.add_attachment_from_path(tmp_path / "missing.pdf")
        assert composer.attachments == []

    def test_duplicates_allowed(self, composer):
        attachment = EmailAttachment.from_bytes(b"x", "a.txt")
        composer.add_attachment(attachment)
        composer.add_attachment(attachment)
        assert len(composer.attachments) == 2

    def test_remove(self, composer):
        composer.add_attachment(EmailAttachment.from_bytes(b"a", "a.txt"))
        composer.add_attachment(EmailAttachment.from_bytes(b"b", "b.txt"))

        composer.remove_attachment(5)
        composer.remove_attachment(-1)
        assert len(composer.attachments) == 2

        composer.remove_attachment(0)
        assert [a.filename for a in composer.attachments] == ["b.txt"]

    def test_soft_limit_warns_but_keeps(self, repository, attachment_store, secret_store, tmp_path):
        composer = EmailComposer(repository, attachment_store, secret_store, attachment_soft_limit=4)
        path = tmp_path / "big.bin"
        path.write_bytes(b"x" * 10)

        composer.add_attachment_from_path(path)

        assert composer.attachments_over_soft_limit
        assert len(composer.attachments) == 1


class TestSendPreconditions:

    async def test_no_account(self, composer, fake_api):
        fill_form(composer)
        composer.from_address = "hello@myshop.com"

        assert await composer.send() is None
        assert composer.alert.title == "Error"
        assert composer.alert.message == "No sender account selected. Please select an account first."
        assert fake_api.requests == []

    async def test_account_without_key(self, composer, fake_api):
        composer.select_account(SenderAccount("Blog", "me@blog.com"))
        fill_form(composer)

        assert await composer.send() is None
        assert composer.alert.is_error
        assert fake_api.requests == []

    async def test_invalid_recipient_makes_no_request(self, composer, account, fake_api, repository):
        composer.select_account(account)
        fill_form(composer, to="invalid")

        assert await composer.send() is None
        assert composer.alert.is_error
        assert fake_api.requests == []
        assert await repository.get_sent_email_count() == 0
        assert composer.to == "invalid"


class TestSend:

    async def test_success(self, composer, account, fake_api, repository):
        composer.select_account(account)
        fill_form(composer)
        body = composer.html_content

        result = await composer.send()

        assert result.resend_id == "msg_12345"
        assert composer.alert.title == "Success"
        assert composer.alert.message == "Your email has been sent successfully!"
        assert not composer.is_sending

        payload = fake_api.payloads[0]
        assert payload["from"] == "hello@myshop.com"
        assert payload["to"] == ["customer@example.com"]
        assert payload["subject"] == "Your order"
        assert payload["html"] == body
        assert "Thanks for your order!" in payload["text"]
        for key in ("cc", "bcc", "reply_to", "attachments"):
            assert key not in payload

        emails = await repository.get_sent_emails()
        assert len(emails) == 1
        email = emails[0]
        assert email.id == result.sent_email.id
        assert email.resend_id == "msg_12345"
        assert email.to == ["customer@example.com"]
        assert email.cc is None
        assert email.html_content == body
        assert email.text_content == payload["text"]
        assert email.sender_account_id == account.id

    async def test_form_cleared_but_account_kept(self, composer, account):
        composer.select_account(account)
        fill_form(composer)
        composer.cc = "boss@myshop.com"
        composer.add_attachment(EmailAttachment.from_bytes(b"x", "a.txt"))

        await composer.send()

        assert composer.to == ""
        assert composer.subject == ""
        assert composer.cc == ""
        assert composer.html_content == ""
        assert composer.attachments == []
        assert composer.selected_account is account
        assert composer.from_address == "hello@myshop.com"

    async def test_cc_bcc_reply_to(self, composer, account, fake_api, repository):
        composer.select_account(account)
        fill_form(composer)
        composer.cc = "a@x.com, b@x.com"
        composer.bcc = " c@x.com "
        composer.reply_to = "support@myshop.com"

        await composer.send()

        payload = fake_api.payloads[0]
        assert payload["cc"] == ["a@x.com", "b@x.com"]
        assert payload["bcc"] == ["c@x.com"]
        assert payload["reply_to"] == ["support@myshop.com"]

        email = (await repository.get_sent_emails())[0]
        assert email.cc == ["a@x.com", "b@x.com"]
        assert email.bcc == ["c@x.com"]

    async def test_attachments_are_sent_and_stored(self, composer, account, fake_api, attachment_store):
        composer.select_account(account)
        fill_form(composer)
        composer.add_attachment(EmailAttachment.from_bytes(b"one", "report.pdf", "application/pdf"))
        composer.add_attachment(EmailAttachment.from_bytes(b"two", "report.pdf", "application/pdf"))

        result = await composer.send()

        assert [a["filename"] for a in fake_api.payloads[0]["attachments"]] == ["report.pdf", "report.pdf"]

        stored = result.sent_email.attachments
        email_id = result.sent_email.id
        assert [a.local_path for a in stored] == [
            f"{email_id}/report.pdf",
            f"{email_id}/report_1.pdf",
        ]
        assert [a.filename for a in stored] == ["report.pdf", "report.pdf"]
        assert [a.file_size for a in stored] == [3, 3]
        assert attachment_store.load_attachment(stored[1].local_path) == b"two"

    async def test_undecodable_attachment_is_skipped(self, composer, account, repository):
        composer.select_account(account)
        fill_form(composer)
        composer.add_attachment(EmailAttachment(filename="bad.bin", content="@@not base64@@"))
        composer.add_attachment(EmailAttachment.from_bytes(b"ok", "good.txt"))

        result = await composer.send()

        assert composer.alert.title == "Success"
        email = await repository.get_sent_email(result.sent_email.id)
        assert [a.filename for a in email.attachments] == ["good.txt"]

    async def test_api_failure_keeps_form(self, composer, account, fake_api, repository):
        fake_api.status = 401
        fake_api.body = {"statusCode": 401, "message": "Invalid API key", "name": "validation_error"}
        composer.select_account(account)
        fill_form(composer)
        composer.add_attachment(EmailAttachment.from_bytes(b"x", "a.txt"))
        body = composer.html_content

        assert await composer.send() is None

        assert composer.alert.title == "Error"
        assert composer.alert.message == "Invalid API key"
        assert composer.to == "customer@example.com"
        assert composer.html_content == body
        assert len(composer.attachments) == 1
        assert not composer.is_sending
        assert await repository.get_sent_email_count() == 0

    async def test_history_failure_still_reports_success(
        self, composer, secret_store, fake_api, repository, attachment_store
    ):
        # Never saved, so the history row's account reference is rejected
        unsaved = SenderAccount("Ghost", "ghost@myshop.com")
        secret_store.set(unsaved.id, "re_123456789")
        composer.select_account(unsaved)
        fill_form(composer)
        composer.add_attachment(EmailAttachment.from_bytes(b"x", "a.txt"))

        result = await composer.send()

        assert result.resend_id == "msg_12345"
        assert result.sent_email is None
        assert composer.alert.title == "Success"
        assert composer.to == ""
        assert await repository.get_sent_email_count() == 0
        # The attachment copy is left behind for the orphan sweep
        assert len(attachment_store.email_folder_ids()) == 1

    async def test_closed_database_still_reports_success(self, composer, account, fake_api, database):
        composer.select_account(account)
        fill_form(composer)
        await database.close()

        result = await composer.send()

        assert len(fake_api.requests) == 1
        assert result.resend_id == "msg_12345"
        assert result.sent_email is None
        assert composer.alert.title == "Success"
        assert composer.to == ""
        assert not composer.is_sending

    async def test_unwritable_attachment_copy_is_skipped(
        self, composer, account, repository, attachment_store, monkeypatch
    ):
        def refuse(data, filename, email_id):
            raise PermissionError(13, "Permission denied", filename)

        monkeypatch.setattr(attachment_store, "save_attachment", refuse)
        composer.select_account(account)
        fill_form(composer)
        composer.add_attachment(EmailAttachment.from_bytes(b"x", "a.txt"))

        result = await composer.send()

        assert composer.alert.title == "Success"
        email = await repository.get_sent_email(result.sent_email.id)
        assert email.attachments == []
