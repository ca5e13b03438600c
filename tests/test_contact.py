# =============================================================================
# tests/test_contact.py - Contact Form Tests
# =============================================================================

from unittest.mock import MagicMock, patch

import pytest

from app.exceptions import BadRequestError, EmailDeliveryError
from core.services.contact_service import (
    ContactService,
    parse_contact_request,
    render_contact_email,
)
from core.services.email_service import EmailService

VALID = {
    "name": "Ana",
    "email": "ana@example.com",
    "subject": "Billing question",
    "message": "Hello\nI have a question.",
}


def _mailer(configured=True, sent=True):
    mailer = MagicMock(spec=EmailService)
    mailer.is_configured = configured
    mailer.send_email.return_value = sent
    return mailer


class TestContactValidation:
    """Tests for parse_contact_request."""

    def test_valid(self):
        contact = parse_contact_request(VALID)
        assert contact.name == "Ana"

    @pytest.mark.parametrize("missing", ["name", "email", "subject", "message"])
    def test_missing_field(self, missing):
        payload = {**VALID, missing: ""}

        with pytest.raises(BadRequestError) as exc_info:
            parse_contact_request(payload)

        assert exc_info.value.message == (
            "Missing required fields: name, email, subject, and message are required"
        )
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("email", ["ana", "ana@example", "ana @example.com", "@example.com"])
    def test_invalid_email(self, email):
        with pytest.raises(BadRequestError) as exc_info:
            parse_contact_request({**VALID, "email": email})

        assert exc_info.value.message == "Invalid email address format"

    @pytest.mark.parametrize("field,label,limit", [
        ("name", "Name", 100),
        ("subject", "Subject", 200),
        ("message", "Message", 5000),
    ])
    def test_length_limits(self, field, label, limit):
        parse_contact_request({**VALID, field: "x" * limit})

        with pytest.raises(BadRequestError) as exc_info:
            parse_contact_request({**VALID, field: "x" * (limit + 1)})

        assert exc_info.value.message == f"{label} must be less than {limit} characters"

    def test_email_length_limit(self):
        email = "a" * 250 + "@b.com"

        with pytest.raises(BadRequestError) as exc_info:
            parse_contact_request({**VALID, "email": email})

        assert exc_info.value.message == "Email must be less than 255 characters"


class TestRenderContactEmail:
    """Tests for the email body."""

    def test_escapes_html_and_keeps_line_breaks(self):
        contact = parse_contact_request({**VALID, "name": "<b>Ana</b>"})

        body = render_contact_email(contact)

        assert "&lt;b&gt;Ana&lt;/b&gt;" in body
        assert "<b>Ana</b>" not in body
        assert "Hello<br>I have a question." in body


class TestContactSubmit:
    """Tests for ContactService.submit."""

    def test_sends_to_support_with_reply_to(self, fake_db):
        mailer = _mailer()

        result = ContactService.submit(VALID, mailer)

        assert result == {"success": True, "message": "Email sent successfully"}
        kwargs = mailer.send_email.call_args.kwargs
        assert kwargs["to_email"] == "support@stockmeta.app"
        assert kwargs["subject"] == "[Contact Form] Billing question"
        assert kwargs["reply_to"] == "ana@example.com"

        saved = fake_db.queries("contact_submissions")[0].call("insert").args[0]
        assert saved["status"] == "unread"

    def test_save_failure_still_sends(self, fake_db):
        fake_db.queue("contact_submissions", Exception("insert failed"))
        mailer = _mailer()

        result = ContactService.submit(VALID, mailer)

        assert result["success"] is True
        mailer.send_email.assert_called_once()

    def test_unconfigured_email_fails(self, fake_db):
        with pytest.raises(EmailDeliveryError) as exc_info:
            ContactService.submit(VALID, _mailer(configured=False))

        assert exc_info.value.status_code == 500

    def test_send_failure(self, fake_db):
        with pytest.raises(EmailDeliveryError):
            ContactService.submit(VALID, _mailer(sent=False))

    def test_invalid_submission_not_saved(self, fake_db):
        with pytest.raises(BadRequestError):
            ContactService.submit({"name": "Ana"}, _mailer())

        assert fake_db.queries("contact_submissions") == []


class TestEmailService:
    """Tests for the SendGrid wrapper."""

    def test_without_key_is_unconfigured(self):
        service = EmailService(api_key="")

        assert service.is_configured is False
        assert service.send_email("a@b.co", "Hi", "<p>x</p>") is False

    def test_accepted_message(self):
        with patch("core.services.email_service.SendGridAPIClient") as client_cls:
            client_cls.return_value.send.return_value = MagicMock(status_code=202)
            service = EmailService(api_key="SG.test")

            sent = service.send_email("a@b.co", "Hi", "<p>x</p>", reply_to="c@d.co")

        assert sent is True
        message = client_cls.return_value.send.call_args.args[0]
        assert message.reply_to.email == "c@d.co"

    def test_rejected_message(self):
        with patch("core.services.email_service.SendGridAPIClient") as client_cls:
            client_cls.return_value.send.return_value = MagicMock(status_code=400, body="bad")
            service = EmailService(api_key="SG.test")

            assert service.send_email("a@b.co", "Hi", "<p>x</p>") is False

    def test_client_exception(self):
        with patch("core.services.email_service.SendGridAPIClient") as client_cls:
            client_cls.return_value.send.side_effect = Exception("network")
            service = EmailService(api_key="SG.test")

            assert service.send_email("a@b.co", "Hi", "<p>x</p>") is False
