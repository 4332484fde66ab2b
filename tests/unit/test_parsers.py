"""Provider message parsing into ParsedEmail."""

import base64
from datetime import UTC, datetime

import pytest

from app.domain.enums import ProviderType
from app.domain.exceptions import MessageParseError
from app.infrastructure.external.email.parsers import parse_raw_message
from app.infrastructure.external.email.protocols import RawMessage


def _b64(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode()).decode().rstrip("=")


GMAIL_MESSAGE = {
    "id": "18c2f",
    "internalDate": "1709294400000",
    "payload": {
        "mimeType": "multipart/mixed",
        "headers": [
            {"name": "From", "value": "PayPal Support <support@paypa1.com>"},
            {"name": "To", "value": "alice@tenant.test, Bob <bob@tenant.test>"},
            {"name": "Subject", "value": "Your account is limited"},
            {"name": "Message-ID", "value": "<abc@paypa1.com>"},
            {"name": "Reply-To", "value": "collect@evil.test"},
        ],
        "parts": [
            {
                "mimeType": "multipart/alternative",
                "parts": [
                    {"mimeType": "text/plain", "body": {"data": _b64("Verify now")}},
                    {"mimeType": "text/html", "body": {"data": _b64("<p>Verify now</p>")}},
                ],
            },
            {
                "mimeType": "application/pdf",
                "filename": "invoice.pdf",
                "body": {"attachmentId": "att1", "size": 2048},
            },
        ],
    },
}

GRAPH_MESSAGE = {
    "id": "AAMk1",
    "internetMessageId": "<graph@contoso.test>",
    "subject": "Quarterly report",
    "from": {"emailAddress": {"name": "CFO", "address": "cfo@contoso.test"}},
    "toRecipients": [{"emailAddress": {"address": "alice@tenant.test"}}],
    "ccRecipients": [],
    "replyTo": [],
    "receivedDateTime": "2024-03-01T12:00:00Z",
    "body": {"contentType": "html", "content": "<b>See attached</b>"},
    "internetMessageHeaders": [{"name": "Authentication-Results", "value": "spf=pass"}],
    "attachments": [{"name": "q1.xlsx", "contentType": "application/vnd.ms-excel", "size": 10}],
}


def test_gmail_message_parses_headers_bodies_and_attachments() -> None:
    email = parse_raw_message(RawMessage(ProviderType.GMAIL, "18c2f", GMAIL_MESSAGE))

    assert email.message_id == "<abc@paypa1.com>"
    assert email.subject == "Your account is limited"
    assert email.from_.address == "support@paypa1.com"
    assert email.from_.display_name == "PayPal Support"
    assert [a.address for a in email.to] == ["alice@tenant.test", "bob@tenant.test"]
    assert email.reply_to.address == "collect@evil.test"
    assert email.body.text == "Verify now"
    assert email.body.html == "<p>Verify now</p>"
    assert email.attachments[0].filename == "invoice.pdf"
    assert email.attachments[0].size == 2048
    assert email.date == datetime(2024, 3, 1, 12, 0, tzinfo=UTC)
    assert email.headers["subject"] == "Your account is limited"


def test_graph_message_parses_html_body_and_headers() -> None:
    email = parse_raw_message(RawMessage(ProviderType.O365, "AAMk1", GRAPH_MESSAGE))

    assert email.message_id == "<graph@contoso.test>"
    assert email.from_.domain == "contoso.test"
    assert email.body.html == "<b>See attached</b>"
    assert email.body.text is None
    assert email.headers == {"authentication-results": "spf=pass"}
    assert email.date == datetime(2024, 3, 1, 12, 0, tzinfo=UTC)
    assert email.attachments[0].filename == "q1.xlsx"


def test_message_without_sender_is_a_parse_error() -> None:
    message = {**GRAPH_MESSAGE, "from": None}
    with pytest.raises(MessageParseError):
        parse_raw_message(RawMessage(ProviderType.O365, "AAMk1", message))


def test_malformed_gmail_payload_is_a_parse_error() -> None:
    broken = {"payload": {"headers": [{"value": "no name"}]}}
    with pytest.raises(MessageParseError) as exc_info:
        parse_raw_message(RawMessage(ProviderType.GMAIL, "x1", broken))
    assert exc_info.value.details == {"message_id": "x1"}


def test_parsed_email_wire_format() -> None:
    email = parse_raw_message(RawMessage(ProviderType.GMAIL, "18c2f", GMAIL_MESSAGE))
    wire = email.to_dict()
    assert wire["from"]["domain"] == "paypa1.com"
    assert wire["attachments"] == [
        {"filename": "invoice.pdf", "content_type": "application/pdf", "size": 2048}
    ]
