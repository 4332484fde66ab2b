"""Convert provider-native message JSON into ParsedEmail.

Gmail returns a MIME tree with base64url bodies; Graph returns structured
JSON with a single body and optional internetMessageHeaders.
"""

from __future__ import annotations

import base64
import binascii
from datetime import datetime
from email.utils import getaddresses, parseaddr, parsedate_to_datetime
from typing import Any

from app.domain.enums import ProviderType
from app.domain.exceptions import MessageParseError
from app.domain.value_objects.email import (
    AttachmentInfo,
    EmailAddress,
    EmailBody,
    ParsedEmail,
)
from app.infrastructure.external.email.protocols import RawMessage
from app.shared.utils.datetime import (
    ensure_utc,
    from_timestamp_ms_utc,
    parse_iso_utc,
    utc_now,
)


def parse_raw_message(raw: RawMessage) -> ParsedEmail:
    """Dispatch on provider type.

    Raises:
        MessageParseError: If the payload is missing required structure.
    """
    try:
        if raw.provider_type == ProviderType.GMAIL:
            return parse_gmail_message(raw.payload, raw.id)
        return parse_graph_message(raw.payload, raw.id)
    except MessageParseError:
        raise
    except (KeyError, TypeError, ValueError) as e:
        raise MessageParseError(raw.id, f"{type(e).__name__}: {e}") from e


# Gmail


def _decode_base64url(data: str) -> str:
    padded = data + "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        return ""


def _walk_gmail_parts(
    part: dict[str, Any],
    text: list[str],
    html: list[str],
    attachments: list[AttachmentInfo],
) -> None:
    mime_type = part.get("mimeType", "")
    body = part.get("body") or {}
    filename = part.get("filename") or ""
    if filename:
        attachments.append(
            AttachmentInfo(
                filename=filename,
                content_type=mime_type or "application/octet-stream",
                size=int(body.get("size") or 0),
            )
        )
    elif body.get("data"):
        if mime_type == "text/plain":
            text.append(_decode_base64url(body["data"]))
        elif mime_type == "text/html":
            html.append(_decode_base64url(body["data"]))
    for child in part.get("parts") or []:
        _walk_gmail_parts(child, text, html, attachments)


def _address(value: str) -> EmailAddress | None:
    name, addr = parseaddr(value or "")
    if not addr:
        return None
    return EmailAddress(address=addr, display_name=name or None)


def _address_list(value: str) -> list[EmailAddress]:
    return [
        EmailAddress(address=addr, display_name=name or None)
        for name, addr in getaddresses([value or ""])
        if addr
    ]


def parse_gmail_message(msg: dict[str, Any], provider_id: str) -> ParsedEmail:
    payload = msg.get("payload")
    if not isinstance(payload, dict):
        raise MessageParseError(provider_id, "missing payload")
    raw_headers = payload.get("headers") or []
    headers = {h["name"].lower(): h["value"] for h in raw_headers}
    sender = _address(headers.get("from", ""))
    if sender is None:
        raise MessageParseError(provider_id, "missing From header")

    text: list[str] = []
    html: list[str] = []
    attachments: list[AttachmentInfo] = []
    _walk_gmail_parts(payload, text, html, attachments)

    if msg.get("internalDate"):
        date = from_timestamp_ms_utc(int(msg["internalDate"]))
    else:
        date = _header_date(headers.get("date")) or utc_now()

    return ParsedEmail(
        message_id=headers.get("message-id") or provider_id,
        subject=headers.get("subject", ""),
        from_=sender,
        reply_to=_address(headers.get("reply-to", "")),
        to=_address_list(headers.get("to", "")),
        cc=_address_list(headers.get("cc", "")),
        date=date,
        headers=headers,
        body=EmailBody(
            text="\n".join(text) if text else None,
            html="\n".join(html) if html else None,
        ),
        attachments=attachments,
        raw_headers="\n".join(f"{h['name']}: {h['value']}" for h in raw_headers),
    )


def _header_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return ensure_utc(parsedate_to_datetime(value))
    except (TypeError, ValueError):
        return None


# Microsoft Graph


def _graph_address(entry: dict[str, Any] | None) -> EmailAddress | None:
    if not entry:
        return None
    email = entry.get("emailAddress") or {}
    address = email.get("address")
    if not address:
        return None
    return EmailAddress(address=address, display_name=email.get("name") or None)


def _graph_address_list(entries: list[dict[str, Any]] | None) -> list[EmailAddress]:
    return [a for a in (_graph_address(e) for e in entries or []) if a is not None]


def parse_graph_message(msg: dict[str, Any], provider_id: str) -> ParsedEmail:
    sender = _graph_address(msg.get("from"))
    if sender is None:
        raise MessageParseError(provider_id, "missing from")
    raw_headers = msg.get("internetMessageHeaders") or []
    headers = {h["name"].lower(): h["value"] for h in raw_headers}

    body = msg.get("body") or {}
    content = body.get("content") or ""
    is_html = (body.get("contentType") or "").lower() == "html"

    date = parse_iso_utc(msg.get("receivedDateTime")) or utc_now()
    reply_to = _graph_address_list(msg.get("replyTo"))

    return ParsedEmail(
        message_id=msg.get("internetMessageId") or headers.get("message-id") or provider_id,
        subject=msg.get("subject") or "",
        from_=sender,
        reply_to=reply_to[0] if reply_to else None,
        to=_graph_address_list(msg.get("toRecipients")),
        cc=_graph_address_list(msg.get("ccRecipients")),
        date=date,
        headers=headers,
        body=EmailBody(
            text=None if is_html else content or None,
            html=content if is_html and content else None,
        ),
        attachments=[
            AttachmentInfo(
                filename=a.get("name") or "",
                content_type=a.get("contentType") or "application/octet-stream",
                size=int(a.get("size") or 0),
            )
            for a in msg.get("attachments") or []
        ],
        raw_headers="\n".join(f"{h['name']}: {h['value']}" for h in raw_headers),
    )
