"""Domain value objects and shared value types."""

from app.domain.value_objects.email import (
    AttachmentInfo,
    EmailAddress,
    EmailBody,
    ParsedEmail,
    Verdict,
)

__all__ = [
    "AttachmentInfo",
    "EmailAddress",
    "EmailBody",
    "ParsedEmail",
    "Verdict",
]
