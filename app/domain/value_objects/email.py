"""Email value objects: the canonical parsed message and the detection verdict.

ParsedEmail is the input contract of the detection pipeline; every provider
message is converted to it before analysis. Verdict is what comes back.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from app.domain.enums import VerdictClassification


@dataclass(frozen=True)
class EmailAddress:
    """A mailbox address with optional display name."""

    address: str
    display_name: str | None = None

    @property
    def domain(self) -> str:
        _, _, domain = self.address.rpartition("@")
        return domain.lower()


@dataclass(frozen=True)
class EmailBody:
    text: str | None = None
    html: str | None = None


@dataclass(frozen=True)
class AttachmentInfo:
    """Attachment metadata only; content is never downloaded during sync."""

    filename: str
    content_type: str
    size: int = 0


@dataclass(frozen=True)
class ParsedEmail:
    """Provider-independent message shape consumed by the detection pipeline.

    `message_id` is the RFC 5322 Message-ID when the provider exposes one,
    otherwise the provider's own id. `headers` keys are lowercased.
    """

    message_id: str
    subject: str
    from_: EmailAddress
    to: list[EmailAddress]
    date: datetime
    headers: dict[str, str]
    body: EmailBody
    cc: list[EmailAddress] = field(default_factory=list)
    reply_to: EmailAddress | None = None
    attachments: list[AttachmentInfo] = field(default_factory=list)
    raw_headers: str = ""

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict in the detection pipeline's wire format."""

        def addr(a: EmailAddress) -> dict[str, Any]:
            return {
                "address": a.address,
                "display_name": a.display_name,
                "domain": a.domain,
            }

        return {
            "message_id": self.message_id,
            "subject": self.subject,
            "from": addr(self.from_),
            "reply_to": addr(self.reply_to) if self.reply_to else None,
            "to": [addr(a) for a in self.to],
            "cc": [addr(a) for a in self.cc],
            "date": self.date.isoformat(),
            "headers": dict(self.headers),
            "body": asdict(self.body),
            "attachments": [asdict(a) for a in self.attachments],
            "raw_headers": self.raw_headers,
        }


@dataclass(frozen=True)
class Verdict:
    """Detection result for one message."""

    classification: VerdictClassification
    overall_score: float
    confidence: float = 0.0
    signals: list[dict[str, Any]] = field(default_factory=list)
    processing_time_ms: int | None = None

    def is_threat(self, threshold: float) -> bool:
        """Non-benign and scored at or above the threat threshold."""
        return (
            self.classification != VerdictClassification.PASS
            and self.overall_score >= threshold
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Verdict":
        return cls(
            classification=VerdictClassification(data["classification"]),
            overall_score=float(data.get("overall_score", 0)),
            confidence=float(data.get("confidence", 0)),
            signals=list(data.get("signals") or []),
            processing_time_ms=data.get("processing_time_ms"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "classification": self.classification.value,
            "overall_score": self.overall_score,
            "confidence": self.confidence,
            "signals": self.signals,
            "processing_time_ms": self.processing_time_ms,
        }
