"""Detection pipeline and connection directory HTTP clients."""

import json
from datetime import UTC, datetime

import httpx
import pytest

from app.domain.enums import VerdictClassification
from app.domain.exceptions import DetectionPipelineError
from app.domain.value_objects.email import EmailAddress, EmailBody, ParsedEmail
from app.infrastructure.external.connections.client import (
    ConnectionDirectoryClient,
    LiveConnection,
)
from app.infrastructure.external.detection.client import HttpDetectionPipeline

EMAIL = ParsedEmail(
    message_id="<m1@sender.test>",
    subject="Invoice",
    from_=EmailAddress("billing@sender.test", "Billing"),
    to=[EmailAddress("alice@tenant.test")],
    date=datetime(2025, 3, 1, 12, tzinfo=UTC),
    headers={"subject": "Invoice"},
    body=EmailBody(text="Please pay"),
)


class TestHttpDetectionPipeline:
    async def test_posts_email_and_returns_verdict(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"classification": "suspicious", "overall_score": 0.72, "confidence": 0.9},
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            pipeline = HttpDetectionPipeline(
                "https://detect.test/", http_client=client, token="det-token"
            )
            verdict = await pipeline.analyze(EMAIL, "t1", skip_expensive_analysis=True)

        request = seen[0]
        assert str(request.url) == "https://detect.test/analyze"
        assert request.headers["Authorization"] == "Bearer det-token"
        body = json.loads(request.content)
        assert body["tenant_id"] == "t1"
        assert body["options"] == {"skip_expensive_analysis": True}
        assert body["email"]["from"]["domain"] == "sender.test"
        assert verdict.classification == VerdictClassification.SUSPICIOUS
        assert verdict.overall_score == 0.72

    async def test_error_status_raises_with_status_code(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"detail": "overloaded"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            pipeline = HttpDetectionPipeline("https://detect.test", http_client=client)
            with pytest.raises(DetectionPipelineError) as exc_info:
                await pipeline.analyze(EMAIL, "t1")

        assert exc_info.value.status_code == 503

    async def test_malformed_verdict_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"classification": "maybe"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            pipeline = HttpDetectionPipeline("https://detect.test", http_client=client)
            with pytest.raises(DetectionPipelineError, match="Malformed verdict"):
                await pipeline.analyze(EMAIL, "t1")


class TestConnectionDirectoryClient:
    async def test_lists_live_connections(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "connections": [
                        {
                            "connection_id": "conn-9",
                            "provider_config_key": "google-mail",
                            "end_user": {"id": "t1"},
                        },
                        {"connection_id": "conn-10", "provider_config_key": "outlook"},
                        {"provider_config_key": "google-mail"},
                    ]
                },
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            directory = ConnectionDirectoryClient(
                "https://connect.test", http_client=client, secret_key="dir-secret"
            )
            connections = await directory.list_connections()

        assert str(seen[0].url) == "https://connect.test/connection"
        assert seen[0].headers["Authorization"] == "Bearer dir-secret"
        assert connections == [
            LiveConnection("conn-9", "google-mail", "t1"),
            LiveConnection("conn-10", "outlook", None),
        ]

    async def test_error_status_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            directory = ConnectionDirectoryClient("https://connect.test", http_client=client)
            with pytest.raises(httpx.HTTPStatusError):
                await directory.list_connections()
