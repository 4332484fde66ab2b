"""HTTP client for the external detection pipeline."""

from typing import Any

import httpx

from app.domain.exceptions import DetectionPipelineError
from app.domain.value_objects.email import ParsedEmail, Verdict
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class HttpDetectionPipeline:
    """POST {base_url}/analyze with the parsed email; returns the Verdict.

    Background sync passes skip_expensive_analysis=True so the pipeline
    skips LLM-backed layers.
    """

    def __init__(
        self,
        base_url: str,
        *,
        http_client: httpx.AsyncClient,
        token: str | None = None,
        timeout_seconds: float = 20.0,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/analyze"
        self._http = http_client
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._timeout = timeout_seconds

    async def analyze(
        self,
        email: ParsedEmail,
        tenant_id: str,
        *,
        skip_expensive_analysis: bool = False,
    ) -> Verdict:
        body: dict[str, Any] = {
            "tenant_id": tenant_id,
            "email": email.to_dict(),
            "options": {"skip_expensive_analysis": skip_expensive_analysis},
        }
        response = await self._http.post(
            self._url, json=body, headers=self._headers, timeout=self._timeout
        )
        if response.status_code >= 400:
            logger.warning(
                "Detection pipeline rejected message: status=%d tenant=%s",
                response.status_code,
                tenant_id,
            )
            raise DetectionPipelineError(
                f"Detection pipeline returned {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return Verdict.from_dict(response.json())
        except (KeyError, ValueError, TypeError) as e:
            raise DetectionPipelineError(f"Malformed verdict: {e}") from e
