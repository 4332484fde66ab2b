"""Message pipeline adapter: provider message -> ParsedEmail -> Verdict -> storage."""

from typing import TYPE_CHECKING

from app.application.interfaces.sync import (
    IDetectionPipeline,
    IMessageParser,
    IVerdictStore,
)
from app.domain.value_objects.email import Verdict

if TYPE_CHECKING:
    from app.infrastructure.external.email.protocols import RawMessage


class MessagePipelineAdapter:
    """Parse, analyze and persist one message.

    Background sync always skips expensive analysis. The verdict is stored
    before process() returns, keyed by the provider message id so the sync
    loop's dedup check sees it on the next pass.
    """

    def __init__(
        self,
        parser: IMessageParser,
        detector: IDetectionPipeline,
        verdicts: IVerdictStore,
    ) -> None:
        self._parse = parser
        self._detector = detector
        self._verdicts = verdicts

    async def process(self, raw: "RawMessage", tenant_id: str) -> Verdict:
        email = self._parse(raw)
        verdict = await self._detector.analyze(
            email, tenant_id, skip_expensive_analysis=True
        )
        await self._verdicts.store_verdict(tenant_id, raw.id, verdict, email)
        return verdict
