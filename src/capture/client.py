"""HTTP client that submits flushed captions to the transcripts endpoint."""

from __future__ import annotations

import httpx

from src.config import settings
from src.ingestion.models import Caption
from src.pipeline_config import FlushReason


class TranscriptSubmitter:
    """Posts a call's captions to ``/api/transcripts``.

    Usable directly as the aggregator's ``submit`` callable. Non-2xx responses
    raise :class:`httpx.HTTPStatusError`.
    """

    def __init__(
        self,
        api_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_url = (api_url or settings.api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.flush_timeout
        self._transport = transport

    async def __call__(self, call_id: str, captions: list[Caption], reason: FlushReason) -> None:
        payload = {
            "callId": call_id,
            "captions": [c.to_dict() for c in captions],
            "reason": reason.value,
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            r = await client.post(f"{self.api_url}/api/transcripts", json=payload)
            r.raise_for_status()
