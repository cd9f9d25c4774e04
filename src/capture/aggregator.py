"""Per-call caption buffering with exactly-once flush to the ingestion endpoint."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.ingestion.models import UNKNOWN_SPEAKER, Caption
from src.pipeline_config import FlushReason

logger = logging.getLogger(__name__)

# (call_id, captions, reason) -> None; raising marks the delivery as failed
Submitter = Callable[[str, list[Caption], FlushReason], Awaitable[None]]


class CallEventKind(str, Enum):
    """Call transport events the aggregator listens to."""

    CAPTION_RECEIVED = "call.closed_caption"
    CAPTIONING_STOPPED = "call.closed_captions_stopped"
    CALL_ENDED = "call.ended"


@dataclass(frozen=True)
class CallEvent:
    """A single event emitted by the call transport."""

    kind: CallEventKind
    payload: dict[str, Any] = field(default_factory=dict)


def resolve_speaker_name(caption: dict[str, Any]) -> str:
    """First non-missing of display name, user id, raw speaker id, else the default."""
    user = caption.get("user") or {}
    candidates = (user.get("name"), user.get("id"), caption.get("speaker_id"))
    for candidate in candidates:
        if candidate is not None:
            return str(candidate)
    return UNKNOWN_SPEAKER


def caption_from_event(event: CallEvent) -> Caption | None:
    """Build a Caption from a caption event, or None when it carries no text."""
    inner = event.payload.get("closed_caption") or {}
    text = inner.get("text")
    if not text:
        return None
    return Caption(
        text=text,
        speaker_name=resolve_speaker_name(inner),
        start_time=inner.get("start_time"),
        end_time=inner.get("end_time"),
    )


class CallSession:
    """Explicit context for one active call: its id and its event channel.

    The transport publishes events here; :meth:`close` ends the session and
    lets the consuming aggregator run its teardown flush.
    """

    def __init__(self, call_id: str) -> None:
        self.call_id = call_id
        self._events: asyncio.Queue[CallEvent | None] = asyncio.Queue()
        self.closed = False

    def publish(self, event: CallEvent) -> None:
        if self.closed:
            raise RuntimeError(f"Session for call {self.call_id} is closed")
        self._events.put_nowait(event)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._events.put_nowait(None)

    async def next_event(self) -> CallEvent | None:
        """Next event in arrival order, or None once the session is closed."""
        return await self._events.get()


class CaptionAggregator:
    """Buffers captions for the active call and flushes them once.

    Flush triggers are ``call.ended``, ``call.closed_captions_stopped`` and
    session teardown. The first trigger that finds captions in the buffer sets
    the latch and sends; later triggers for the same activation do nothing.
    An empty buffer never sends and leaves the latch open.

    Delivery is best effort: a failed submission is logged and dropped, with
    no retry. Deliveries run in their own task, so cancelling the consumer
    during teardown does not abort a submission already in flight.
    """

    def __init__(self, submit: Submitter) -> None:
        self._submit = submit
        self._session: CallSession | None = None
        self._captions: list[Caption] = []
        self._flushed = False
        self._deliveries: set[asyncio.Task[None]] = set()

    @property
    def call_id(self) -> str | None:
        return self._session.call_id if self._session else None

    @property
    def captions(self) -> list[Caption]:
        return list(self._captions)

    @property
    def flushed(self) -> bool:
        return self._flushed

    def activate(self, session: CallSession) -> None:
        """Start buffering for ``session``; clears the buffer and latch unconditionally."""
        self._session = session
        self._captions = []
        self._flushed = False

    async def run(self, session: CallSession) -> None:
        """Consume ``session`` events until it closes, then flush for teardown."""
        self.activate(session)
        try:
            while True:
                event = await session.next_event()
                if event is None:
                    break
                await self.handle(event)
        finally:
            await self.flush(FlushReason.TEARDOWN)

    async def handle(self, event: CallEvent) -> None:
        if event.kind is CallEventKind.CAPTION_RECEIVED:
            self.add_caption(event)
        elif event.kind is CallEventKind.CALL_ENDED:
            await self.flush(FlushReason.ENDED)
        elif event.kind is CallEventKind.CAPTIONING_STOPPED:
            await self.flush(FlushReason.CAPTIONS_STOPPED)

    def add_caption(self, event: CallEvent) -> Caption | None:
        caption = caption_from_event(event)
        if caption is None:
            logger.debug("Ignoring caption event without text for call %s", self.call_id)
            return None
        self._captions.append(caption)
        return caption

    async def flush(self, reason: FlushReason) -> bool:
        """Submit the buffered captions once per activation.

        Returns True when this call started a submission.
        """
        # Latch check-and-set happens before the first await, so it is atomic on the loop
        if self._flushed or self._session is None:
            return False
        if not self._captions:
            return False
        self._flushed = True
        call_id = self._session.call_id
        payload, self._captions = self._captions, []

        task = asyncio.ensure_future(self._deliver(call_id, payload, reason))
        self._deliveries.add(task)
        task.add_done_callback(self._deliveries.discard)
        await asyncio.shield(task)
        return True

    async def _deliver(self, call_id: str, captions: list[Caption], reason: FlushReason) -> None:
        try:
            await self._submit(call_id, captions, reason)
            logger.info(
                "Flushed %d captions for call %s (%s)", len(captions), call_id, reason.value
            )
        except Exception:
            logger.exception("Failed to persist captions for call %s", call_id)

    async def drain(self) -> None:
        """Wait for any in-flight deliveries to finish."""
        if self._deliveries:
            await asyncio.gather(*self._deliveries)
