"""Replay recorded call events through the caption aggregator against a running API.

The input file is a JSON list of events, each ``{"type": <event name>, ...payload}``,
e.g. ``{"type": "call.closed_caption", "closed_caption": {"text": "Hi", "user": {"name": "Ana"}}}``.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.capture.aggregator import CallEvent, CallEventKind, CallSession, CaptionAggregator
from src.capture.client import TranscriptSubmitter


def load_events(path: Path) -> list[CallEvent]:
    """Parse recorded events, skipping entries with an unknown type."""
    raw = json.loads(path.read_text(encoding="utf-8"))
    events: list[CallEvent] = []
    for item in raw:
        payload = dict(item)
        try:
            kind = CallEventKind(payload.pop("type"))
        except (KeyError, ValueError):
            print(f"Skipping unrecognised event: {item!r}")
            continue
        events.append(CallEvent(kind=kind, payload=payload))
    return events


async def replay(call_id: str, events: list[CallEvent], api_url: str) -> None:
    aggregator = CaptionAggregator(TranscriptSubmitter(api_url=api_url))
    session = CallSession(call_id)
    consumer = asyncio.create_task(aggregator.run(session))
    for event in events:
        session.publish(event)
    session.close()
    await consumer
    await aggregator.drain()
    print(f"Replayed {len(events)} events for call {call_id} (flushed={aggregator.flushed})")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("events_file", type=Path, help="JSON list of recorded call events")
    parser.add_argument("--call-id", required=True, help="Call identifier to flush under")
    parser.add_argument("--api-url", default="http://localhost:8000", help="API base URL")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    asyncio.run(replay(args.call_id, load_events(args.events_file), args.api_url))


if __name__ == "__main__":
    main()
