"""Data models for caption capture and minutes-of-meeting persistence."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

UNKNOWN_SPEAKER = "Unknown speaker"


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 timestamp, returning None when it cannot be parsed."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: str) -> str:
    """Human-readable UTC rendering used in titles and document headers."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return value
    return parsed.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


@dataclass
class Caption:
    """One transcribed utterance fragment from a call."""

    text: str
    speaker_name: str = UNKNOWN_SPEAKER
    start_time: str | None = None
    end_time: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"text": self.text, "speakerName": self.speaker_name}
        if self.start_time is not None:
            data["startTime"] = self.start_time
        if self.end_time is not None:
            data["endTime"] = self.end_time
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Caption:
        return cls(
            text=data.get("text", ""),
            speaker_name=data.get("speakerName", ""),
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
        )


@dataclass
class CaptionBatch:
    """Persisted form of all captions flushed for one call."""

    call_id: str
    saved_at: str
    captions: list[Caption] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "callId": self.call_id,
            "savedAt": self.saved_at,
            "captions": [c.to_dict() for c in self.captions],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CaptionBatch:
        return cls(
            call_id=data["callId"],
            saved_at=data["savedAt"],
            captions=[Caption.from_dict(c) for c in data.get("captions", [])],
        )


@dataclass
class MomMetadata:
    """Index entry describing the rendered minutes for one call."""

    call_id: str
    generated_at: str
    pdf_url: str
    title: str

    def to_dict(self) -> dict[str, str]:
        return {
            "callId": self.call_id,
            "generatedAt": self.generated_at,
            "pdfUrl": self.pdf_url,
            "title": self.title,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MomMetadata:
        return cls(
            call_id=data["callId"],
            generated_at=data["generatedAt"],
            pdf_url=data["pdfUrl"],
            title=data.get("title", ""),
        )


def minutes_title(generated_at: str) -> str:
    return f"Meeting Minutes - {format_timestamp(generated_at)}"
