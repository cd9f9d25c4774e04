"""Gemini-powered minutes-of-meeting summarization of caption transcripts."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import google.generativeai as genai

from src.config import settings
from src.ingestion.models import Caption, format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

EMPTY_TRANSCRIPT_PLACEHOLDER = "[No transcript text available]"

_PROMPT_INSTRUCTIONS = [
    "You are an expert meeting assistant generating concise minutes of meeting.",
    "Meeting identifier: {call_id}",
    "Meeting end time: {end_time}",
    "Provide the response in this structure:",
    "1. Meeting Overview (2-3 sentences)",
    "2. Key Decisions (bullet list)",
    '3. Action Items (bullet list, include assignee names when mentioned, else note "Unassigned")',
    "4. Discussion Highlights (short bullet list)",
    '5. Risks / Follow-ups (bullet list, if none say "None noted")',
    "Use clear headings and plain text bullet markers.",
    "If the transcript is empty, explain that no data was available.",
    "Transcript:",
]


class MissingCredentialError(RuntimeError):
    """No Gemini API key is configured."""


class EmptySummaryError(RuntimeError):
    """Gemini answered without any text."""


def _format_start_time(value: str) -> str:
    parsed = parse_timestamp(value)
    if parsed is None:
        return value
    return parsed.strftime("%H:%M:%S")


def format_transcript(captions: Sequence[Caption]) -> str:
    """Render captions one per line as ``Speaker (HH:MM:SS): text``.

    Captions without a speaker name are labelled by their 1-based position.
    An empty sequence yields the explicit placeholder instead of an empty string.
    """
    lines: list[str] = []
    for index, caption in enumerate(captions):
        label = caption.speaker_name or f"Speaker {index + 1}"
        start = _format_start_time(caption.start_time) if caption.start_time else ""
        lines.append(f"{label}{f' ({start})' if start else ''}: {caption.text}")
    return "\n".join(lines) or EMPTY_TRANSCRIPT_PLACEHOLDER


def build_prompt(call_id: str, captions: Sequence[Caption], timestamp: str) -> str:
    instructions = [
        part.format(call_id=call_id, end_time=format_timestamp(timestamp))
        for part in _PROMPT_INSTRUCTIONS
    ]
    return "\n\n".join([*instructions, format_transcript(captions)])


def require_api_key() -> str:
    """Return the configured Gemini key or raise MissingCredentialError."""
    api_key = settings.resolve_gemini_api_key()
    if not api_key:
        raise MissingCredentialError("Gemini API key is missing")
    return api_key


def generate_summary(
    call_id: str,
    captions: Sequence[Caption],
    timestamp: str,
    api_key: str | None = None,
) -> str:
    """Summarize a call transcript into minutes-of-meeting text using Gemini.

    Args:
        call_id: Identifier of the call the captions belong to.
        captions: Ordered captions for the call.
        timestamp: ISO-8601 time the minutes are generated at.
        api_key: Gemini key; read from settings when omitted.

    Returns:
        The model's raw text response.

    Raises:
        MissingCredentialError: No Gemini key is configured.
        EmptySummaryError: The model returned no text.
    """
    api_key = api_key or require_api_key()

    genai.configure(api_key=api_key)  # type: ignore[attr-defined]
    model = genai.GenerativeModel(settings.gemini_model)  # type: ignore[attr-defined]

    prompt = build_prompt(call_id, captions, timestamp)
    response = model.generate_content(
        [{"role": "user", "parts": [{"text": prompt}]}],
        safety_settings=[],
    )

    text = _response_text(response)
    if not text:
        raise EmptySummaryError("Gemini returned an empty response")

    logger.info("Generated %d-character summary for call %s", len(text), call_id)
    return text


def _response_text(response: Any) -> str:
    """Return the response text, treating a response without parts as empty."""
    if response is None:
        return ""
    try:
        text = response.text
    except ValueError:
        # The SDK raises when the candidate carries no text parts (e.g. blocked output)
        return ""
    return text or ""
