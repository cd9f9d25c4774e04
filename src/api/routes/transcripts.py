"""Transcripts endpoint: persist flushed captions and generate minutes of meeting."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, HTTPException

from src.api.models import TranscriptionRequest, TranscriptionResponse
from src.ingestion.pipeline import generate_minutes
from src.ingestion.storage import get_transcript_store, validate_call_id

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/transcripts", response_model=TranscriptionResponse)
async def submit_transcript(request: TranscriptionRequest) -> TranscriptionResponse:
    """Store a call's captions, summarize them, and render the minutes PDF.

    Returns the locator of the rendered minutes. Missing or malformed fields
    are rejected with 422 by request validation; an unusable ``callId`` is a
    400. Any failure after that (missing Gemini key, empty model response,
    storage errors) is a 500 carrying the underlying message.
    """
    captions = [c.to_caption() for c in request.captions]
    logger.info(
        "Received %d captions for call %s (reason=%s)",
        len(captions),
        request.call_id,
        request.reason,
    )

    try:
        validate_call_id(request.call_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    try:
        # Gemini + file I/O are blocking; keep them off the event loop
        pdf_url = await asyncio.to_thread(
            generate_minutes, request.call_id, captions, get_transcript_store()
        )
    except Exception as exc:
        logger.exception("Failed to create meeting summary for call %s", request.call_id)
        raise HTTPException(
            status_code=500,
            detail=str(exc) or "Unknown error generating summary",
        ) from exc

    return TranscriptionResponse(success=True, pdfUrl=pdf_url)
