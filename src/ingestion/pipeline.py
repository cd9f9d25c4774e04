"""End-to-end minutes pipeline: persist captions -> summarize -> render -> index."""

from __future__ import annotations

import logging

from src.ingestion.models import Caption, MomMetadata, minutes_title, utc_now_iso
from src.ingestion.storage import (
    TranscriptStore,
    get_transcript_store,
    resolve_document_locator,
    validate_call_id,
)
from src.rendering.pdf import render_minutes_pdf
from src.summarization.summarizer import generate_summary, require_api_key

logger = logging.getLogger(__name__)


def generate_minutes(
    call_id: str,
    captions: list[Caption],
    store: TranscriptStore | None = None,
) -> str:
    """Full submission pipeline for one call.

    The caption batch is written before summarization, so a transcript is kept
    even when Gemini fails. Nothing after that point is written unless the
    summary succeeds.

    Args:
        call_id: Identifier of the call.
        captions: Ordered captions flushed for the call.
        store: Storage backend (defaults to the process-wide store).

    Returns:
        The locator the rendered minutes can be fetched from.
    """
    store = store or get_transcript_store()

    # 0. Reject bad input and missing configuration before touching storage
    validate_call_id(call_id)
    api_key = require_api_key()

    # 1. Persist captions
    store.ensure_storage()
    timestamp = utc_now_iso()
    store.write_caption_batch(call_id, captions, timestamp)
    logger.info("Saved %d captions for call %s", len(captions), call_id)

    # 2. Summarize
    summary = generate_summary(call_id, captions, timestamp, api_key=api_key)

    # 3. Render + store document
    pdf_bytes = render_minutes_pdf(summary, call_id, timestamp)
    store.write_document(call_id, pdf_bytes)

    # 4. Index
    pdf_url = resolve_document_locator(call_id)
    store.upsert_metadata(
        MomMetadata(
            call_id=call_id,
            generated_at=timestamp,
            pdf_url=pdf_url,
            title=minutes_title(timestamp),
        )
    )
    logger.info("Stored minutes for call %s at %s", call_id, pdf_url)

    return pdf_url
