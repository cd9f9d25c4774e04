"""Minutes-of-meeting retrieval endpoints: rendered PDFs and the metadata index."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from src.api.models import MomMetadataResponse
from src.ingestion.storage import NotFoundError, get_transcript_store

logger = logging.getLogger(__name__)

router = APIRouter()


# Registered before /api/mom/{call_id} so "metadata" is not read as a call ID.
@router.get("/api/mom/metadata", response_model=dict[str, MomMetadataResponse])
async def get_mom_metadata() -> dict[str, MomMetadataResponse]:
    """Return the whole metadata index keyed by call ID.

    Creates the storage layout first, so a fresh deployment returns ``{}``.
    """
    store = get_transcript_store()
    await asyncio.to_thread(store.ensure_storage)
    index = await asyncio.to_thread(store.read_metadata_index)
    return {
        call_id: MomMetadataResponse.model_validate(entry) for call_id, entry in index.items()
    }


@router.get("/api/mom/{call_id}")
async def get_mom_pdf(call_id: str) -> Response:
    """Serve the rendered minutes PDF for a call.

    404 when no minutes exist yet, so clients can keep polling; 500 for any
    other storage failure.
    """
    store = get_transcript_store()
    try:
        pdf = await asyncio.to_thread(store.read_document, call_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Minutes of meeting not found") from None
    except OSError as exc:
        logger.exception("Failed to read minutes of meeting for call %s", call_id)
        raise HTTPException(
            status_code=500, detail="Failed to fetch minutes of meeting"
        ) from exc

    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="mom-{call_id}.pdf"'},
    )
