"""Pydantic request/response schemas for the minutes-of-meeting API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from src.ingestion.models import Caption


class CaptionPayload(BaseModel):
    """A single caption as sent by the web client."""

    model_config = ConfigDict(populate_by_name=True)

    text: str
    speaker_name: str = Field(default="", alias="speakerName")
    start_time: str | None = Field(default=None, alias="startTime")
    end_time: str | None = Field(default=None, alias="endTime")

    def to_caption(self) -> Caption:
        return Caption(
            text=self.text,
            speaker_name=self.speaker_name,
            start_time=self.start_time,
            end_time=self.end_time,
        )


class TranscriptionRequest(BaseModel):
    """Request body for the /api/transcripts endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    call_id: str = Field(alias="callId", min_length=1)
    captions: list[CaptionPayload]
    reason: str | None = None


class TranscriptionResponse(BaseModel):
    """Response body for the /api/transcripts endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    pdf_url: str = Field(alias="pdfUrl")


class MomMetadataResponse(BaseModel):
    """One entry of the metadata index."""

    model_config = ConfigDict(populate_by_name=True)

    call_id: str = Field(alias="callId")
    generated_at: str = Field(alias="generatedAt")
    pdf_url: str = Field(alias="pdfUrl")
    title: str = ""
