"""Filesystem storage for caption batches, rendered minutes, and the metadata index."""

from __future__ import annotations

import json
import os
import tempfile
import threading
from functools import lru_cache
from pathlib import Path
from typing import Any
from urllib.parse import quote

from src.config import settings
from src.ingestion.models import Caption, CaptionBatch, MomMetadata

TRANSCRIPTS_DIR = "transcripts"
MOM_DIR = "mom"
METADATA_FILE = "metadata.json"


# Leaves room for the ".<name>.<random>.tmp" wrapper used by atomic writes
# inside a 255-byte file name limit.
MAX_CALL_ID_BYTES = 200


class NotFoundError(LookupError):
    """Raised when a caption batch or rendered document does not exist."""


def validate_call_id(call_id: str) -> str:
    """Reject call IDs that would escape the storage directories or overflow a file name."""
    if not call_id or "/" in call_id or "\\" in call_id or call_id.startswith("."):
        raise ValueError(f"Invalid callId: {call_id!r}")
    if len(call_id.encode("utf-8")) > MAX_CALL_ID_BYTES:
        raise ValueError(f"Invalid callId: longer than {MAX_CALL_ID_BYTES} bytes")
    return call_id


def resolve_document_locator(call_id: str) -> str:
    """Deterministic, URL-safe path the retrieval endpoint serves the minutes from."""
    return f"/api/mom/{quote(call_id, safe='')}"


class TranscriptStore:
    """All durable state for the minutes pipeline, rooted at one directory.

    Layout::

        <root>/transcripts/<callId>.json   caption batch (last write wins)
        <root>/mom/<callId>.pdf            rendered minutes
        <root>/mom/metadata.json           {callId: MomMetadata}
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.transcripts_dir = self.root / TRANSCRIPTS_DIR
        self.mom_dir = self.root / MOM_DIR
        self.metadata_path = self.mom_dir / METADATA_FILE
        self._index_lock = threading.Lock()

    def ensure_storage(self) -> None:
        """Create the directory layout and an empty index if they are missing.

        Safe to call concurrently: directories that already exist are left alone.
        """
        for directory in (self.root, self.transcripts_dir, self.mom_dir):
            directory.mkdir(parents=True, exist_ok=True)
        try:
            with self.metadata_path.open("x", encoding="utf-8") as fh:
                json.dump({}, fh, indent=2)
        except FileExistsError:
            pass

    def transcript_path(self, call_id: str) -> Path:
        return self.transcripts_dir / f"{validate_call_id(call_id)}.json"

    def document_path(self, call_id: str) -> Path:
        return self.mom_dir / f"{validate_call_id(call_id)}.pdf"

    # -- caption batches ---------------------------------------------------

    def write_caption_batch(self, call_id: str, captions: list[Caption], timestamp: str) -> None:
        """Replace any previous batch for ``call_id``."""
        batch = CaptionBatch(call_id=call_id, saved_at=timestamp, captions=list(captions))
        _atomic_write(
            self.transcript_path(call_id),
            json.dumps(batch.to_dict(), indent=2, ensure_ascii=False).encode("utf-8"),
        )

    def read_caption_batch(self, call_id: str) -> CaptionBatch:
        path = self.transcript_path(call_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise NotFoundError(f"No transcript stored for call {call_id}") from exc
        return CaptionBatch.from_dict(json.loads(raw))

    # -- rendered documents -------------------------------------------------

    def write_document(self, call_id: str, data: bytes) -> None:
        _atomic_write(self.document_path(call_id), data)

    def read_document(self, call_id: str) -> bytes:
        path = self.document_path(call_id)
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise NotFoundError(f"No minutes stored for call {call_id}") from exc

    # -- metadata index -----------------------------------------------------

    def read_metadata_index(self) -> dict[str, dict[str, Any]]:
        """Return the whole index; a missing or blank file reads as ``{}``."""
        try:
            content = self.metadata_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        return json.loads(content or "{}")  # type: ignore[no-any-return]

    def write_metadata_index(self, index: dict[str, dict[str, Any]]) -> None:
        _atomic_write(
            self.metadata_path,
            json.dumps(index, indent=2, ensure_ascii=False).encode("utf-8"),
        )

    def upsert_metadata(self, entry: MomMetadata) -> dict[str, dict[str, Any]]:
        """Read-modify-write the index under a lock so concurrent completions don't drop entries."""
        with self._index_lock:
            index = self.read_metadata_index()
            index[entry.call_id] = entry.to_dict()
            self.write_metadata_index(index)
        return index


def _atomic_write(path: Path, data: bytes) -> None:
    """Write ``data`` to a sibling temp file and rename it over ``path``."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


@lru_cache(maxsize=1)
def get_transcript_store() -> TranscriptStore:
    """Return the process-wide store rooted at ``settings.storage_root``."""
    return TranscriptStore(settings.storage_root)
