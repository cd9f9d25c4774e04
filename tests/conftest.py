"""Shared fixtures: an isolated storage root and an API client wired to it."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from src.api.main import app
from src.ingestion.storage import TranscriptStore


@pytest.fixture
def store(tmp_path: Path) -> TranscriptStore:
    return TranscriptStore(tmp_path / "storage")


@pytest.fixture
def client(store: TranscriptStore) -> Iterator[TestClient]:
    """TestClient whose routes read and write ``store`` instead of ./storage."""
    with (
        patch("src.api.routes.transcripts.get_transcript_store", return_value=store),
        patch("src.api.routes.mom.get_transcript_store", return_value=store),
    ):
        yield TestClient(app)
