"""Tests for the filesystem TranscriptStore."""

from __future__ import annotations

import json
import threading

import pytest

from src.ingestion.models import Caption, MomMetadata
from src.ingestion.storage import (
    MAX_CALL_ID_BYTES,
    NotFoundError,
    TranscriptStore,
    resolve_document_locator,
    validate_call_id,
)


class TestEnsureStorage:
    def test_creates_layout_and_empty_index(self, store: TranscriptStore) -> None:
        store.ensure_storage()
        assert store.transcripts_dir.is_dir()
        assert store.mom_dir.is_dir()
        assert json.loads(store.metadata_path.read_text(encoding="utf-8")) == {}

    def test_idempotent_and_keeps_existing_index(self, store: TranscriptStore) -> None:
        store.ensure_storage()
        store.write_metadata_index({"a": {"callId": "a"}})
        store.ensure_storage()
        assert store.read_metadata_index() == {"a": {"callId": "a"}}

    def test_concurrent_callers(self, store: TranscriptStore) -> None:
        errors: list[BaseException] = []

        def worker() -> None:
            try:
                store.ensure_storage()
            except BaseException as exc:  # pragma: no cover - failure path
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert errors == []
        assert store.read_metadata_index() == {}


class TestCaptionBatches:
    def test_write_then_read(self, store: TranscriptStore) -> None:
        store.ensure_storage()
        captions = [
            Caption(text="Hello", speaker_name="Alice", start_time="2024-01-01T10:00:00Z"),
            Caption(text="Hi", speaker_name="Bob"),
        ]
        store.write_caption_batch("c1", captions, "2024-01-01T10:05:00.000Z")

        batch = store.read_caption_batch("c1")
        assert batch.call_id == "c1"
        assert batch.saved_at == "2024-01-01T10:05:00.000Z"
        assert [c.text for c in batch.captions] == ["Hello", "Hi"]

    def test_persisted_json_uses_wire_keys(self, store: TranscriptStore) -> None:
        store.ensure_storage()
        store.write_caption_batch("c1", [Caption(text="Hello", speaker_name="Alice")], "t0")
        data = json.loads(store.transcript_path("c1").read_text(encoding="utf-8"))
        assert data == {
            "callId": "c1",
            "savedAt": "t0",
            "captions": [{"text": "Hello", "speakerName": "Alice"}],
        }

    def test_last_write_wins(self, store: TranscriptStore) -> None:
        store.ensure_storage()
        store.write_caption_batch("c1", [Caption(text="old", speaker_name="A")], "t0")
        store.write_caption_batch("c1", [Caption(text="new", speaker_name="B")], "t1")
        batch = store.read_caption_batch("c1")
        assert [c.text for c in batch.captions] == ["new"]
        assert batch.saved_at == "t1"

    def test_missing_batch_is_not_found(self, store: TranscriptStore) -> None:
        store.ensure_storage()
        with pytest.raises(NotFoundError):
            store.read_caption_batch("nope")


class TestDocuments:
    def test_write_overwrites(self, store: TranscriptStore) -> None:
        store.ensure_storage()
        store.write_document("c1", b"%PDF-first")
        store.write_document("c1", b"%PDF-second")
        assert store.read_document("c1") == b"%PDF-second"

    def test_missing_document_is_not_found(self, store: TranscriptStore) -> None:
        store.ensure_storage()
        with pytest.raises(NotFoundError):
            store.read_document("nope")

    def test_missing_root_is_not_found(self, store: TranscriptStore) -> None:
        with pytest.raises(NotFoundError):
            store.read_document("c1")

    @pytest.mark.parametrize("call_id", ["", "../escape", "a/b", "a\\b", ".hidden"])
    def test_rejects_unsafe_call_ids(self, store: TranscriptStore, call_id: str) -> None:
        with pytest.raises(ValueError):
            store.document_path(call_id)


class TestMetadataIndex:
    def test_missing_index_reads_empty(self, store: TranscriptStore) -> None:
        assert store.read_metadata_index() == {}

    def test_round_trip(self, store: TranscriptStore) -> None:
        store.ensure_storage()
        entry = MomMetadata(
            call_id="abc",
            generated_at="2024-01-01T10:00:00.000Z",
            pdf_url=resolve_document_locator("abc"),
            title="Meeting Minutes - 2024-01-01 10:00 UTC",
        )
        store.upsert_metadata(entry)

        stored = MomMetadata.from_dict(store.read_metadata_index()["abc"])
        assert stored.call_id == "abc"
        assert stored.generated_at == "2024-01-01T10:00:00.000Z"
        assert stored.pdf_url == resolve_document_locator("abc") == "/api/mom/abc"

    def test_upsert_replaces_same_call(self, store: TranscriptStore) -> None:
        store.ensure_storage()
        for generated_at in ("t0", "t1"):
            store.upsert_metadata(MomMetadata("abc", generated_at, "/api/mom/abc", "title"))
        index = store.read_metadata_index()
        assert list(index) == ["abc"]
        assert index["abc"]["generatedAt"] == "t1"

    def test_concurrent_upserts_keep_every_entry(self, store: TranscriptStore) -> None:
        store.ensure_storage()

        def worker(i: int) -> None:
            call_id = f"call-{i}"
            store.upsert_metadata(
                MomMetadata(call_id, "t0", resolve_document_locator(call_id), "title")
            )

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert set(store.read_metadata_index()) == {f"call-{i}" for i in range(20)}


class TestLocator:
    def test_deterministic_and_url_safe(self) -> None:
        assert resolve_document_locator("c1") == "/api/mom/c1"
        assert resolve_document_locator("c1") == resolve_document_locator("c1")
        assert resolve_document_locator("a b?c") == "/api/mom/a%20b%3Fc"


class TestValidateCallId:
    @pytest.mark.parametrize("call_id", ["", "../x", "a/b", "a\\b", ".hidden"])
    def test_unsafe_ids_rejected(self, call_id: str) -> None:
        with pytest.raises(ValueError):
            validate_call_id(call_id)

    def test_overlong_id_rejected(self) -> None:
        with pytest.raises(ValueError, match="longer than"):
            validate_call_id("a" * (MAX_CALL_ID_BYTES + 1))

    def test_length_counts_encoded_bytes(self) -> None:
        # "é" is two bytes in UTF-8
        with pytest.raises(ValueError):
            validate_call_id("é" * (MAX_CALL_ID_BYTES // 2 + 1))

    def test_longest_id_is_writable(self, store: TranscriptStore) -> None:
        call_id = "a" * MAX_CALL_ID_BYTES
        assert validate_call_id(call_id) == call_id
        store.ensure_storage()
        store.write_document(call_id, b"%PDF")
        assert store.read_document(call_id) == b"%PDF"
