"""Tests for chunk assembly and the ingestion entry point."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from conftest import FakeVectorStore
from corpus_rag.config import Settings, settings
from corpus_rag.errors import UpstreamError
from corpus_rag.ingestion import runner
from corpus_rag.ingestion.documents import build_chunks
from corpus_rag.ingestion.indexer import IndexingPipeline
from corpus_rag.ingestion.loader import discover_files, project_manifest
from corpus_rag.ingestion.models import Chunk, CorpusType, IngestionReport, NormalizedDocument, RawFile
from corpus_rag.ingestion.normalizers import ProseNormalizer
from corpus_rag.ingestion.runner import ingest_corpus

REQUIRED = {"source", "fileName", "chunkIndex", "type", "createdAt"}


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def _chat_export(messages: list[tuple[str, str]]) -> str:
    return json.dumps(
        {
            "guild": {"id": "g1", "name": "Guild"},
            "channel": {"id": "c1", "name": "general"},
            "messages": [
                {"id": str(i), "timestamp": ts, "content": text, "author": {"name": "alice"}}
                for i, (ts, text) in enumerate(messages)
            ],
        }
    )


@pytest.fixture()
def pipeline(fake_store: FakeVectorStore, fake_embeddings) -> IndexingPipeline:
    return IndexingPipeline(fake_store, fake_embeddings, batch_size=50)


# ── Chunk model ────────────────────────────────────────────────────────


class TestChunkModel:
    def _meta(self, **overrides) -> dict:
        meta = {"source": "a.md", "fileName": "a.md", "chunkIndex": 0, "type": "prose", "createdAt": "now"}
        meta.update(overrides)
        return meta

    def test_valid_chunk(self) -> None:
        chunk = Chunk(text="hello", metadata=self._meta(chunkIndex=3))
        assert chunk.chunk_index == 3
        assert chunk.source == "a.md"

    def test_empty_text_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            Chunk(text="   ", metadata=self._meta())

    def test_missing_required_key_rejected(self) -> None:
        meta = self._meta()
        del meta["createdAt"]
        with pytest.raises(PydanticValidationError, match="createdAt"):
            Chunk(text="hello", metadata=meta)


# ── build_chunks ───────────────────────────────────────────────────────


class TestBuildChunks:
    def test_chunk_index_is_contiguous_per_document(self) -> None:
        raw = RawFile(path=Path("/docs/guide.md"), content="")
        text = " ".join(f"word{i}" for i in range(80))
        docs = [NormalizedDocument(text=text), NormalizedDocument(text="short second document")]

        chunks = build_chunks(raw, docs, ProseNormalizer(), chunk_size=60, chunk_overlap=10)

        first = [c for c in chunks if c.text != "short second document"]
        assert len(first) > 1
        assert [c.chunk_index for c in first] == list(range(len(first)))
        assert chunks[-1].chunk_index == 0
        assert all(len(c.text) <= 60 for c in chunks)

    def test_required_metadata_and_precedence(self) -> None:
        raw = RawFile(path=Path("/docs/guide.md"), content="")
        doc = NormalizedDocument(text="body", metadata={"title": "Guide", "source": "overridden?"})

        [chunk] = build_chunks(raw, [doc], ProseNormalizer(), chunk_size=100, chunk_overlap=0)

        assert REQUIRED <= chunk.metadata.keys()
        assert chunk.metadata["title"] == "Guide"
        assert chunk.metadata["source"] == str(Path("/docs/guide.md"))
        assert chunk.metadata["fileName"] == "guide.md"
        assert chunk.metadata["type"] == "prose"

    def test_document_type_overrides_corpus_type(self) -> None:
        raw = RawFile(path=Path("/repo"), content="")
        doc = NormalizedDocument(text="{}", doc_type="project_manifest")
        [chunk] = build_chunks(raw, [doc], ProseNormalizer(), chunk_size=100, chunk_overlap=0)
        assert chunk.metadata["type"] == "project_manifest"

    def test_empty_document_yields_no_chunks(self) -> None:
        raw = RawFile(path=Path("/docs/empty.md"), content="")
        assert build_chunks(raw, [NormalizedDocument(text="  \n")], ProseNormalizer(), chunk_size=10, chunk_overlap=0) == []


# ── Loader ─────────────────────────────────────────────────────────────


class TestLoader:
    def test_discover_creates_missing_root(self, tmp_path: Path) -> None:
        root = tmp_path / "missing"
        assert discover_files(root, ["**/*.md"]) == []
        assert root.is_dir()

    def test_discover_skips_ignored_folders(self, tmp_path: Path) -> None:
        keep = _write(tmp_path / "src" / "a.ts", "const a = 1;")
        _write(tmp_path / "node_modules" / "lib" / "b.ts", "const b = 2;")
        assert discover_files(tmp_path, ["**/*.ts"], ["node_modules"]) == [keep]

    def test_discover_deduplicates_overlapping_patterns(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "a.md", "x")
        assert discover_files(tmp_path, ["**/*.md", "*.md"]) == [path]

    def test_project_manifest(self, tmp_path: Path) -> None:
        _write(tmp_path / "package.json", json.dumps({"name": "demo", "version": "1.0.0", "scripts": {}}))
        _write(tmp_path / "tsconfig.json", json.dumps({"compilerOptions": {"strict": True}}))

        raw, doc = project_manifest(tmp_path)

        assert raw.path == tmp_path
        assert doc.doc_type == "project_manifest"
        assert doc.metadata == {"manifests": ["packageJson", "tsconfig"]}
        summary = json.loads(doc.text)
        assert summary["packageJson"]["name"] == "demo"
        assert summary["tsconfig"]["compilerOptions"] == {"strict": True}

    def test_no_manifest(self, tmp_path: Path) -> None:
        assert project_manifest(tmp_path) is None


# ── ingest_corpus ──────────────────────────────────────────────────────


class TestIngestCorpus:
    def test_prose_files_become_distinct_records(
        self, tmp_path: Path, pipeline: IndexingPipeline, fake_store: FakeVectorStore
    ) -> None:
        _write(tmp_path / "a.md", "---\ntitle: A\n---\nAlpha body text.")
        _write(tmp_path / "nested" / "b.mdx", "---\ntitle: B\n---\nBeta body text.")
        _write(tmp_path / "ignored.txt", "not markdown")

        report = ingest_corpus(CorpusType.PROSE, tmp_path, pipeline=pipeline)

        assert report.files_processed == 2
        assert report.files_failed == 0
        assert report.chunks_created == 2
        assert report.records_indexed == 2
        records = fake_store.records(settings.docs_collection)
        assert sorted(r.metadata["title"] for r in records) == ["A", "B"]
        assert {r.metadata["type"] for r in records} == {"prose"}
        assert len({r.metadata["source"] for r in records}) == 2
        assert all(REQUIRED <= r.metadata.keys() for r in records)
        assert all(len(r.embedding) == 8 for r in records)

    def test_malformed_chat_file_is_counted_and_skipped(
        self, tmp_path: Path, pipeline: IndexingPipeline, fake_store: FakeVectorStore
    ) -> None:
        _write(
            tmp_path / "general.json",
            _chat_export(
                [
                    ("2024-03-01T10:00:00", "hello"),
                    ("2024-03-01T12:00:00", "   "),
                    ("2024-03-02T09:00:00", "next day"),
                ]
            ),
        )
        _write(tmp_path / "broken.json", "{oops")

        report = ingest_corpus("chat", tmp_path, pipeline=pipeline)

        assert report.files_processed == 1
        assert report.files_failed == 1
        records = fake_store.records(settings.chat_collection)
        assert sorted(r.metadata["day"] for r in records) == ["2024-03-01", "2024-03-02"]
        assert all(r.metadata["chunkIndex"] == 0 for r in records)
        assert all(r.metadata["type"] == "chat" for r in records)

    def test_code_corpus_skips_large_and_ignored_files(
        self, tmp_path: Path, pipeline: IndexingPipeline, fake_store: FakeVectorStore
    ) -> None:
        _write(tmp_path / "package.json", json.dumps({"name": "demo"}))
        _write(tmp_path / "src" / "small.ts", "import { x } from 'lib';\n\nexport class Small {}\n")
        _write(tmp_path / "src" / "big.ts", "// padding\n" * 100)
        _write(tmp_path / "node_modules" / "dep" / "index.ts", "export const dep = 1;")
        cfg = Settings(code_max_file_size=200)

        report = ingest_corpus(CorpusType.CODE, tmp_path, pipeline=pipeline, cfg=cfg)

        assert report.files_processed == 1
        assert report.files_skipped == 1
        assert report.files_failed == 0
        records = fake_store.records(cfg.code_collection)
        assert records[0].metadata["type"] == "project_manifest"
        code = [r for r in records if r.metadata["type"] == "code"]
        assert len(code) == 1
        assert code[0].metadata["fileName"] == "small.ts"
        assert code[0].metadata["classes"] == "Small"
        assert code[0].metadata["importStatements"] == "lib"

    def test_empty_corpus_indexes_nothing(
        self, tmp_path: Path, pipeline: IndexingPipeline, fake_store: FakeVectorStore
    ) -> None:
        report = ingest_corpus(CorpusType.PROSE, tmp_path, pipeline=pipeline)
        assert report.chunks_created == 0
        assert report.records_indexed == 0
        assert fake_store.upserts == []

    def test_collection_override(
        self, tmp_path: Path, pipeline: IndexingPipeline, fake_store: FakeVectorStore
    ) -> None:
        _write(tmp_path / "a.md", "text")
        ingest_corpus(CorpusType.PROSE, tmp_path, pipeline=pipeline, collection="custom")
        assert [name for name, _ in fake_store.upserts] == ["custom"]

    def test_upstream_failure_propagates(self, tmp_path: Path, fake_embeddings) -> None:
        _write(tmp_path / "a.md", "text")
        pipeline = IndexingPipeline(FakeVectorStore(fail_on_upsert=1), fake_embeddings)

        with pytest.raises(UpstreamError) as excinfo:
            ingest_corpus(CorpusType.PROSE, tmp_path, pipeline=pipeline)

        assert excinfo.value.operation == "upsert"

    def test_file_vanishing_after_discovery_is_counted_as_failed(
        self,
        tmp_path: Path,
        pipeline: IndexingPipeline,
        fake_store: FakeVectorStore,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        present = _write(tmp_path / "present.ts", "export class Present {}\n")
        vanished = tmp_path / "vanished.ts"
        monkeypatch.setattr(runner, "discover_files", lambda *args, **kwargs: [vanished, present])

        report = ingest_corpus(CorpusType.CODE, tmp_path, pipeline=pipeline)

        assert report.files_failed == 1
        assert report.files_processed == 1
        assert [r.metadata["fileName"] for r in fake_store.records(settings.code_collection)] == ["present.ts"]


def test_report_summary() -> None:
    report = IngestionReport(
        corpus_type=CorpusType.CHAT,
        collection="chat_messages",
        files_processed=3,
        files_failed=1,
        files_skipped=0,
        chunks_created=7,
        records_indexed=7,
    )
    assert report.summary() == (
        "chat: processed 3 files (1 failed, 0 skipped), created 7 chunks, "
        "indexed 7 → collection 'chat_messages'"
    )
