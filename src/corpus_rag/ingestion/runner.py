"""Ingestion entry point — corpus directory → indexed collection.

Usage::

    from corpus_rag.ingestion.runner import build_default_pipeline, ingest_corpus
    from corpus_rag.ingestion.models import CorpusType

    report = ingest_corpus(CorpusType.PROSE, "data/docs", pipeline=build_default_pipeline())
    print(report.summary())
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from corpus_rag.config import Settings, settings
from corpus_rag.errors import NormalizationError
from corpus_rag.ingestion.documents import build_chunks
from corpus_rag.ingestion.indexer import IndexingPipeline
from corpus_rag.ingestion.loader import discover_files, project_manifest, read_raw_file
from corpus_rag.ingestion.models import Chunk, CorpusType, IngestionReport
from corpus_rag.ingestion.normalizers import Normalizer, get_normalizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CorpusConfig:
    """Resolved per-corpus ingestion parameters."""

    root: Path
    collection: str
    chunk_size: int
    chunk_overlap: int
    ignored_folders: tuple[str, ...] = ()
    max_file_size: int | None = None


def corpus_config(corpus_type: CorpusType, cfg: Settings = settings) -> CorpusConfig:
    """Build the :class:`CorpusConfig` for *corpus_type* from settings."""
    if corpus_type is CorpusType.PROSE:
        return CorpusConfig(Path(cfg.docs_path), cfg.docs_collection, cfg.chunk_size, cfg.chunk_overlap)
    if corpus_type is CorpusType.CHAT:
        return CorpusConfig(Path(cfg.chat_path), cfg.chat_collection, cfg.chunk_size, cfg.chunk_overlap)
    return CorpusConfig(
        Path(cfg.code_path),
        cfg.code_collection,
        cfg.code_chunk_size,
        cfg.code_chunk_overlap,
        ignored_folders=tuple(cfg.code_ignored_folders),
        max_file_size=cfg.code_max_file_size,
    )


def build_default_pipeline(cfg: Settings = settings) -> IndexingPipeline:
    """Chroma + HuggingFace embeddings, as configured."""
    from corpus_rag.ingestion.embedder import get_embedding_function
    from corpus_rag.retrieval.chroma_store import ChromaVectorStore

    store = ChromaVectorStore(host=cfg.chroma_host, port=cfg.chroma_port, api_key=cfg.chroma_api_key)
    return IndexingPipeline(store, get_embedding_function(cfg.embedding_model), batch_size=cfg.index_batch_size)


def collect_chunks(
    corpus_type: CorpusType,
    config: CorpusConfig,
    report: IngestionReport,
    normalizer: Normalizer | None = None,
) -> list[Chunk]:
    """Normalise and chunk every file of a corpus, updating *report* in place.

    Files are handled one at a time.  A file that fails to normalise is
    logged, counted in ``files_failed`` and contributes no chunks.
    """
    normalizer = normalizer or get_normalizer(corpus_type)
    paths = discover_files(config.root, normalizer.file_patterns, config.ignored_folders)
    if not paths:
        logger.info("No %s files found in %s", corpus_type.value, config.root)
        return []
    logger.info("Found %d %s files to process in %s", len(paths), corpus_type.value, config.root)

    all_chunks: list[Chunk] = []
    for path in paths:
        try:
            if config.max_file_size is not None:
                size = path.stat().st_size
                if size > config.max_file_size:
                    logger.info("Skipping large file (%dKB): %s", size // 1024, path)
                    report.files_skipped += 1
                    continue

            logger.info("Processing %s", path)
            raw_file = read_raw_file(path)
            documents = normalizer.normalize(raw_file)
            chunks = build_chunks(
                raw_file,
                documents,
                normalizer,
                chunk_size=config.chunk_size,
                chunk_overlap=config.chunk_overlap,
                corpus_type=corpus_type,
            )
        except NormalizationError as exc:
            logger.warning("Skipping %s: %s", path, exc)
            report.files_failed += 1
            continue
        except Exception:
            logger.exception("Error processing %s", path)
            report.files_failed += 1
            continue

        all_chunks.extend(chunks)
        report.files_processed += 1
    return all_chunks


def ingest_corpus(
    corpus_type: CorpusType | str,
    root: str | Path | None = None,
    *,
    pipeline: IndexingPipeline,
    collection: str | None = None,
    chunk_size: int | None = None,
    chunk_overlap: int | None = None,
    batch_size: int | None = None,
    cfg: Settings = settings,
) -> IngestionReport:
    """Ingest one corpus directory into its collection.

    Parameters
    ----------
    corpus_type:
        Which normalizer variant to use.
    root:
        Corpus directory; defaults to the configured path for *corpus_type*.
    pipeline:
        Indexing pipeline (embeddings + vector store).
    collection, chunk_size, chunk_overlap:
        Overrides for the configured values.
    batch_size:
        Overrides the pipeline's batch size for this run.

    Returns
    -------
    IngestionReport
        Tally of processed / failed / skipped files and chunks.

    Raises
    ------
    UpstreamError
        When embedding or upserting a batch fails; the run stops there.
    """
    corpus_type = CorpusType(corpus_type)
    base = corpus_config(corpus_type, cfg)
    config = CorpusConfig(
        root=Path(root) if root is not None else base.root,
        collection=collection or base.collection,
        chunk_size=chunk_size or base.chunk_size,
        chunk_overlap=chunk_overlap if chunk_overlap is not None else base.chunk_overlap,
        ignored_folders=base.ignored_folders,
        max_file_size=base.max_file_size,
    )
    report = IngestionReport(corpus_type=corpus_type, collection=config.collection)
    normalizer = get_normalizer(corpus_type)

    chunks: list[Chunk] = []
    if corpus_type is CorpusType.CODE:
        manifest = project_manifest(config.root)
        if manifest is not None:
            raw_file, document = manifest
            chunks.extend(
                build_chunks(
                    raw_file,
                    [document],
                    normalizer,
                    chunk_size=config.chunk_size,
                    chunk_overlap=config.chunk_overlap,
                    corpus_type=corpus_type,
                )
            )

    chunks.extend(collect_chunks(corpus_type, config, report, normalizer))
    report.chunks_created = len(chunks)

    logger.info(
        "Processed %d files successfully (%d files failed, %d skipped)",
        report.files_processed,
        report.files_failed,
        report.files_skipped,
    )
    logger.info("Created %d chunks from %s corpus", report.chunks_created, corpus_type.value)

    if not chunks:
        logger.info("No chunks created; skipping indexing for %s", config.collection)
        return report

    report.records_indexed = pipeline.index(chunks, config.collection, batch_size=batch_size)
    logger.info("Indexed %d records into %s", report.records_indexed, config.collection)
    return report


def ingest_all(
    kinds: Iterable[CorpusType | str] = tuple(CorpusType),
    *,
    pipeline: IndexingPipeline | None = None,
    cfg: Settings = settings,
) -> list[IngestionReport]:
    """Ingest several corpora in sequence using their configured paths."""
    pipeline = pipeline or build_default_pipeline(cfg)
    return [ingest_corpus(kind, pipeline=pipeline, cfg=cfg) for kind in kinds]
