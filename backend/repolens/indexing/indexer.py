"""Repository indexing logic."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from ..config import IGNORED_DIRECTORIES, TEXT_FILE_EXTENSIONS, workspace_root
from ..core import ChunkRecord, Embedder, WindowChunker, make_embedder, validate_window
from ..errors import ConfigurationError, IntegrityError, NotFoundError, RepolensError, TransientIOError
from ..schemas import IndexRequest, IndexSummary, parse_request
from ..storage import VectorStore, make_vector_store
from ..storage.database import NOT_CONFIGURED_MESSAGE
from ..utils import read_text_file, resolve_workspace_path, walk_files
from .base import Indexer
from .filters import should_skip_for_embedding

logger = logging.getLogger(__name__)

EMBEDDING_BATCH_SIZE = 96


def embed_in_batches(
    embedder: Embedder,
    texts: Sequence[str],
    model: Optional[str] = None,
    batch_size: int = EMBEDDING_BATCH_SIZE,
) -> List[List[float]]:
    """Embed ``texts`` one batch at a time, preserving order.

    Raises:
        IntegrityError: If the number of vectors returned differs from the
            number of texts.
    """
    if batch_size <= 0:
        raise ConfigurationError(f"Embedding batch size must be positive, got {batch_size}.")

    embeddings: List[List[float]] = []
    total = len(texts)
    for start in range(0, total, batch_size):
        batch = list(texts[start:start + batch_size])
        embeddings.extend(embedder.embed(batch, model=model))
        logger.info(f"Embedded batch {min(start + batch_size, total)}/{total}")

    if len(embeddings) != total:
        raise IntegrityError(
            f"Embedding count mismatch ({len(embeddings)} vectors for {total} chunks). Aborting indexing."
        )
    return embeddings


class RepositoryIndexer(Indexer):
    """Walks a repository, chunks and embeds its text files, and replaces
    the repository's snapshot in the vector store.
    """

    def __init__(
        self,
        cfg: Dict,
        store: Optional[VectorStore] = None,
        embedder: Optional[Embedder] = None,
    ) -> None:
        self.cfg = cfg
        self._store = store
        self._embedder = embedder

    @property
    def store(self) -> VectorStore:
        if self._store is None:
            self._store = make_vector_store(self.cfg)
        return self._store

    def _get_embedder(self, model: str) -> Embedder:
        if self._embedder is not None:
            return self._embedder
        return make_embedder(self.cfg, model=model)

    def index(self, request: Union[IndexRequest, Mapping[str, Any]]) -> IndexSummary:
        req = parse_request(IndexRequest, request)
        logger.info(
            f"Indexing {req.repo_slug} from {req.repo_path} "
            f"(branch={req.branch}, commit={req.commit_sha}, model={req.embedding_model}, "
            f"max_files={req.max_files}, max_chunks={req.max_chunks}, "
            f"chunk_size={req.chunk_size}, chunk_overlap={req.chunk_overlap})"
        )
        try:
            return self._run(req)
        except RepolensError as e:
            logger.error(f"Indexing failed for {req.repo_slug}: {e}")
            raise

    def _run(self, req: IndexRequest) -> IndexSummary:
        validate_window(req.chunk_size, req.chunk_overlap)
        store = self.store
        if not store.configured:
            raise ConfigurationError(NOT_CONFIGURED_MESSAGE)
        embedder = self._get_embedder(req.embedding_model)

        repo_abs, repo_rel = resolve_workspace_path(workspace_root(self.cfg), req.repo_path)
        if not repo_abs.is_dir():
            raise NotFoundError(f"Repository path does not exist: {req.repo_path}")

        summary = IndexSummary(
            repo_slug=req.repo_slug,
            repo_path=repo_rel,
            branch=req.branch,
            commit_sha=req.commit_sha,
            embedding_model=req.embedding_model,
        )

        if not req.force_reindex and req.commit_sha:
            if store.is_up_to_date(req.repo_slug, req.commit_sha, req.embedding_model):
                summary.message = "Embeddings already exist for this commit. Skipping reindex."
                summary.skipped = True
                logger.info(f"Skipping {req.repo_slug}: commit {req.commit_sha} already indexed")
                return summary

        walker_cfg = self.cfg.get("walker", {})
        candidates = walk_files(
            repo_abs,
            extensions=walker_cfg.get("text_extensions", TEXT_FILE_EXTENSIONS),
            max_files=req.max_files,
            include_hidden=bool(walker_cfg.get("include_hidden", False)),
            ignored_directories=walker_cfg.get("ignored_directories", IGNORED_DIRECTORIES),
        )
        logger.info(f"Scan complete for {req.repo_slug}: {len(candidates)} candidate files")

        if not candidates:
            summary.message = "No text files found to index."
            return summary

        records, files_visited, skipped = self._collect_chunks(repo_abs, candidates, req)
        summary.skipped_files = skipped
        logger.info(
            f"Chunking summary for {req.repo_slug}: files={files_visited}, "
            f"chunks={len(records)}, skipped={len(skipped)}"
        )

        if not records:
            summary.message = "No eligible chunks to index. Files may have been empty or binary."
            return summary

        batch_size = int(self.cfg.get("embedding", {}).get("batch_size", EMBEDDING_BATCH_SIZE))
        embeddings = embed_in_batches(
            embedder,
            [r.content for r in records],
            model=req.embedding_model,
            batch_size=batch_size,
        )
        for record, vector in zip(records, embeddings):
            record.embedding = vector

        logger.info(f"Writing {len(records)} rows for {req.repo_slug} to the vector store")
        store.replace_all(
            req.repo_slug,
            records,
            branch=req.branch,
            commit_sha=req.commit_sha,
            embedding_model=req.embedding_model,
        )

        summary.files_indexed = files_visited
        summary.chunks_indexed = len(records)
        logger.info(f"Indexed {len(records)} chunks from {files_visited} files for {req.repo_slug}")
        return summary

    def _collect_chunks(self, repo_abs: Path, candidates: List[Path], req: IndexRequest):
        max_bytes = int(self.cfg.get("indexing", {}).get("max_file_bytes", 200_000))
        chunker = WindowChunker(size=req.chunk_size, overlap=req.chunk_overlap)

        records: List[ChunkRecord] = []
        skipped: List[str] = []
        files_visited = 0

        for fp in candidates:
            if len(records) >= req.max_chunks:
                break

            rel = fp.relative_to(repo_abs).as_posix()
            if should_skip_for_embedding(rel):
                skipped.append(rel)
                continue

            try:
                text = read_text_file(fp, max_bytes).content
            except TransientIOError as e:
                logger.warning(f"Read failed, skipping file {rel}: {e}")
                skipped.append(rel)
                continue

            chunks = chunker.chunk(text, file_path=rel)
            if not chunks:
                skipped.append(rel)
                continue

            for chunk in chunks:
                if len(records) >= req.max_chunks:
                    break
                records.append(ChunkRecord(file_path=rel, chunk_index=chunk.index, content=chunk.text))

            files_visited += 1

        return records, files_visited, skipped


def build_index(
    cfg: Dict,
    request: Optional[Union[IndexRequest, Mapping[str, Any]]] = None,
    store: Optional[VectorStore] = None,
    embedder: Optional[Embedder] = None,
    **fields: Any,
) -> IndexSummary:
    """Index a repository snapshot (Wrapper)."""
    indexer = RepositoryIndexer(cfg, store=store, embedder=embedder)
    return indexer.index(request if request is not None else fields)
