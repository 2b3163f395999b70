"""Retrieval front door: vector search when an index exists, lexical otherwise."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from ..config import IGNORED_DIRECTORIES, TEXT_FILE_EXTENSIONS, workspace_root
from ..core import Embedder, make_embedder
from ..errors import ConfigurationError, EmptyQuery, StoreError
from ..schemas import (
    FileSearchRequest,
    FileSearchResponse,
    KeywordSearchRequest,
    KeywordSearchResponse,
    RetrievalResult,
    SemanticSearchRequest,
    SemanticSearchResponse,
    VectorMatch,
    VectorSearchRequest,
    VectorSearchResponse,
    parse_request,
)
from ..storage import VectorStore, make_vector_store
from ..storage.database import NOT_CONFIGURED_MESSAGE
from ..utils import resolve_workspace_path, walk_files
from .base import Searcher
from .files import match_files
from .keyword import scan_keywords
from .lexical import LexicalScanner, tokenize

logger = logging.getLogger(__name__)


def _round_score(score: Optional[float]) -> Optional[float]:
    return round(score, 4) if score is not None else None


class RepositorySearcher(Searcher):

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

    def search(
        self,
        request: Union[SemanticSearchRequest, Mapping[str, Any]],
    ) -> SemanticSearchResponse:
        req = parse_request(SemanticSearchRequest, request)
        tokens = tokenize(req.query)
        if not tokens:
            raise EmptyQuery("Provide a more descriptive query.")

        if req.repo_slug:
            embedder = self._optional_embedder()
            if embedder is not None and self._store_reachable():
                return self._vector_path(req, embedder)

        return self._lexical_path(req, tokens)

    def vector_search(
        self,
        request: Union[VectorSearchRequest, Mapping[str, Any]],
    ) -> VectorSearchResponse:
        req = parse_request(VectorSearchRequest, request)
        logger.info(
            f"Vector search in {req.repo_slug} (top_k={req.top_k}, min_score={req.min_score}, "
            f"model={req.embedding_model})"
        )
        if not req.query.strip():
            raise EmptyQuery("Query is empty.")

        embedder = self._embedder or make_embedder(self.cfg, model=req.embedding_model)
        if not self.store.configured:
            raise ConfigurationError(NOT_CONFIGURED_MESSAGE)

        vector = embedder.embed_one(req.query, model=req.embedding_model)
        hits = self.store.similarity_search(req.repo_slug, vector, limit=req.top_k)

        results: List[VectorMatch] = []
        for hit in hits:
            score = _round_score(hit.score)
            if score is not None and score < req.min_score:
                continue
            results.append(
                VectorMatch(
                    file_path=hit.file_path,
                    chunk_index=hit.chunk_index,
                    content=hit.content,
                    branch=hit.branch,
                    commit_sha=hit.commit_sha,
                    embedding_model=hit.embedding_model,
                    score=score,
                )
            )

        return VectorSearchResponse(
            repo_slug=req.repo_slug,
            query=req.query,
            top_k=req.top_k,
            min_score=req.min_score,
            embedding_model=req.embedding_model,
            results=results,
        )

    def keyword_search(
        self,
        request: Union[KeywordSearchRequest, Mapping[str, Any]],
    ) -> KeywordSearchResponse:
        req = parse_request(KeywordSearchRequest, request)
        max_files = int(self.cfg.get("search", {}).get("keyword_max_files", 2_000))
        root = Path(workspace_root(self.cfg))
        files = self._walk(req.search_root, max_files)

        matches, has_more = scan_keywords(
            files,
            req.keywords,
            root,
            case_sensitive=req.case_sensitive,
            max_results=req.max_results,
            context_lines=req.context_lines,
        )
        return KeywordSearchResponse(
            matches=matches,
            keywords=req.keywords,
            case_sensitive=req.case_sensitive,
            searched_files=len(files),
            has_more=has_more,
        )

    def file_search(
        self,
        request: Union[FileSearchRequest, Mapping[str, Any]],
    ) -> FileSearchResponse:
        req = parse_request(FileSearchRequest, request)
        max_files = int(self.cfg.get("search", {}).get("file_max_files", 5_000))
        root_abs, _ = resolve_workspace_path(workspace_root(self.cfg), req.search_root)
        files = walk_files(
            root_abs,
            max_files=max_files,
            include_hidden=req.include_hidden,
            ignored_directories=self.cfg.get("walker", {}).get("ignored_directories", IGNORED_DIRECTORIES),
            skip_binary=False,
        )

        matches, has_more = match_files(
            files,
            req.pattern,
            Path(workspace_root(self.cfg)),
            max_results=req.max_results,
        )
        logger.debug(f"File search {req.pattern!r}: {len(matches)} of {len(files)} files matched")
        return FileSearchResponse(
            pattern=req.pattern,
            matches=matches,
            total_files_examined=len(files),
            has_more=has_more,
        )

    def _optional_embedder(self) -> Optional[Embedder]:
        if self._embedder is not None:
            return self._embedder
        try:
            self._embedder = make_embedder(self.cfg)
        except ConfigurationError as e:
            logger.info(f"Embeddings unavailable, using local search: {e}")
            return None
        return self._embedder

    def _store_reachable(self) -> bool:
        store = self.store
        if not store.configured:
            return False
        try:
            store.ping()
        except (StoreError, ConfigurationError) as e:
            logger.warning(f"Vector store unavailable, falling back to local search: {e}")
            return False
        return True

    def _vector_path(self, req: SemanticSearchRequest, embedder: Embedder) -> SemanticSearchResponse:
        logger.info(f"Using vector store for {req.repo_slug} (max_results={req.max_results})")
        model = self.cfg.get("embedding", {}).get("model") or None
        vector = embedder.embed_one(req.query, model=model)
        hits = self.store.similarity_search(req.repo_slug, vector, limit=req.max_results + 1)
        has_more = len(hits) > req.max_results

        results = [
            RetrievalResult(
                file_path=hit.file_path,
                score=_round_score(hit.score),
                snippet=hit.content,
                line=None,
                truncated=False,
                branch=hit.branch,
                commit_sha=hit.commit_sha,
                source="vector_store",
            )
            for hit in hits[:req.max_results]
        ]
        return SemanticSearchResponse(
            query=req.query,
            results=results,
            searched_files=None,
            has_more=has_more,
            used_vector_store=True,
        )

    def _lexical_path(self, req: SemanticSearchRequest, tokens: List[str]) -> SemanticSearchResponse:
        logger.info(f"Using local search under {req.search_root} (max_results={req.max_results})")
        search_cfg = self.cfg.get("search", {})
        files = self._walk(req.search_root, int(search_cfg.get("max_files", 2_500)))

        scanner = LexicalScanner(max_file_bytes=search_cfg.get("max_file_bytes", 50_000))
        scan = scanner.scan(
            files,
            req.query,
            tokens,
            root=Path(workspace_root(self.cfg)),
            max_results=req.max_results,
            max_snippet_length=req.max_snippet_length,
        )
        return SemanticSearchResponse(
            query=req.query,
            results=scan.results,
            searched_files=scan.searched_files,
            has_more=scan.has_more,
            used_vector_store=False,
        )

    def _walk(self, search_root: str, max_files: int) -> List[Path]:
        root_abs, _ = resolve_workspace_path(workspace_root(self.cfg), search_root)
        walker_cfg = self.cfg.get("walker", {})
        return walk_files(
            root_abs,
            extensions=walker_cfg.get("text_extensions", TEXT_FILE_EXTENSIONS),
            max_files=max_files,
            include_hidden=bool(walker_cfg.get("include_hidden", False)),
            ignored_directories=walker_cfg.get("ignored_directories", IGNORED_DIRECTORIES),
        )


def search(cfg: Dict, query: str, repo_slug: Optional[str] = None, **fields: Any) -> SemanticSearchResponse:
    searcher = RepositorySearcher(cfg)
    return searcher.search({"query": query, "repo_slug": repo_slug, **fields})


def vector_search(cfg: Dict, repo_slug: str, query: str, **fields: Any) -> VectorSearchResponse:
    searcher = RepositorySearcher(cfg)
    return searcher.vector_search({"repo_slug": repo_slug, "query": query, **fields})


def keyword_search(cfg: Dict, keywords: List[str], **fields: Any) -> KeywordSearchResponse:
    searcher = RepositorySearcher(cfg)
    return searcher.keyword_search({"keywords": keywords, **fields})


def file_search(cfg: Dict, pattern: str, **fields: Any) -> FileSearchResponse:
    searcher = RepositorySearcher(cfg)
    return searcher.file_search({"pattern": pattern, **fields})
