"""PostgreSQL + pgvector storage backend."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy import delete, func, insert, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import Select

from ..config import DEFAULT_CONFIG
from ..core.models import ChunkRecord, SimilarityHit
from ..errors import ConfigurationError, EmptyQuery, IntegrityError, StoreError
from .base import VectorStore
from .database import NOT_CONFIGURED_MESSAGE, VectorDatabase

logger = logging.getLogger(__name__)


class PgVectorStore(VectorStore):

    def __init__(self, database: VectorDatabase):
        self.database = database

    @property
    def table(self):
        return self.database.table

    @property
    def dimension(self) -> int:
        return self.database.dimension

    @property
    def configured(self) -> bool:
        return self.database.configured

    def ping(self) -> None:
        if not self.database.configured:
            raise ConfigurationError(NOT_CONFIGURED_MESSAGE)
        try:
            with self.database.session() as session:
                session.execute(select(1))
        except SQLAlchemyError as e:
            raise StoreError(f"Vector store is unreachable: {e}") from e

    def _check_dimension(self, index: int, record: ChunkRecord) -> None:
        if len(record.embedding) != self.dimension:
            raise IntegrityError(
                f"Record {index} at {record.file_path}#{record.chunk_index} has dimension "
                f"{len(record.embedding)}, expected {self.dimension}"
            )

    def replace_all(
        self,
        repo_slug: str,
        chunks: Sequence[ChunkRecord],
        *,
        branch: Optional[str] = None,
        commit_sha: Optional[str] = None,
        embedding_model: str,
    ) -> int:
        if not chunks:
            logger.warning(f"No records to save for repo: {repo_slug}")
            return 0

        for i, record in enumerate(chunks):
            self._check_dimension(i, record)

        rows: List[Dict] = [
            {
                "repo_slug": repo_slug,
                "branch": branch,
                "commit_sha": commit_sha,
                "file_path": record.file_path,
                "chunk_index": record.chunk_index,
                "content": record.content,
                "embedding": record.embedding,
                "embedding_model": embedding_model,
            }
            for record in chunks
        ]

        try:
            with self.database.session() as session, session.begin():
                if self.database.is_postgres:
                    # serialises concurrent snapshot replaces for the same slug
                    session.execute(
                        text("SELECT pg_advisory_xact_lock(hashtext(:slug))"),
                        {"slug": repo_slug},
                    )
                deleted = session.execute(
                    delete(self.table).where(self.table.c.repo_slug == repo_slug)
                ).rowcount
                session.execute(insert(self.table), rows)
        except SQLAlchemyError as e:
            logger.error(f"Snapshot replace failed for repo {repo_slug}, rolled back: {e}")
            raise StoreError(f"Failed to replace embeddings for {repo_slug}: {e}") from e

        logger.info(f"Replaced {deleted} rows with {len(rows)} rows for repo: {repo_slug}")
        return len(rows)

    def similarity_statement(self, repo_slug: str, query_embedding: Sequence[float], limit: int) -> Select:
        t = self.table
        distance = t.c.embedding.cosine_distance(query_embedding)
        return (
            select(
                t.c.file_path,
                t.c.chunk_index,
                t.c.content,
                t.c.branch,
                t.c.commit_sha,
                t.c.embedding_model,
                (1 - distance).label("score"),
            )
            .where(t.c.repo_slug == repo_slug)
            .order_by(distance)
            .limit(limit)
        )

    def similarity_search(
        self,
        repo_slug: Optional[str],
        query_embedding: Sequence[float],
        limit: int = 5,
    ) -> List[SimilarityHit]:
        if query_embedding is None or len(query_embedding) == 0:
            raise EmptyQuery("Query embedding is empty.")
        if len(query_embedding) != self.dimension:
            raise ConfigurationError(
                f"Query embedding has dimension {len(query_embedding)}, "
                f"but the vector store expects {self.dimension}."
            )
        if not repo_slug or not repo_slug.strip():
            return []

        stmt = self.similarity_statement(repo_slug, list(query_embedding), limit)
        try:
            with self.database.session() as session:
                rows = session.execute(stmt).all()
        except SQLAlchemyError as e:
            raise StoreError(f"Similarity search failed for {repo_slug}: {e}") from e

        return [
            SimilarityHit(
                file_path=row.file_path,
                chunk_index=row.chunk_index,
                content=row.content,
                branch=row.branch,
                commit_sha=row.commit_sha,
                embedding_model=row.embedding_model,
                score=float(row.score) if row.score is not None else None,
            )
            for row in rows
        ]

    def is_up_to_date(
        self,
        repo_slug: Optional[str],
        commit_sha: Optional[str],
        embedding_model: Optional[str] = None,
    ) -> bool:
        if not repo_slug or not repo_slug.strip() or not commit_sha:
            return False

        t = self.table
        stmt = select(t.c.id).where(t.c.repo_slug == repo_slug, t.c.commit_sha == commit_sha)
        if embedding_model:
            stmt = stmt.where(t.c.embedding_model == embedding_model)

        try:
            with self.database.session() as session:
                return session.execute(stmt.limit(1)).first() is not None
        except SQLAlchemyError as e:
            raise StoreError(f"Up-to-date check failed for {repo_slug}: {e}") from e

    def delete_repo(self, repo_slug: str) -> int:
        try:
            with self.database.session() as session, session.begin():
                deleted = session.execute(
                    delete(self.table).where(self.table.c.repo_slug == repo_slug)
                ).rowcount
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete embeddings for {repo_slug}: {e}") from e

        logger.info(f"Deleted {deleted} rows for repo: {repo_slug}")
        return deleted

    def count(self, repo_slug: Optional[str] = None) -> int:
        stmt = select(func.count()).select_from(self.table)
        if repo_slug:
            stmt = stmt.where(self.table.c.repo_slug == repo_slug)
        try:
            with self.database.session() as session:
                return int(session.execute(stmt).scalar_one())
        except SQLAlchemyError as e:
            raise StoreError(f"Count failed: {e}") from e


def make_vector_store(cfg: Dict, database: Optional[VectorDatabase] = None) -> PgVectorStore:
    """Create the vector store from config, or around an existing handle."""
    if database is None:
        vs_cfg = {**DEFAULT_CONFIG["vector_store"], **cfg.get("vector_store", {})}
        database = VectorDatabase(
            vs_cfg["database_url"],
            dimension=int(vs_cfg["dimension"]),
            ivfflat_lists=int(vs_cfg["ivfflat_lists"]),
        )
    return PgVectorStore(database)
