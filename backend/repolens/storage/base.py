"""Abstract vector storage interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ..core.models import ChunkRecord, SimilarityHit


class VectorStore(ABC):
    """Abstract base class for vector storage backends.

    A store holds at most one snapshot of chunks per ``repo_slug``.
    """

    @property
    def configured(self) -> bool:
        return True

    def ping(self) -> None:
        """Raise StoreError if the backend cannot be reached."""

    @abstractmethod
    def replace_all(
        self,
        repo_slug: str,
        chunks: Sequence[ChunkRecord],
        *,
        branch: Optional[str] = None,
        commit_sha: Optional[str] = None,
        embedding_model: str,
    ) -> int:
        """Atomically replace the snapshot for ``repo_slug``; return rows inserted."""
        pass

    @abstractmethod
    def similarity_search(
        self,
        repo_slug: Optional[str],
        query_embedding: Sequence[float],
        limit: int = 5,
    ) -> List[SimilarityHit]:
        """Nearest chunks by cosine distance, best first."""
        pass

    @abstractmethod
    def is_up_to_date(
        self,
        repo_slug: Optional[str],
        commit_sha: Optional[str],
        embedding_model: Optional[str] = None,
    ) -> bool:
        """Whether a snapshot tagged with this commit (and model) exists."""
        pass

    @abstractmethod
    def delete_repo(self, repo_slug: str) -> int:
        """Delete the snapshot for ``repo_slug``; return rows deleted."""
        pass

    @abstractmethod
    def count(self, repo_slug: Optional[str] = None) -> int:
        """Count stored chunks, optionally for one ``repo_slug``."""
        pass
