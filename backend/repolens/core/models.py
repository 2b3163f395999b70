"""Data models for repolens."""

from __future__ import annotations

import dataclasses
from typing import List, Optional


@dataclasses.dataclass(frozen=True)
class TextChunk:
    """A trimmed window of a file's text and its dense position."""

    text: str
    index: int


@dataclasses.dataclass
class ChunkRecord:
    """A chunk of a repository file, ready to be written to the vector store."""

    file_path: str
    chunk_index: int
    content: str
    embedding: List[float] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class SimilarityHit:
    """A stored chunk returned by a nearest-neighbour query."""

    file_path: str
    chunk_index: int
    content: str
    branch: Optional[str]
    commit_sha: Optional[str]
    embedding_model: str
    score: Optional[float]
