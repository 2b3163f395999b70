"""Indexing functionality for repolens."""

from .filters import should_skip_for_embedding
from .indexer import EMBEDDING_BATCH_SIZE, RepositoryIndexer, build_index, embed_in_batches

__all__ = [
    "EMBEDDING_BATCH_SIZE",
    "RepositoryIndexer",
    "build_index",
    "embed_in_batches",
    "should_skip_for_embedding",
]
