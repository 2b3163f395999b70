"""repolens: repository chunking, embedding and retrieval."""

from .config import load_config
from .indexing import RepositoryIndexer, build_index
from .search.searcher import RepositorySearcher
from .storage import PgVectorStore, VectorDatabase, make_vector_store

__version__ = "0.1.0"

__all__ = [
    "load_config",
    "RepositoryIndexer",
    "build_index",
    "RepositorySearcher",
    "PgVectorStore",
    "VectorDatabase",
    "make_vector_store",
]
