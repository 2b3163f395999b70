"""Vector storage backends (PostgreSQL + pgvector)."""

from .base import VectorStore
from .database import DatabaseState, VectorDatabase, build_embeddings_table
from .pgvector import PgVectorStore, make_vector_store

__all__ = [
    "VectorStore",
    "DatabaseState",
    "VectorDatabase",
    "build_embeddings_table",
    "PgVectorStore",
    "make_vector_store",
]
