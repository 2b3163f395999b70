"""Core functionality for repolens."""

from .models import ChunkRecord, SimilarityHit, TextChunk
from .chunking import Chunker, WindowChunker, chunk_text, validate_window
from .embeddings import Embedder, OpenAIEmbedder, SentenceTransformersEmbedder, make_embedder

__all__ = [
    "ChunkRecord",
    "SimilarityHit",
    "TextChunk",
    "Chunker",
    "WindowChunker",
    "chunk_text",
    "validate_window",
    "Embedder",
    "OpenAIEmbedder",
    "SentenceTransformersEmbedder",
    "make_embedder",
]
