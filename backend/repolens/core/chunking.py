"""Fixed-size overlapping window chunking."""

from __future__ import annotations

import logging
from typing import List, Optional

from ..errors import InvalidConfig
from .models import TextChunk

logger = logging.getLogger(__name__)


def validate_window(size: int, overlap: int) -> int:
    """Check chunking parameters and return the stride between windows.

    Raises:
        InvalidConfig: If ``size`` is not positive, ``overlap`` is negative or
            ``overlap >= size``.
    """
    if size <= 0:
        raise InvalidConfig(f"`chunk_size` must be positive, got {size}.")
    if overlap < 0:
        raise InvalidConfig(f"`chunk_overlap` must not be negative, got {overlap}.")
    if overlap >= size:
        raise InvalidConfig("`chunk_overlap` must be smaller than `chunk_size`.")
    return size - overlap


class Chunker:
    """Abstract base class for text chunking."""

    def chunk(self, text: str, file_path: Optional[str] = None) -> List[TextChunk]:
        """Chunk text into ordered windows.

        Args:
            text: Full file content
            file_path: Path to the file (optional, for logging)

        Returns:
            List of TextChunk, densely indexed from 0
        """
        raise NotImplementedError


class WindowChunker(Chunker):
    """Sliding character window of ``size`` advancing by ``size - overlap``."""

    def __init__(self, size: int = 1200, overlap: int = 200):
        self.stride = validate_window(size, overlap)
        self.size = size
        self.overlap = overlap

    def chunk(self, text: str, file_path: Optional[str] = None) -> List[TextChunk]:
        normalized = text.replace("\r\n", "\n")
        chunks: List[TextChunk] = []

        for start in range(0, len(normalized), self.stride):
            window = normalized[start:start + self.size].strip()
            if window:
                chunks.append(TextChunk(text=window, index=len(chunks)))

        logger.debug(f"File {file_path or 'unknown'}: {len(normalized)} chars -> {len(chunks)} chunks")
        return chunks


def chunk_text(text: str, size: int, overlap: int, file_path: Optional[str] = None) -> List[TextChunk]:
    """Chunk text with a sliding window (Functional Wrapper)."""
    chunker = WindowChunker(size=size, overlap=overlap)
    return chunker.chunk(text, file_path=file_path)
