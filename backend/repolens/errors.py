"""Exception hierarchy for repolens."""

from __future__ import annotations


class RepolensError(Exception):
    """Base class for all repolens errors."""


class ConfigurationError(RepolensError):
    """Store unconfigured, credentials missing or invalid run parameters."""


class InvalidConfig(ConfigurationError):
    """Chunking parameters that cannot produce a valid window sequence."""


class NotFoundError(RepolensError):
    """A repository path that does not exist."""


class IntegrityError(RepolensError):
    """Embedding/chunk records that do not line up."""


class TransientIOError(RepolensError):
    """A single file could not be read."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


class StoreError(RepolensError):
    """A vector store operation failed and was rolled back."""


class EmptyQuery(RepolensError):
    """An empty query string or vector was supplied to a search."""


class EmbeddingError(RepolensError):
    """The embedding backend failed or returned malformed data."""


__all__ = [
    "RepolensError",
    "ConfigurationError",
    "InvalidConfig",
    "NotFoundError",
    "IntegrityError",
    "TransientIOError",
    "StoreError",
    "EmptyQuery",
    "EmbeddingError",
]
