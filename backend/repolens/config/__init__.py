"""Configuration management for repolens."""

from .manager import (
    DEFAULT_CONFIG,
    DEFAULT_EMBEDDING_MODEL,
    EMBEDDING_DIMENSION,
    IGNORED_DIRECTORIES,
    TEXT_FILE_EXTENSIONS,
    load_config,
    workspace_root,
)

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_EMBEDDING_MODEL",
    "EMBEDDING_DIMENSION",
    "IGNORED_DIRECTORIES",
    "TEXT_FILE_EXTENSIONS",
    "load_config",
    "workspace_root",
]
