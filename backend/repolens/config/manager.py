"""Configuration management for repolens."""

from __future__ import annotations

import copy
import os
from typing import Any, Dict, List, Optional


EMBEDDING_DIMENSION = 1536
DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"

TEXT_FILE_EXTENSIONS: List[str] = [
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs",
    ".json", ".md", ".mdx", ".yml", ".yaml",
    ".css", ".scss", ".sass", ".html", ".txt",
    ".py", ".go", ".rs", ".java", ".kt", ".cs",
]

IGNORED_DIRECTORIES: List[str] = [
    ".git",
    ".next",
    "node_modules",
    ".turbo",
    ".vercel",
    "out",
    "dist",
    "build",
    ".cache",
]

DEFAULT_CONFIG: Dict[str, Any] = {
    "workspace_root": None,
    "vector_store": {
        "database_url": None,
        "dimension": EMBEDDING_DIMENSION,
        "ivfflat_lists": 100,
    },
    "embedding": {
        "backend": "openai",
        "model": DEFAULT_EMBEDDING_MODEL,
        "api_key": None,
        "api_base": "https://api.openai.com/v1",
        "batch_size": 96,
        "timeout": 60,
        "sentence_transformers_model": "sentence-transformers/all-MiniLM-L6-v2",
    },
    "indexing": {
        "max_file_bytes": 200_000,
    },
    "search": {
        "max_files": 2_500,
        "max_file_bytes": 50_000,
        "keyword_max_files": 2_000,
        "file_max_files": 5_000,
    },
    "walker": {
        "text_extensions": TEXT_FILE_EXTENSIONS,
        "ignored_directories": IGNORED_DIRECTORIES,
        "include_hidden": False,
    },
}


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Load configuration.

    Returns the default configuration with environment overrides applied,
    then ``overrides`` merged on top.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    database_url = os.getenv("PGVECTOR_DATABASE_URL") or os.getenv("DATABASE_URL")
    if database_url:
        config["vector_store"]["database_url"] = database_url

    config["embedding"]["api_key"] = os.getenv("OPENAI_API_KEY") or None
    config["embedding"]["api_base"] = os.getenv("OPENAI_BASE_URL", config["embedding"]["api_base"])
    config["embedding"]["backend"] = os.getenv("REPOLENS_EMBEDDING_BACKEND", config["embedding"]["backend"])

    config["workspace_root"] = os.path.abspath(os.getenv("CODE_AGENT_ROOT") or os.getcwd())

    if overrides:
        _merge(config, copy.deepcopy(overrides))

    return config


def workspace_root(cfg: Dict[str, Any]) -> str:
    """Workspace root from config, defaulting to the current directory."""
    return os.path.abspath(cfg.get("workspace_root") or os.getcwd())
