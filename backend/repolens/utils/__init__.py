"""Utility functions for repolens."""

from .file_utils import (
    TextFile,
    is_binary_file,
    is_hidden_name,
    read_text_file,
    resolve_workspace_path,
    to_relative_path,
    walk_files,
)

__all__ = [
    "TextFile",
    "is_binary_file",
    "is_hidden_name",
    "read_text_file",
    "resolve_workspace_path",
    "to_relative_path",
    "walk_files",
]
