"""File utility functions."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from ..config import IGNORED_DIRECTORIES
from ..errors import ConfigurationError, TransientIOError

PathLike = Union[str, Path]


@dataclasses.dataclass
class TextFile:
    """Decoded (possibly capped) contents of a file."""

    content: str
    truncated: bool
    size_in_bytes: int


def is_binary_file(path: Path) -> bool:
    """Check if file is binary by looking for null bytes.

    Files that cannot be opened are not treated as binary; reading them
    later reports the failure.
    """
    try:
        with path.open("rb") as f:
            sample = f.read(2048)
        return b"\x00" in sample
    except OSError:
        return False


def is_hidden_name(name: str) -> bool:
    return name.startswith(".")


def to_relative_path(root: PathLike, target: PathLike) -> str:
    """Posix-style path of ``target`` relative to ``root`` ("." for the root itself)."""
    rel = os.path.relpath(os.path.abspath(target), os.path.abspath(root))
    return Path(rel).as_posix()


def resolve_workspace_path(root: PathLike, target: Optional[str] = ".") -> Tuple[Path, str]:
    """Resolve ``target`` against the workspace root.

    A leading ``~/`` is treated as the workspace root, not the home directory.

    Returns:
        ``(absolute_path, relative_path)``

    Raises:
        ConfigurationError: If the resolved path escapes the workspace root.
    """
    root_path = Path(root).resolve()
    normalized = (target or ".").replace("\\", "/")
    if normalized.startswith("~"):
        normalized = normalized[1:].lstrip("/") or "."

    resolved = (root_path / normalized).resolve()
    if resolved != root_path and root_path not in resolved.parents:
        raise ConfigurationError("Path escapes the repository root.")

    return resolved, to_relative_path(root_path, resolved)


def read_text_file(path: PathLike, max_bytes: Optional[int] = 200_000) -> TextFile:
    """Read up to ``max_bytes`` of a file and decode it as UTF-8.

    Undecodable bytes (including a multi-byte sequence cut by the cap) are
    replaced rather than rejected.

    Raises:
        TransientIOError: If the file cannot be read.
    """
    p = Path(path)
    try:
        with p.open("rb") as f:
            size = os.fstat(f.fileno()).st_size
            data = f.read(max_bytes) if max_bytes is not None else f.read()
    except OSError as e:
        raise TransientIOError(str(p), e.strerror or str(e)) from e

    size = max(size, len(data))
    return TextFile(
        content=data.decode("utf-8", errors="replace"),
        truncated=len(data) < size,
        size_in_bytes=size,
    )


def walk_files(
    root: PathLike,
    extensions: Optional[Iterable[str]] = None,
    max_files: int = 500,
    include_hidden: bool = False,
    ignored_directories: Iterable[str] = IGNORED_DIRECTORIES,
    skip_binary: bool = True,
) -> List[Path]:
    """Collect files under ``root`` in a deterministic order.

    Directories are visited top-down with entries sorted by name. Ignored
    directories, hidden entries (unless ``include_hidden``) and binary files
    (unless ``skip_binary`` is off) are skipped. At most ``max_files`` paths
    are returned.
    """
    allow = {e.lower() for e in extensions} if extensions else None
    ignored = set(ignored_directories)
    results: List[Path] = []

    if max_files <= 0:
        return results

    for current, dirs, files in os.walk(root):
        dirs[:] = sorted(
            d for d in dirs
            if d not in ignored and (include_hidden or not is_hidden_name(d))
        )
        for fname in sorted(files):
            if not include_hidden and is_hidden_name(fname):
                continue
            if allow is not None and os.path.splitext(fname)[1].lower() not in allow:
                continue
            p = Path(current, fname)
            if skip_binary and is_binary_file(p):
                continue
            results.append(p)
            if len(results) >= max_files:
                return results

    return results
