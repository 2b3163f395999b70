"""Glob matching over workspace-relative file paths."""

from __future__ import annotations

import fnmatch
from pathlib import Path
from typing import List, Sequence, Tuple

from ..schemas import FileMatch
from ..utils import to_relative_path


def match_path(relative_path: str, pattern: str) -> bool:
    """Case-insensitive glob match; ``*`` and ``?`` also match across ``/``."""
    return fnmatch.fnmatchcase(relative_path.lower(), pattern.replace("\\", "/").lower())


def match_files(
    files: Sequence[Path],
    pattern: str,
    root: Path,
    max_results: int = 50,
) -> Tuple[List[FileMatch], bool]:
    """Files whose path relative to ``root`` matches ``pattern``.

    Returns:
        ``(matches, has_more)``; ``has_more`` is set when matches beyond
        ``max_results`` were dropped.
    """
    matches: List[FileMatch] = []
    for path in files:
        rel = to_relative_path(root, path)
        if not match_path(rel, pattern):
            continue
        if len(matches) >= max_results:
            return matches, True
        matches.append(FileMatch(file_path=rel, absolute_path=str(path)))
    return matches, False
