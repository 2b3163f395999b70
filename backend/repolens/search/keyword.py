"""Line-oriented keyword search with surrounding context."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Sequence, Tuple

from ..errors import TransientIOError
from ..schemas import KeywordMatch
from ..utils import read_text_file, to_relative_path

logger = logging.getLogger(__name__)

_LINE_SPLIT = re.compile(r"\r?\n")


def scan_keywords(
    files: Sequence[Path],
    keywords: Sequence[str],
    root: Path,
    case_sensitive: bool = False,
    max_results: int = 20,
    context_lines: int = 2,
) -> Tuple[List[KeywordMatch], bool]:
    """Find the first matching keyword on each line of each file.

    Returns:
        ``(matches, has_more)``; ``has_more`` is set once ``max_results`` is hit.
    """
    normalized = list(keywords) if case_sensitive else [k.lower() for k in keywords]
    matches: List[KeywordMatch] = []

    for path in files:
        if len(matches) >= max_results:
            break

        try:
            content = read_text_file(path, max_bytes=None).content
        except TransientIOError as e:
            logger.debug(f"Skipping unreadable file: {e}")
            continue

        lines = _LINE_SPLIT.split(content)
        rel = to_relative_path(root, path)

        for line_index, line in enumerate(lines):
            if len(matches) >= max_results:
                break

            comparable = line if case_sensitive else line.lower()
            for keyword, original in zip(normalized, keywords):
                if keyword and keyword in comparable:
                    start = max(0, line_index - context_lines)
                    end = min(len(lines), line_index + context_lines + 1)
                    matches.append(
                        KeywordMatch(
                            file_path=rel,
                            line=line_index + 1,
                            keyword=original,
                            snippet="\n".join(lines[start:end]),
                        )
                    )
                    break

    return matches, len(matches) >= max_results
