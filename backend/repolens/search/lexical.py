"""Token-scoring search over live files, used when no vector index exists."""

from __future__ import annotations

import dataclasses
import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..errors import TransientIOError
from ..schemas import RetrievalResult
from ..utils import read_text_file, to_relative_path

logger = logging.getLogger(__name__)

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")


def tokenize(text: str) -> List[str]:
    """Lower-case, split on non-alphanumeric runs, drop 1-char tokens, dedupe."""
    tokens: List[str] = []
    seen: set[str] = set()
    for token in _TOKEN_SPLIT.split(text.lower()):
        if len(token) > 1 and token not in seen:
            seen.add(token)
            tokens.append(token)
    return tokens


def count_occurrences(haystack: str, needle: str) -> int:
    if not needle:
        return 0
    return haystack.count(needle)


def score_content(lower_content: str, query_lower: str, tokens: Sequence[str]) -> Tuple[int, int]:
    """Score one file's lower-cased content.

    The whole query, if present verbatim, is worth ``3 * len(query)`` and
    becomes the anchor. Each token adds ``occurrences * (len(token) + 1)``;
    the first matching token is the anchor when the phrase is absent.

    Returns:
        ``(score, anchor)`` with ``anchor == -1`` when nothing matched.
    """
    score = 0
    anchor = -1

    if query_lower:
        pos = lower_content.find(query_lower)
        if pos != -1:
            anchor = pos
            score += len(query_lower) * 3

    for token in tokens:
        occurrences = count_occurrences(lower_content, token)
        if occurrences > 0:
            if anchor == -1:
                anchor = lower_content.find(token)
            score += occurrences * (len(token) + 1)

    return score, anchor


@dataclasses.dataclass
class Snippet:
    text: str
    line: int
    truncated: bool


def build_snippet(content: str, anchor: int, max_length: int) -> Snippet:
    """Window of ``max_length`` chars centred on ``anchor``, clipped to the file.

    ``line`` is 1-based: one plus the newlines strictly before the anchor.
    """
    if anchor < 0:
        preview = content[:max_length]
        return Snippet(text=preview, line=1, truncated=len(preview) < len(content))

    anchor = min(anchor, len(content))
    half = max_length // 2
    start = max(0, anchor - half)
    end = min(len(content), start + max_length)
    return Snippet(
        text=content[start:end],
        line=content.count("\n", 0, anchor) + 1,
        truncated=end < len(content),
    )


@dataclasses.dataclass
class LexicalScanResult:
    results: List[RetrievalResult]
    searched_files: int
    has_more: bool


class LexicalScanner:
    """Scores candidate files against a query and extracts one snippet per file."""

    def __init__(self, max_file_bytes: Optional[int] = 50_000):
        self.max_file_bytes = max_file_bytes

    def scan(
        self,
        files: Sequence[Path],
        query: str,
        tokens: Sequence[str],
        root: Path,
        max_results: int = 5,
        max_snippet_length: int = 600,
    ) -> LexicalScanResult:
        query_lower = query.lower()
        findings: List[RetrievalResult] = []

        for path in files:
            try:
                text_file = read_text_file(path, self.max_file_bytes)
            except TransientIOError as e:
                logger.warning(f"Skipping unreadable file during lexical scan: {e}")
                continue

            lower_content = text_file.content.lower()
            score, anchor = score_content(lower_content, query_lower, tokens)
            if score == 0:
                continue

            snippet = build_snippet(text_file.content, anchor, max_snippet_length)
            findings.append(
                RetrievalResult(
                    file_path=to_relative_path(root, path),
                    score=round(float(score), 2),
                    snippet=snippet.text,
                    line=snippet.line,
                    truncated=text_file.truncated or snippet.truncated,
                    source="lexical",
                )
            )

        # stable: equal scores keep discovery order
        findings.sort(key=lambda r: r.score, reverse=True)
        logger.debug(f"Lexical scan: {len(findings)} of {len(files)} files scored")

        return LexicalScanResult(
            results=findings[:max_results],
            searched_files=len(files),
            has_more=len(findings) > max_results,
        )
