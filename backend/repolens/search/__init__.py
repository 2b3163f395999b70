"""Retrieval over indexed and live repository files."""

from .files import match_files, match_path
from .keyword import scan_keywords
from .lexical import LexicalScanner, build_snippet, count_occurrences, score_content, tokenize
from .searcher import RepositorySearcher, file_search, keyword_search, search, vector_search

__all__ = [
    "LexicalScanner",
    "RepositorySearcher",
    "build_snippet",
    "count_occurrences",
    "file_search",
    "keyword_search",
    "match_files",
    "match_path",
    "scan_keywords",
    "score_content",
    "search",
    "tokenize",
    "vector_search",
]
