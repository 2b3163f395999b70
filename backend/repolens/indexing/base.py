"""Indexer Interface."""

from __future__ import annotations

from typing import Any, Mapping, Union

from ..schemas import IndexRequest, IndexSummary


class Indexer:
    """Abstract base class for repository indexing."""

    def index(self, request: Union[IndexRequest, Mapping[str, Any]]) -> IndexSummary:
        raise NotImplementedError
