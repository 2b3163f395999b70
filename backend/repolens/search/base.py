"""Searcher Interface."""

from __future__ import annotations

from typing import Any, Mapping, Union

from ..schemas import (
    SemanticSearchRequest,
    SemanticSearchResponse,
    VectorSearchRequest,
    VectorSearchResponse,
)


class Searcher:
    """Abstract base class for repository retrieval."""

    def search(
        self,
        request: Union[SemanticSearchRequest, Mapping[str, Any]],
    ) -> SemanticSearchResponse:
        """Rank files or chunks against a natural-language query.

        Args:
            request: Query, optional repo slug and result limits

        Returns:
            Results sorted by relevance, plus which strategy produced them
        """
        raise NotImplementedError

    def vector_search(
        self,
        request: Union[VectorSearchRequest, Mapping[str, Any]],
    ) -> VectorSearchResponse:
        raise NotImplementedError
