"""Request and response models for the index and retrieval APIs."""

from __future__ import annotations

from typing import Any, List, Literal, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, Field, ValidationError

from .config import DEFAULT_EMBEDDING_MODEL
from .errors import ConfigurationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_request(model: Type[ModelT], payload: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    """Validate ``payload`` once at the boundary.

    Raises:
        ConfigurationError: If the payload does not match ``model``.
    """
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid {model.__name__}: {e}") from e


class IndexRequest(BaseModel):
    repo_slug: str = Field(min_length=3)
    repo_path: str = Field(min_length=1)
    branch: Optional[str] = None
    commit_sha: Optional[str] = None
    max_files: int = Field(default=600, ge=1, le=2_000)
    max_chunks: int = Field(default=2_000, ge=1, le=10_000)
    chunk_size: int = Field(default=1_200, ge=200, le=2_400)
    chunk_overlap: int = Field(default=200, ge=0, le=1_200)
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    force_reindex: bool = False


class IndexSummary(BaseModel):
    repo_slug: str
    repo_path: str
    branch: Optional[str] = None
    commit_sha: Optional[str] = None
    files_indexed: int = 0
    chunks_indexed: int = 0
    skipped_files: List[str] = Field(default_factory=list)
    embedding_model: str
    message: Optional[str] = None
    skipped: bool = False


class SemanticSearchRequest(BaseModel):
    query: str
    repo_slug: Optional[str] = Field(default=None, min_length=3)
    search_root: str = "."
    max_results: int = Field(default=5, ge=1, le=20)
    max_snippet_length: int = Field(default=600, ge=120, le=1_200)


class RetrievalResult(BaseModel):
    file_path: str
    score: Optional[float]
    snippet: str
    line: Optional[int] = None
    truncated: bool = False
    branch: Optional[str] = None
    commit_sha: Optional[str] = None
    source: Literal["vector_store", "lexical"] = "lexical"


class SemanticSearchResponse(BaseModel):
    query: str
    results: List[RetrievalResult]
    searched_files: Optional[int] = None
    has_more: bool = False
    used_vector_store: bool = False


class VectorSearchRequest(BaseModel):
    repo_slug: str = Field(min_length=3)
    query: str
    top_k: int = Field(default=5, ge=1, le=20)
    min_score: float = Field(default=-1.0, ge=-1.0, le=1.0)
    embedding_model: str = DEFAULT_EMBEDDING_MODEL


class VectorMatch(BaseModel):
    file_path: str
    chunk_index: int
    content: str
    branch: Optional[str] = None
    commit_sha: Optional[str] = None
    embedding_model: str
    score: Optional[float] = None


class VectorSearchResponse(BaseModel):
    repo_slug: str
    query: str
    top_k: int
    min_score: float
    embedding_model: str
    results: List[VectorMatch]


class KeywordSearchRequest(BaseModel):
    keywords: List[str] = Field(min_length=1)
    search_root: str = "."
    case_sensitive: bool = False
    max_results: int = Field(default=20, ge=1, le=100)
    context_lines: int = Field(default=2, ge=0, le=10)


class KeywordMatch(BaseModel):
    file_path: str
    line: int
    keyword: str
    snippet: str


class KeywordSearchResponse(BaseModel):
    matches: List[KeywordMatch]
    keywords: List[str]
    case_sensitive: bool
    searched_files: int
    has_more: bool


class FileSearchRequest(BaseModel):
    pattern: str = Field(min_length=1)
    search_root: str = "."
    include_hidden: bool = False
    max_results: int = Field(default=50, ge=1, le=200)


class FileMatch(BaseModel):
    file_path: str
    absolute_path: str


class FileSearchResponse(BaseModel):
    pattern: str
    matches: List[FileMatch]
    total_files_examined: int
    has_more: bool
