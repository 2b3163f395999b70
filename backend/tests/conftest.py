"""Test configuration helpers."""

from __future__ import annotations

import hashlib
import json
import math
from pathlib import Path
from typing import Any, List, Optional, Sequence

import pytest
import requests
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from repolens.config import load_config
from repolens.core import ChunkRecord, Embedder, SimilarityHit
from repolens.errors import StoreError
from repolens.storage import PgVectorStore, VectorDatabase, VectorStore

TEST_DIMENSION = 8


class FakeEmbedder(Embedder):
    """Deterministic hash-based vectors; records every batch it receives."""

    def __init__(self, dimension: int = TEST_DIMENSION, model: str = "fake-embedding") -> None:
        self.dimension = dimension
        self.model = model
        self.batches: List[List[str]] = []
        self.models: List[Optional[str]] = []

    def vector_for(self, text: str) -> List[float]:
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [(b - 127.5) / 127.5 for b in digest[: self.dimension]]

    def embed(self, texts: List[str], model: Optional[str] = None) -> List[List[float]]:
        self.batches.append(list(texts))
        self.models.append(model)
        return [self.vector_for(t) for t in texts]


class FakeVectorStore(VectorStore):
    """In-memory store with cosine scoring, for tests that need similarity search."""

    def __init__(self, reachable: bool = True, dimension: int = TEST_DIMENSION) -> None:
        self.reachable = reachable
        self.dimension = dimension
        self.rows: dict[str, List[dict]] = {}

    def ping(self) -> None:
        if not self.reachable:
            raise StoreError("connection refused")

    def replace_all(self, repo_slug, chunks, *, branch=None, commit_sha=None, embedding_model):
        if not chunks:
            return 0
        self.rows[repo_slug] = [
            {
                "record": c,
                "branch": branch,
                "commit_sha": commit_sha,
                "embedding_model": embedding_model,
            }
            for c in chunks
        ]
        return len(chunks)

    def similarity_search(self, repo_slug, query_embedding, limit=5):
        hits: List[SimilarityHit] = []
        for row in self.rows.get(repo_slug or "", []):
            record: ChunkRecord = row["record"]
            hits.append(
                SimilarityHit(
                    file_path=record.file_path,
                    chunk_index=record.chunk_index,
                    content=record.content,
                    branch=row["branch"],
                    commit_sha=row["commit_sha"],
                    embedding_model=row["embedding_model"],
                    score=cosine(query_embedding, record.embedding),
                )
            )
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits[:limit]

    def is_up_to_date(self, repo_slug, commit_sha, embedding_model=None):
        if not repo_slug or not commit_sha:
            return False
        return any(
            row["commit_sha"] == commit_sha
            and (not embedding_model or row["embedding_model"] == embedding_model)
            for row in self.rows.get(repo_slug, [])
        )

    def delete_repo(self, repo_slug):
        return len(self.rows.pop(repo_slug, []))

    def count(self, repo_slug=None):
        if repo_slug:
            return len(self.rows.get(repo_slug, []))
        return sum(len(r) for r in self.rows.values())


def cosine(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class MockResponse:
    def __init__(self, payload: Any = None, status_code: int = 200) -> None:
        self.status_code = status_code
        self._json_payload = payload
        self.text = json.dumps(payload) if payload is not None else ""

    def json(self) -> Any:
        if self._json_payload is None:
            raise ValueError("No JSON payload configured for this mocked response.")
        return self._json_payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class MockSession:
    def __init__(self, responses: List[MockResponse]) -> None:
        self.responses = list(responses)
        self.calls: List[dict] = []

    def post(self, url: str, **kwargs: Any) -> MockResponse:
        self.calls.append({"url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"Unexpected request URL in test: {url}")
        return self.responses.pop(0)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "PGVECTOR_DATABASE_URL",
        "DATABASE_URL",
        "OPENAI_API_KEY",
        "OPENAI_BASE_URL",
        "REPOLENS_EMBEDDING_BACKEND",
        "CODE_AGENT_ROOT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def cfg(workspace: Path) -> dict:
    return load_config(
        {
            "workspace_root": str(workspace),
            "embedding": {"api_key": "test-key", "batch_size": 96},
            "vector_store": {"dimension": TEST_DIMENSION},
        }
    )


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def database() -> VectorDatabase:
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    db = VectorDatabase(engine=engine, dimension=TEST_DIMENSION)
    yield db
    db.dispose()


@pytest.fixture
def sqlite_store(database: VectorDatabase) -> PgVectorStore:
    return PgVectorStore(database)


@pytest.fixture
def fake_store() -> FakeVectorStore:
    return FakeVectorStore()
