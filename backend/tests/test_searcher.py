from __future__ import annotations

from pathlib import Path

import pytest

from conftest import FakeEmbedder, FakeVectorStore
from repolens.core import ChunkRecord
from repolens.errors import ConfigurationError, EmptyQuery
from repolens.search import RepositorySearcher
from repolens.storage import PgVectorStore, VectorDatabase

SLUG = "acme/demo"


@pytest.fixture
def indexed_store(fake_store: FakeVectorStore, embedder: FakeEmbedder) -> FakeVectorStore:
    contents = ["def connect(pool): ...", "class RetryPolicy: ...", "README for the demo"]
    records = [
        ChunkRecord(
            file_path=f"src/file{i}.py",
            chunk_index=0,
            content=content,
            embedding=embedder.vector_for(content),
        )
        for i, content in enumerate(contents)
    ]
    fake_store.replace_all(SLUG, records, branch="main", commit_sha="abc123", embedding_model="fake-embedding")
    return fake_store


@pytest.fixture
def live_files(workspace: Path) -> Path:
    (workspace / "src").mkdir()
    (workspace / "src" / "pool.py").write_text("def connect(pool):\n    return pool\n", encoding="utf-8")
    (workspace / "src" / "other.py").write_text("print('hello')\n", encoding="utf-8")
    return workspace


def test_vector_path_when_index_exists(cfg, indexed_store, embedder) -> None:
    searcher = RepositorySearcher(cfg, store=indexed_store, embedder=embedder)

    response = searcher.search({"query": "class RetryPolicy: ...", "repo_slug": SLUG, "max_results": 2})

    assert response.used_vector_store is True
    assert response.searched_files is None
    assert response.has_more is True
    assert len(response.results) == 2
    top = response.results[0]
    assert top.file_path == "src/file1.py"
    assert top.score == pytest.approx(1.0)
    assert top.line is None
    assert top.source == "vector_store"
    assert top.branch == "main"
    assert top.commit_sha == "abc123"
    assert response.results[0].score >= response.results[1].score


def test_vector_path_unindexed_slug_returns_nothing(cfg, indexed_store, embedder) -> None:
    searcher = RepositorySearcher(cfg, store=indexed_store, embedder=embedder)

    response = searcher.search({"query": "retry policy", "repo_slug": "acme/unknown"})

    assert response.used_vector_store is True
    assert response.results == []
    assert response.has_more is False


def test_lexical_path_without_repo_slug(cfg, live_files, indexed_store, embedder) -> None:
    searcher = RepositorySearcher(cfg, store=indexed_store, embedder=embedder)

    response = searcher.search({"query": "connect pool"})

    assert response.used_vector_store is False
    assert response.searched_files == 2
    assert [r.file_path for r in response.results] == ["src/pool.py"]
    assert response.results[0].line == 1
    assert embedder.batches == []


def test_falls_back_when_store_unreachable(cfg, live_files, embedder) -> None:
    searcher = RepositorySearcher(cfg, store=FakeVectorStore(reachable=False), embedder=embedder)

    response = searcher.search({"query": "connect pool", "repo_slug": SLUG})

    assert response.used_vector_store is False
    assert response.results[0].source == "lexical"


def test_falls_back_when_store_unconfigured(cfg, live_files, embedder) -> None:
    searcher = RepositorySearcher(cfg, store=PgVectorStore(VectorDatabase(None)), embedder=embedder)

    response = searcher.search({"query": "connect pool", "repo_slug": SLUG})

    assert response.used_vector_store is False


def test_falls_back_without_credentials(cfg, live_files, indexed_store) -> None:
    cfg["embedding"]["api_key"] = None
    searcher = RepositorySearcher(cfg, store=indexed_store)

    response = searcher.search({"query": "connect pool", "repo_slug": SLUG})

    assert response.used_vector_store is False
    assert response.results[0].file_path == "src/pool.py"


def test_lexical_search_root(cfg, live_files) -> None:
    (live_files / "docs").mkdir()
    (live_files / "docs" / "pool.md").write_text("connect pool docs\n", encoding="utf-8")
    searcher = RepositorySearcher(cfg, store=FakeVectorStore())

    response = searcher.search({"query": "connect pool", "search_root": "docs"})

    assert response.searched_files == 1
    assert [r.file_path for r in response.results] == ["docs/pool.md"]


@pytest.mark.parametrize("query", ["", "a", "!! ?"])
def test_empty_query(cfg, query) -> None:
    searcher = RepositorySearcher(cfg, store=FakeVectorStore())

    with pytest.raises(EmptyQuery):
        searcher.search({"query": query})


def test_search_root_outside_workspace(cfg) -> None:
    searcher = RepositorySearcher(cfg, store=FakeVectorStore())

    with pytest.raises(ConfigurationError, match="escapes"):
        searcher.search({"query": "connect pool", "search_root": "../.."})


def test_invalid_search_request(cfg) -> None:
    searcher = RepositorySearcher(cfg, store=FakeVectorStore())

    with pytest.raises(ConfigurationError):
        searcher.search({"query": "connect pool", "max_results": 50})


def test_vector_search_min_score(cfg, indexed_store, embedder) -> None:
    searcher = RepositorySearcher(cfg, store=indexed_store, embedder=embedder)

    everything = searcher.vector_search({"repo_slug": SLUG, "query": "README for the demo"})
    filtered = searcher.vector_search({"repo_slug": SLUG, "query": "README for the demo", "min_score": 0.99})

    assert len(everything.results) == 3
    assert [m.file_path for m in filtered.results] == ["src/file2.py"]
    assert filtered.results[0].score == 1.0
    assert filtered.results[0].embedding_model == "fake-embedding"
    assert all(m.score == round(m.score, 4) for m in everything.results)


def test_vector_search_top_k(cfg, indexed_store, embedder) -> None:
    searcher = RepositorySearcher(cfg, store=indexed_store, embedder=embedder)

    response = searcher.vector_search({"repo_slug": SLUG, "query": "connect", "top_k": 1})

    assert len(response.results) == 1
    assert response.top_k == 1


def test_vector_search_requires_credentials(cfg, indexed_store) -> None:
    cfg["embedding"]["api_key"] = None
    searcher = RepositorySearcher(cfg, store=indexed_store)

    with pytest.raises(ConfigurationError):
        searcher.vector_search({"repo_slug": SLUG, "query": "connect"})


def test_vector_search_requires_store(cfg, embedder) -> None:
    searcher = RepositorySearcher(cfg, store=PgVectorStore(VectorDatabase(None)), embedder=embedder)

    with pytest.raises(ConfigurationError, match="not configured"):
        searcher.vector_search({"repo_slug": SLUG, "query": "connect"})


def test_vector_search_blank_query(cfg, indexed_store, embedder) -> None:
    searcher = RepositorySearcher(cfg, store=indexed_store, embedder=embedder)

    with pytest.raises(EmptyQuery):
        searcher.vector_search({"repo_slug": SLUG, "query": "   "})


def test_keyword_search(cfg, live_files) -> None:
    searcher = RepositorySearcher(cfg, store=FakeVectorStore())

    response = searcher.keyword_search({"keywords": ["return"], "context_lines": 0})

    assert response.searched_files == 2
    assert [(m.file_path, m.line) for m in response.matches] == [("src/pool.py", 2)]
    assert response.has_more is False


def test_vector_path_exact_fill_has_no_more(cfg, indexed_store, embedder) -> None:
    searcher = RepositorySearcher(cfg, store=indexed_store, embedder=embedder)

    response = searcher.search({"query": "connect pool", "repo_slug": SLUG, "max_results": 3})

    assert len(response.results) == 3
    assert response.has_more is False


def test_file_search_glob(cfg, live_files) -> None:
    (live_files / "docs").mkdir()
    (live_files / "docs" / "Guide.MD").write_text("# guide\n", encoding="utf-8")
    (live_files / "logo.png").write_bytes(b"\x89PNG\x00")
    searcher = RepositorySearcher(cfg, store=FakeVectorStore())

    py_files = searcher.file_search({"pattern": "src/*.py"})
    markdown = searcher.file_search({"pattern": "*.md"})
    images = searcher.file_search({"pattern": "logo.pn?"})

    assert [m.file_path for m in py_files.matches] == ["src/other.py", "src/pool.py"]
    assert py_files.total_files_examined == 4
    assert py_files.has_more is False
    assert [m.file_path for m in markdown.matches] == ["docs/Guide.MD"]
    assert Path(markdown.matches[0].absolute_path).is_file()
    assert [m.file_path for m in images.matches] == ["logo.png"]


def test_file_search_hidden_and_limits(cfg, live_files) -> None:
    (live_files / ".github").mkdir()
    (live_files / ".github" / "ci.yml").write_text("on: push\n", encoding="utf-8")
    searcher = RepositorySearcher(cfg, store=FakeVectorStore())

    assert searcher.file_search({"pattern": "*.yml"}).matches == []
    hidden = searcher.file_search({"pattern": "*.yml", "include_hidden": True})
    assert [m.file_path for m in hidden.matches] == [".github/ci.yml"]

    capped = searcher.file_search({"pattern": "src/*", "max_results": 1})
    assert [m.file_path for m in capped.matches] == ["src/other.py"]
    assert capped.has_more is True

    exact = searcher.file_search({"pattern": "src/*", "max_results": 2})
    assert exact.has_more is False


def test_file_search_search_root(cfg, live_files) -> None:
    searcher = RepositorySearcher(cfg, store=FakeVectorStore())

    response = searcher.file_search({"pattern": "*pool*", "search_root": "src"})

    assert [m.file_path for m in response.matches] == ["src/pool.py"]
    assert response.total_files_examined == 2


def test_file_search_rejects_empty_pattern(cfg) -> None:
    searcher = RepositorySearcher(cfg, store=FakeVectorStore())

    with pytest.raises(ConfigurationError):
        searcher.file_search({"pattern": ""})
