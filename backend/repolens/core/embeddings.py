"""Embedding models for semantic search."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import requests

from ..errors import ConfigurationError, EmbeddingError

logger = logging.getLogger(__name__)


class Embedder:
    """Abstract base class for embedding models.

    ``embed`` returns exactly one vector per input text, in input order.
    """

    model: str = ""

    def embed(self, texts: List[str], model: Optional[str] = None) -> List[List[float]]:
        """Embed multiple texts into vectors."""
        raise NotImplementedError

    def embed_one(self, text: str, model: Optional[str] = None) -> List[float]:
        """Embed a single text into a vector."""
        return self.embed([text], model=model)[0]


class OpenAIEmbedder(Embedder):
    """Embedder for OpenAI-compatible ``/embeddings`` endpoints."""

    def __init__(
        self,
        api_key: str,
        model: str,
        api_base: str = "https://api.openai.com/v1",
        timeout: int = 60,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY is required to generate embeddings.")
        self.model = model
        self.url = api_base.rstrip("/") + "/embeddings"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def embed(self, texts: List[str], model: Optional[str] = None) -> List[List[float]]:
        if not texts:
            return []

        payload = {"model": model or self.model, "input": texts}
        start_time = time.time()
        try:
            response = self.session.post(
                self.url,
                headers=self.headers,
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise EmbeddingError(f"Embedding request failed: {e}") from e
        except ValueError as e:
            raise EmbeddingError(f"Embedding response is not JSON: {e}") from e

        vectors = self._parse(data)
        logger.debug(
            f"Embedded {len(texts)} texts with {payload['model']} in {time.time() - start_time:.2f}s"
        )
        return vectors

    @staticmethod
    def _parse(data: Dict[str, Any]) -> List[List[float]]:
        items = data.get("data") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise EmbeddingError(f"Unexpected response format: {data}")
        try:
            ordered = sorted(items, key=lambda item: item["index"])
            return [list(item["embedding"]) for item in ordered]
        except (KeyError, TypeError) as e:
            raise EmbeddingError(f"Unexpected embedding item format: {e}") from e


class SentenceTransformersEmbedder(Embedder):
    """Embedder using SentenceTransformers library."""

    def __init__(self, model_name: str) -> None:
        from sentence_transformers import SentenceTransformer  # type: ignore
        self.model = model_name
        self._model = SentenceTransformer(model_name)

    def embed(self, texts: List[str], model: Optional[str] = None) -> List[List[float]]:
        """Embed texts using SentenceTransformers model."""
        if not texts:
            return []
        arr = self._model.encode(texts, normalize_embeddings=True, show_progress_bar=False)
        return [row.tolist() for row in arr]


def make_embedder(cfg: Dict, model: Optional[str] = None) -> Embedder:
    """Create embedder from config.

    Args:
        cfg: Configuration dictionary
        model: Embedding model id, overriding ``embedding.model``

    Returns:
        Embedder instance

    Raises:
        ConfigurationError: If backend is invalid, credentials are missing or
            dependencies are not installed
    """
    emb_cfg = cfg.get("embedding", {})
    backend = str(emb_cfg.get("backend", "openai")).strip().lower()

    if backend == "openai":
        return OpenAIEmbedder(
            api_key=emb_cfg.get("api_key") or "",
            model=model or emb_cfg.get("model", ""),
            api_base=emb_cfg.get("api_base", "https://api.openai.com/v1"),
            timeout=int(emb_cfg.get("timeout", 60)),
        )

    if backend == "sentence_transformers":
        model_name = model or emb_cfg.get("sentence_transformers_model", "all-MiniLM-L6-v2")
        try:
            return SentenceTransformersEmbedder(model_name)
        except ImportError as e:
            raise ConfigurationError(
                "sentence-transformers is not installed. "
                "Run: pip install 'repolens[local]'"
            ) from e

    raise ConfigurationError(f"Invalid embedding.backend: {backend!r}")
