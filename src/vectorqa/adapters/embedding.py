from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Optional

import requests
from openai import OpenAI

from vectorqa.errors import ProviderAuthError
from .base import BaseEmbedder
from .utils import create_session_with_pooling, openai_client_kwargs

EMBEDDING_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

DEFAULT_BATCH_SIZE = 500
DEFAULT_OLLAMA_DIMENSION = 768


class OpenAIEmbedder(BaseEmbedder):
    """OpenAI embedding provider."""

    def __init__(self, model: str = "text-embedding-ada-002", **kwargs: Any):
        super().__init__(model, **kwargs)
        client_kwargs = openai_client_kwargs(kwargs)

        self.client: Optional[OpenAI] = (
            OpenAI(**client_kwargs) if client_kwargs["api_key"] else None
        )
        dimensions = kwargs.get("dimensions")
        self._dimension: Optional[int] = int(dimensions) if dimensions else None

    @property
    def dimension(self) -> int:
        return self._dimension or EMBEDDING_DIMENSIONS.get(self.model, 1536)

    def _require_client(self) -> OpenAI:
        if self.client is None:
            raise ProviderAuthError(
                "No OpenAI API key configured (set OPENAI_API_KEY)",
                provider="embedding",
            )
        return self.client

    def _create_embedding_params(self, input_data: str | list[str]) -> dict[str, Any]:
        """Build parameters for embedding API call."""
        params = {"model": self.model, "input": input_data}
        if self._dimension is not None:
            params["dimensions"] = self._dimension
        return params

    def embed(self, text: str) -> list[float]:
        response = self._require_client().embeddings.create(
            **self._create_embedding_params(text)
        )
        return response.data[0].embedding

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        response = self._require_client().embeddings.create(
            **self._create_embedding_params(texts)
        )
        return [item.embedding for item in response.data]


class OllamaEmbedder(BaseEmbedder):
    """Ollama local embedding provider with batch processing and connection pooling."""

    def __init__(
        self,
        model: str = "nomic-embed-text",
        base_url: str = "http://localhost:11434",
        max_workers: int = 8,
        batch_size: int = DEFAULT_BATCH_SIZE,
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)
        self.base_url = base_url.rstrip("/")
        self._dimension = int(kwargs.get("dimension", DEFAULT_OLLAMA_DIMENSION))
        self._max_workers = max_workers
        self._batch_size = batch_size
        self.session = create_session_with_pooling()

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed(self, text: str) -> list[float]:
        response = self.session.post(
            f"{self.base_url}/api/embeddings",
            json={"model": self.model, "prompt": text},
            timeout=30,
        )
        response.raise_for_status()
        return response.json()["embedding"]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Batch embedding using /api/embed endpoint with chunking for large batches."""
        if not texts:
            return []

        if len(texts) <= self._batch_size:
            return self._embed_batch_single(texts)

        results = []
        for i in range(0, len(texts), self._batch_size):
            batch = texts[i : i + self._batch_size]
            results.extend(self._embed_batch_single(batch))

        return results

    def _embed_batch_single(self, texts: list[str]) -> list[list[float]]:
        """Send a single batch request to Ollama's /api/embed endpoint."""
        response = self.session.post(
            f"{self.base_url}/api/embed",
            json={"model": self.model, "input": texts},
            timeout=120,
        )
        if response.status_code == 404:
            # Older Ollama servers only expose the single-text endpoint
            return self._embed_batch_parallel(texts)
        response.raise_for_status()
        return response.json().get("embeddings", [])

    def _embed_batch_parallel(self, texts: list[str]) -> list[list[float]]:
        """Fallback: parallel embedding using ThreadPoolExecutor."""
        results: list[Optional[list[float]]] = [None] * len(texts)
        errors: list[tuple[int, Exception]] = []

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures = {
                executor.submit(self.embed, text): i for i, text in enumerate(texts)
            }

            for future in as_completed(futures):
                idx = futures[future]
                try:
                    results[idx] = future.result()
                except Exception as e:
                    errors.append((idx, e))

        if errors:
            errors.sort(key=lambda item: item[0])
            failed_indices = [idx for idx, _ in errors]
            first_error = errors[0][1]
            raise RuntimeError(
                f"Embedding failed for {len(errors)}/{len(texts)} texts "
                f"at indices {failed_indices}. First error: {first_error}"
            ) from first_error

        return results  # type: ignore
