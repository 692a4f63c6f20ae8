from pathlib import Path
from typing import Any, Iterator

import pytest

from vectorqa.adapters.base import BaseEmbedder, BaseLLM
from vectorqa.errors import IndexAlreadyExistsRace, IndexNotFoundError
from vectorqa.models import RetrievalResult, VectorRecord
from vectorqa.stores import BaseVectorStore, FAISSVectorStore


class MockEmbedder(BaseEmbedder):
    """Mock embedder for testing. Records every batch it is asked to embed."""

    def __init__(self, dimension: int = 1536, **kwargs: Any):
        super().__init__("mock-embedder", **kwargs)
        self._dimension = dimension
        self.queries: list[str] = []
        self.batches: list[list[str]] = []

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed(self, text: str) -> list[float]:
        self.queries.append(text)
        return [0.1] * self._dimension

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batches.append(list(texts))
        return [[0.1] * self._dimension for _ in texts]


class MockLLM(BaseLLM):
    """Mock LLM for testing."""

    def __init__(self, model: str = "mock-llm", **kwargs: Any):
        super().__init__(model, **kwargs)
        self.prompts: list[str] = []
        self.calls: list[dict[str, Any]] = []

    @property
    def supports_streaming(self) -> bool:
        return True

    def generate(self, prompt: str, **kwargs: Any) -> str:
        self.prompts.append(prompt)
        self.calls.append(kwargs)
        return "Mock response"

    def chat(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        return "Mock chat response"

    def stream_chat(
        self, messages: list[dict[str, str]], **kwargs: Any
    ) -> Iterator[str]:
        yield from ["Mock ", "chat ", "response"]


class MemoryVectorStore(BaseVectorStore):
    """In-memory store that records calls.

    Args:
        ready_after: Number of readiness checks that report "not ready"
            after an index is created.
    """

    def __init__(self, ready_after: int = 0, **kwargs: Any):
        self.sleeps: list[float] = []
        kwargs.setdefault("sleep", self.sleeps.append)
        super().__init__(**kwargs)
        self.ready_after = ready_after
        self.indexes: dict[str, dict[str, VectorRecord]] = {}
        self.dimensions: dict[str, int] = {}
        self.created: list[str] = []
        self.upserts: list[list[VectorRecord]] = []
        self.ready_checks = 0
        self.race_on_create = False

    def list_indexes(self) -> list[str]:
        return list(self.indexes)

    def create_index(self, name: str, dimension: int, metric: str = "cosine") -> None:
        if self.race_on_create:
            self.indexes.setdefault(name, {})
            raise IndexAlreadyExistsRace(f"Index already exists: {name}")
        self.created.append(name)
        self.indexes[name] = {}
        self.dimensions[name] = dimension

    def is_index_ready(self, name: str) -> bool:
        self.ready_checks += 1
        return self.ready_checks > self.ready_after

    def _upsert(self, name: str, records: list[VectorRecord]) -> None:
        if name not in self.indexes:
            raise IndexNotFoundError(f"Index not found: {name}")
        self.upserts.append(list(records))
        for record in records:
            self.indexes[name][record.id] = record

    def search(
        self,
        name: str,
        query_vector: list[float],
        k: int = 1,
    ) -> list[RetrievalResult]:
        if name not in self.indexes:
            raise IndexNotFoundError(f"Index not found: {name}")
        return [
            RetrievalResult(
                id=record.id,
                text=record.metadata.get("text", ""),
                source=record.metadata.get("source", "unknown"),
                score=1.0,
            )
            for record in list(self.indexes[name].values())[:k]
        ]

    def count(self, name: str) -> int:
        return len(self.indexes.get(name, {}))


def make_record(
    record_id: str,
    values: list[float],
    text: str = "",
    source: str = "doc.txt",
) -> VectorRecord:
    return VectorRecord(
        id=record_id, values=values, metadata={"text": text, "source": source}
    )


@pytest.fixture
def mock_embedder() -> MockEmbedder:
    return MockEmbedder(dimension=8)


@pytest.fixture
def mock_llm() -> MockLLM:
    return MockLLM()


@pytest.fixture
def memory_store() -> MemoryVectorStore:
    return MemoryVectorStore()


@pytest.fixture
def temp_storage_dir(tmp_path: Path) -> Path:
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return storage_dir


@pytest.fixture
def faiss_store(temp_storage_dir: Path) -> FAISSVectorStore:
    return FAISSVectorStore(directory=temp_storage_dir)


@pytest.fixture
def documents_dir(tmp_path: Path) -> Path:
    documents = tmp_path / "documents"
    documents.mkdir()
    return documents


@pytest.fixture
def temp_config(tmp_path: Path) -> Path:
    config_content = """
[embedding]
provider = "openai"
model = "text-embedding-ada-002"
api_key = "test-key"

[llm]
provider = "openai"
model = "gpt-3.5-turbo"
temperature = 0.0
api_key = "test-key"

[vector_store]
provider = "faiss"
index_name = "test-index"
directory = "storage"
url = "${QDRANT_URL:-http://localhost:6333}"

[ingestion]
directory = "documents"
chunk_size = 1000
chunk_overlap = 0
batch_size = 100

[retrieval]
top_k = 1

[server]
port = "${PORT:-9000}"
"""
    config_path = tmp_path / "config.toml"
    config_path.write_text(config_content)
    return config_path
