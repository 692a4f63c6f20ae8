from abc import ABC, abstractmethod
from typing import Any, Iterator

from vectorqa.errors import EmbeddingProviderError, provider_errors


def normalize_newlines(text: str) -> str:
    """Replace line breaks with spaces before sending text to an embedder."""
    return text.replace("\r\n", " ").replace("\n", " ")


class BaseEmbedder(ABC):
    """Abstract base class for embedding providers.

    Subclasses implement the raw ``embed``/``embed_batch`` calls; callers
    use ``embed_query``/``embed_documents``, which normalize input and
    raise :class:`EmbeddingProviderError` on any provider failure.
    """

    def __init__(self, model: str, **kwargs: Any):
        self.model = model
        self.kwargs = kwargs

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        pass

    @abstractmethod
    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        pass

    @property
    @abstractmethod
    def dimension(self) -> int:
        pass

    def embed_query(self, text: str) -> list[float]:
        with provider_errors("embedding"):
            return self.embed(normalize_newlines(text))

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch of texts, one vector per input in matching order."""
        if not texts:
            return []

        with provider_errors("embedding"):
            vectors = self.embed_batch([normalize_newlines(t) for t in texts])

        if len(vectors) != len(texts):
            raise EmbeddingProviderError(
                f"Embedding provider returned {len(vectors)} vectors "
                f"for {len(texts)} texts"
            )
        return vectors


class BaseLLM(ABC):
    """Abstract base class for LLM providers."""

    def __init__(self, model: str, **kwargs: Any):
        self.model = model
        self.kwargs = kwargs

    @abstractmethod
    def generate(self, prompt: str, **kwargs: Any) -> str:
        pass

    @abstractmethod
    def chat(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        pass

    @property
    @abstractmethod
    def supports_streaming(self) -> bool:
        pass

    def stream_chat(
        self, messages: list[dict[str, str]], **kwargs: Any
    ) -> Iterator[str]:
        """Yield the reply in pieces. Non-streaming providers yield it whole."""
        yield self.chat(messages, **kwargs)
