from typing import Any, Type

from .base import DEFAULT_METRIC, MAX_UPSERT_BATCH, BaseVectorStore
from .faiss import FAISSVectorStore
from .qdrant import QdrantVectorStore

_STORE_REGISTRY: dict[str, Type[BaseVectorStore]] = {}


def register_vector_store(provider: str, cls: Type[BaseVectorStore]) -> None:
    """Register a vector store provider.

    Args:
        provider: Provider name (e.g., "qdrant", "faiss")
        cls: Vector store class to register
    """
    _STORE_REGISTRY[provider] = cls


def create_vector_store(provider: str, **kwargs: Any) -> BaseVectorStore:
    """Create a vector store instance based on provider.

    Args:
        provider: Provider name
        **kwargs: Additional provider-specific parameters

    Returns:
        BaseVectorStore instance

    Raises:
        ValueError: If provider is not registered
    """
    if provider not in _STORE_REGISTRY:
        available = list(_STORE_REGISTRY.keys())
        raise ValueError(
            f"Unknown vector store provider: {provider}. Available: {available}"
        )
    return _STORE_REGISTRY[provider](**kwargs)


def list_vector_store_providers() -> list[str]:
    """List all registered vector store providers."""
    return list(_STORE_REGISTRY.keys())


register_vector_store("qdrant", QdrantVectorStore)
register_vector_store("faiss", FAISSVectorStore)

__all__ = [
    "BaseVectorStore",
    "FAISSVectorStore",
    "QdrantVectorStore",
    "DEFAULT_METRIC",
    "MAX_UPSERT_BATCH",
    "create_vector_store",
    "list_vector_store_providers",
    "register_vector_store",
]
