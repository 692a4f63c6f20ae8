from pathlib import Path
from typing import Any, Callable

from vectorqa.adapters import BaseEmbedder, BaseLLM, create_embedder, create_llm
from vectorqa.config import (
    get_config_value,
    get_float,
    get_int,
    get_section,
    get_storage_dir,
)
from vectorqa.splitters import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    RecursiveTextSplitter,
)
from vectorqa.stores import MAX_UPSERT_BATCH, BaseVectorStore, create_vector_store

DEFAULT_CONTEXT_TEMPLATE = """Use the following pieces of context to answer the question at the end. If you don't know the answer, just say that you don't know, don't try to make up an answer.

{context}

Question: {question}
Helpful Answer:"""

NO_CONTEXT_ANSWER = "I could not find any relevant information to answer that question."

DEFAULT_INDEX_NAME = "documents"
DEFAULT_BATCH_SIZE = MAX_UPSERT_BATCH
DEFAULT_TOP_K = 1
DEFAULT_TEMPERATURE = 0.0

_STORE_SETTINGS = ("provider", "index_name", "directory", "metric")


def _create_adapter_from_config(
    config: dict[str, Any],
    section: str,
    create_fn: Callable[..., Any],
    defaults: dict[str, str],
) -> Any:
    """Create an adapter (embedder or LLM) from configuration."""
    section_config = get_section(config, section)
    provider = section_config.get("provider", defaults["provider"])
    model = section_config.get("model", defaults["model"])

    extra_kwargs = {
        k: v for k, v in section_config.items() if k not in ("provider", "model")
    }

    return create_fn(provider, model=model, **extra_kwargs)


def create_embedder_from_config(config: dict[str, Any]) -> BaseEmbedder:
    """Create an embedder instance from configuration."""
    defaults = {"provider": "openai", "model": "text-embedding-ada-002"}
    return _create_adapter_from_config(config, "embedding", create_embedder, defaults)


def create_llm_from_config(config: dict[str, Any], section: str = "llm") -> BaseLLM:
    """Create an LLM instance from a config section, falling back to [llm]."""
    if section not in config:
        section = "llm"
    defaults = {"provider": "openai", "model": "gpt-3.5-turbo"}
    return _create_adapter_from_config(config, section, create_llm, defaults)


def create_vector_store_from_config(
    config: dict[str, Any], config_path: Path
) -> BaseVectorStore:
    """Create the configured vector store."""
    section_config = get_section(config, "vector_store")
    provider = section_config.get("provider", "qdrant")

    kwargs: dict[str, Any] = {
        k: v for k, v in section_config.items() if k not in _STORE_SETTINGS
    }
    if provider == "faiss":
        kwargs = {
            k: v for k, v in kwargs.items() if k not in ("url", "api_key", "timeout")
        }
        kwargs["directory"] = get_storage_dir(config, config_path)

    return create_vector_store(provider, **kwargs)


def create_splitter_from_config(config: dict[str, Any]) -> RecursiveTextSplitter:
    return RecursiveTextSplitter(
        chunk_size=get_int(config, "ingestion.chunk_size", DEFAULT_CHUNK_SIZE),
        chunk_overlap=get_int(config, "ingestion.chunk_overlap", DEFAULT_CHUNK_OVERLAP),
    )


def get_index_name(config: dict[str, Any]) -> str:
    return get_config_value(config, "vector_store.index_name", DEFAULT_INDEX_NAME)


def get_temperature(config: dict[str, Any]) -> float:
    return get_float(config, "llm.temperature", DEFAULT_TEMPERATURE)
