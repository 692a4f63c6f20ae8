from .base import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_CONTEXT_TEMPLATE,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_K,
    NO_CONTEXT_ANSWER,
    create_embedder_from_config,
    create_llm_from_config,
    create_splitter_from_config,
    create_vector_store_from_config,
)
from .chat import ChatService
from .ingestion import IngestionPipeline, run_ingestion
from .retrieval import RetrievalPipeline, get_retrieval_pipeline

__all__ = [
    "ChatService",
    "IngestionPipeline",
    "run_ingestion",
    "RetrievalPipeline",
    "get_retrieval_pipeline",
    "create_embedder_from_config",
    "create_llm_from_config",
    "create_splitter_from_config",
    "create_vector_store_from_config",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_CONTEXT_TEMPLATE",
    "DEFAULT_TEMPERATURE",
    "DEFAULT_TOP_K",
    "NO_CONTEXT_ANSWER",
]
