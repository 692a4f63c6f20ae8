import logging
from pathlib import Path
from typing import Any, Optional

import tiktoken

from vectorqa.adapters import BaseEmbedder, BaseLLM
from vectorqa.config import get_config_value, get_int, load_config
from vectorqa.errors import IndexNotFoundError, provider_errors
from vectorqa.models import QueryResult, RetrievalResult
from vectorqa.stores import BaseVectorStore
from .base import (
    DEFAULT_CONTEXT_TEMPLATE,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_K,
    NO_CONTEXT_ANSWER,
    create_embedder_from_config,
    create_llm_from_config,
    create_vector_store_from_config,
    get_index_name,
    get_temperature,
)

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = " "
ENCODING_CACHE: dict[str, tiktoken.Encoding] = {}


def get_tokenizer(model: str) -> tiktoken.Encoding:
    if model not in ENCODING_CACHE:
        try:
            ENCODING_CACHE[model] = tiktoken.encoding_for_model(model)
        except KeyError:
            ENCODING_CACHE[model] = tiktoken.get_encoding("cl100k_base")
    return ENCODING_CACHE[model]


def count_tokens(text: str, model: str = "gpt-3.5-turbo") -> int:
    encoder = get_tokenizer(model)
    return len(encoder.encode(text))


class RetrievalPipeline:
    """Answers questions from the top-k most similar indexed chunks.

    Supports dependency injection for flexible composition.
    """

    def __init__(
        self,
        embedder: BaseEmbedder,
        llm: BaseLLM,
        vector_store: BaseVectorStore,
        index_name: str,
        top_k: int = DEFAULT_TOP_K,
        context_template: str = DEFAULT_CONTEXT_TEMPLATE,
        max_context_tokens: Optional[int] = None,
        temperature: float = DEFAULT_TEMPERATURE,
    ):
        self.embedder = embedder
        self.llm = llm
        self.vector_store = vector_store
        self.index_name = index_name
        self.top_k = top_k
        self.context_template = context_template
        self.max_context_tokens = max_context_tokens
        self.temperature = temperature

    @classmethod
    def from_config(
        cls, config: dict[str, Any], config_path: Path
    ) -> "RetrievalPipeline":
        """Create pipeline from configuration dictionary."""
        max_context_tokens = get_config_value(config, "retrieval.max_context_tokens")
        context_template = get_config_value(
            config, "retrieval.context_template", DEFAULT_CONTEXT_TEMPLATE
        )

        return cls(
            embedder=create_embedder_from_config(config),
            llm=create_llm_from_config(config),
            vector_store=create_vector_store_from_config(config, config_path),
            index_name=get_index_name(config),
            top_k=get_int(config, "retrieval.top_k", DEFAULT_TOP_K),
            context_template=context_template,
            max_context_tokens=int(max_context_tokens) if max_context_tokens else None,
            temperature=get_temperature(config),
        )

    def retrieve(self, query: str, top_k: Optional[int] = None) -> list[RetrievalResult]:
        """Retrieve the chunks most similar to a query, closest first."""
        k = top_k or self.top_k
        logger.info(f"Embedding query: {query[:50]}...")

        query_embedding = self.embedder.embed_query(query)
        with provider_errors("vector_store"):
            try:
                results = self.vector_store.search(self.index_name, query_embedding, k=k)
            except IndexNotFoundError:
                logger.warning(f"Index {self.index_name} does not exist yet")
                return []

        logger.info(f"Found {len(results)} results")
        return results

    def build_context(self, query: str, context: list[RetrievalResult]) -> str:
        """Join retrieved texts with spaces, honoring the token budget if set."""
        if self.max_context_tokens is None:
            return CONTEXT_SEPARATOR.join(doc.text for doc in context)

        model = getattr(self.llm, "model", "gpt-3.5-turbo")
        template_overhead = count_tokens(
            self.context_template.format(context="", question=query), model
        )
        available_tokens = self.max_context_tokens - template_overhead

        texts: list[str] = []
        current_tokens = 0
        for doc in context:
            doc_tokens = count_tokens(doc.text, model)
            if current_tokens + doc_tokens > available_tokens:
                logger.warning(
                    f"Context truncated to {current_tokens} tokens "
                    f"(limit: {self.max_context_tokens})"
                )
                break
            texts.append(doc.text)
            current_tokens += doc_tokens

        return CONTEXT_SEPARATOR.join(texts)

    def generate(
        self,
        query: str,
        context: Optional[list[RetrievalResult]] = None,
    ) -> str:
        """Generate an answer using retrieved context."""
        if context is None:
            context = self.retrieve(query)

        context_text = self.build_context(query, context)
        if not context_text.strip():
            logger.info("No context retrieved, skipping generation")
            return NO_CONTEXT_ANSWER

        prompt = self.context_template.format(context=context_text, question=query)

        logger.info("Generating response...")
        with provider_errors("llm"):
            return self.llm.generate(prompt, temperature=self.temperature)

    def query(self, query: str) -> QueryResult:
        """Execute a full RAG query: retrieve and generate."""
        context = self.retrieve(query)
        answer = self.generate(query, context)
        return QueryResult(answer=answer, context=context)


def get_retrieval_pipeline(
    config_path: Path = Path("config.toml"),
) -> RetrievalPipeline:
    """Create a retrieval pipeline from config.

    Args:
        config_path: Path to configuration file.

    Returns:
        RetrievalPipeline instance.
    """
    config = load_config(config_path)
    return RetrievalPipeline.from_config(config, config_path)
