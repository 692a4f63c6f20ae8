import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from vectorqa.adapters import BaseEmbedder
from vectorqa.config import get_config_value, get_ingestion_dir, get_int, load_config
from vectorqa.errors import DocumentLoadError, ProviderError, provider_errors
from vectorqa.loaders import DEFAULT_EXTENSIONS, BaseDocumentLoader, create_loader
from vectorqa.models import Document, DocumentFailure, IngestionReport, VectorRecord
from vectorqa.splitters import BaseTextSplitter
from vectorqa.stores import DEFAULT_METRIC, MAX_UPSERT_BATCH, BaseVectorStore
from .base import (
    DEFAULT_BATCH_SIZE,
    create_embedder_from_config,
    create_splitter_from_config,
    create_vector_store_from_config,
    get_index_name,
)
from .utils import iter_batches

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Pipeline for loading documents and writing their embeddings to an index.

    Each document is chunked and embedded with a single embedding call,
    then its records are upserted in batches of at most ``batch_size``.
    The final partial batch of a document is flushed before the next
    document starts. Record ids are ``"{source_path}_{ordinal}"``, so
    re-ingesting the same content overwrites rather than duplicates.
    """

    def __init__(
        self,
        embedder: BaseEmbedder,
        splitter: BaseTextSplitter,
        loader: BaseDocumentLoader,
        vector_store: BaseVectorStore,
        index_name: str,
        batch_size: int = DEFAULT_BATCH_SIZE,
        metric: str = DEFAULT_METRIC,
    ):
        if not 0 < batch_size <= MAX_UPSERT_BATCH:
            raise ValueError(
                f"batch_size must be between 1 and {MAX_UPSERT_BATCH}, got {batch_size}"
            )
        self.embedder = embedder
        self.splitter = splitter
        self.loader = loader
        self.vector_store = vector_store
        self.index_name = index_name
        self.batch_size = batch_size
        self.metric = metric

    @classmethod
    def from_config(
        cls, config: dict[str, Any], config_path: Path
    ) -> "IngestionPipeline":
        """Create pipeline from configuration dictionary."""
        extensions = get_config_value(
            config, "ingestion.extensions", list(DEFAULT_EXTENSIONS)
        )
        loader = create_loader(
            get_config_value(config, "ingestion.loader", "directory"),
            get_ingestion_dir(config, config_path),
            extensions=extensions,
        )

        return cls(
            embedder=create_embedder_from_config(config),
            splitter=create_splitter_from_config(config),
            loader=loader,
            vector_store=create_vector_store_from_config(config, config_path),
            index_name=get_index_name(config),
            batch_size=get_int(config, "ingestion.batch_size", DEFAULT_BATCH_SIZE),
        )

    def process_document(self, document: Document) -> tuple[int, int]:
        """Chunk, embed and upsert one document.

        Returns:
            Tuple of (chunks_count, batches_count).
        """
        chunks = list(self.splitter.split_document(document))
        if not chunks:
            logger.info(f"Skipping {document.source_path}: no content")
            return 0, 0

        vectors = self.embedder.embed_documents([chunk.text for chunk in chunks])
        records = (
            VectorRecord.from_chunk(chunk, values, document.metadata)
            for chunk, values in zip(chunks, vectors)
        )

        batches = 0
        for batch in iter_batches(records, self.batch_size):
            with provider_errors("vector_store"):
                self.vector_store.upsert(self.index_name, batch)
            batches += 1

        logger.info(
            f"Indexed {document.source_path}: {len(chunks)} chunks in {batches} batches"
        )
        return len(chunks), batches

    def ingest_documents(
        self,
        documents: Iterable[Document],
        failures: Optional[list[DocumentFailure]] = None,
    ) -> IngestionReport:
        """Ensure the index exists once, then index every document.

        A provider or load failure on one document is recorded in the
        report and does not stop the others. Failure to ensure the index
        aborts the run.
        """
        report = IngestionReport(index_name=self.index_name, failures=list(failures or []))

        with provider_errors("vector_store"):
            self.vector_store.ensure_index(
                self.index_name, self.embedder.dimension, self.metric
            )

        for document in documents:
            try:
                chunks, batches = self.process_document(document)
            except (ProviderError, DocumentLoadError) as e:
                logger.error(f"Failed to index {document.source_path}: {e}")
                report.failures.append(
                    DocumentFailure(
                        source_path=document.source_path,
                        error_type=e.error_type,
                        message=str(e),
                    )
                )
                continue

            report.documents += 1
            report.chunks += chunks
            report.vectors += chunks
            report.batches += batches

        try:
            with provider_errors("vector_store"):
                report.total_vectors = self.vector_store.count(self.index_name)
        except ProviderError as e:
            logger.warning(f"Could not count vectors in {self.index_name}: {e}")

        logger.info(
            f"Ingestion complete: {report.documents} documents, {report.chunks} chunks, "
            f"{report.batches} batches, {len(report.failures)} failures"
        )
        return report

    def run(self) -> IngestionReport:
        """Load every document from the loader and index them."""
        logger.info("Loading documents...")
        loaded = self.loader.load()
        return self.ingest_documents(loaded.documents, loaded.failures)


def run_ingestion(config_path: Path = Path("config.toml")) -> IngestionReport:
    """Run the ingestion pipeline.

    Args:
        config_path: Path to configuration file.

    Returns:
        IngestionReport for the run.
    """
    config = load_config(config_path)
    pipeline = IngestionPipeline.from_config(config, config_path)
    return pipeline.run()
