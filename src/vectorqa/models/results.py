"""Result models for ingestion and query runs."""

from typing import Optional

from pydantic import BaseModel, Field

from .chunk import Document, RetrievalResult


class QueryResult(BaseModel):
    answer: str
    context: list[RetrievalResult] = Field(default_factory=list)


class DocumentFailure(BaseModel):
    source_path: str
    error_type: str
    message: str


class LoadResult(BaseModel):
    documents: list[Document] = Field(default_factory=list)
    failures: list[DocumentFailure] = Field(default_factory=list)


class IngestionReport(BaseModel):
    """Summary of one ingestion run."""

    index_name: str
    documents: int = 0
    chunks: int = 0
    vectors: int = 0
    batches: int = 0
    total_vectors: Optional[int] = None
    failures: list[DocumentFailure] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failures
