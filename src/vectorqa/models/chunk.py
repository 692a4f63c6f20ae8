"""Data models for vectorqa."""

import json
from typing import Any, Optional

from pydantic import BaseModel, Field


class Document(BaseModel):
    """A loaded source file.

    Attributes:
        source_path: Path of the file relative to the ingestion directory.
        content: Raw extracted text.
        metadata: Loader-supplied metadata (file name, type, page count).
    """

    source_path: str
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class Chunk(BaseModel):
    """A bounded-length slice of a document's content.

    Attributes:
        text: The chunk text content.
        source_path: Source path of the parent document.
        ordinal: Position of the chunk within its document.
        start: Offset of the chunk's first character in the document.
        overlap: Number of leading characters repeated from the previous chunk.
        line_from: First line (1-based) covered by the chunk.
        line_to: Last line (1-based) covered by the chunk.
    """

    text: str
    source_path: str = ""
    ordinal: int = 0
    start: int = 0
    overlap: int = 0
    line_from: int = 1
    line_to: int = 1

    @property
    def record_id(self) -> str:
        return f"{self.source_path}_{self.ordinal}"

    @property
    def loc(self) -> dict[str, Any]:
        return {"lines": {"from": self.line_from, "to": self.line_to}}


class VectorRecord(BaseModel):
    """The unit written to a vector index."""

    id: str
    values: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_chunk(
        cls,
        chunk: Chunk,
        values: list[float],
        document_metadata: Optional[dict[str, Any]] = None,
    ) -> "VectorRecord":
        metadata = {
            k: v
            for k, v in (document_metadata or {}).items()
            if isinstance(v, (str, int, float, bool))
        }
        metadata.update(
            {
                "text": chunk.text,
                "source": chunk.source_path,
                "chunk_index": chunk.ordinal,
                "loc": json.dumps(chunk.loc),
            }
        )
        return cls(id=chunk.record_id, values=values, metadata=metadata)


class RetrievalResult(BaseModel):
    """Represents a retrieved record with its similarity score.

    Attributes:
        id: The record identifier.
        text: The retrieved text content.
        source: The source path of the parent document.
        score: Cosine similarity to the query (higher is closer).
        metadata: Any additional metadata from the stored record.
    """

    id: str
    text: str
    source: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)
