from .chunk import Chunk, Document, RetrievalResult, VectorRecord
from .results import DocumentFailure, IngestionReport, LoadResult, QueryResult

__all__ = [
    "Chunk",
    "Document",
    "DocumentFailure",
    "IngestionReport",
    "LoadResult",
    "QueryResult",
    "RetrievalResult",
    "VectorRecord",
]
