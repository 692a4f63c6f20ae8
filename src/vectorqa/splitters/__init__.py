from .base import BaseTextSplitter
from .recursive import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_SEPARATORS,
    ChunkSequence,
    RecursiveTextSplitter,
)

TextSplitter = RecursiveTextSplitter

__all__ = [
    "BaseTextSplitter",
    "ChunkSequence",
    "RecursiveTextSplitter",
    "TextSplitter",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_CHUNK_OVERLAP",
    "DEFAULT_SEPARATORS",
]
