from abc import ABC, abstractmethod
from typing import Iterable

from vectorqa.models import Chunk, Document


class BaseTextSplitter(ABC):
    """Abstract base class for text splitters."""

    @abstractmethod
    def split_document(self, document: Document) -> Iterable[Chunk]:
        """Split a document into chunks that reference their source."""
        pass

    @abstractmethod
    def split_text(self, text: str) -> Iterable[Chunk]:
        """Split raw text into chunks without a source path."""
        pass
