from abc import ABC, abstractmethod
from pathlib import Path

from vectorqa.models import Document, LoadResult


class BaseDocumentLoader(ABC):
    """Abstract base class for document loaders."""

    @abstractmethod
    def load(self) -> LoadResult:
        """Load all documents from the configured directory."""
        pass

    @abstractmethod
    def load_file(self, file_path: Path | str) -> Document:
        """Load a single file."""
        pass
