import logging
from pathlib import Path
from typing import Iterable

from llama_index.core import SimpleDirectoryReader

from vectorqa.errors import DocumentLoadError
from vectorqa.models import Document, DocumentFailure, LoadResult
from .base import BaseDocumentLoader

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".txt", ".md", ".pdf")
PAGE_SEPARATOR = "\n\n"


class DirectoryLoader(BaseDocumentLoader):
    """Loads plain text, markdown and PDF files using llama-index.

    Every file becomes exactly one Document; multi-page PDFs are joined
    page by page. A file that fails to load is reported in the result's
    failures and does not stop the rest of the directory.
    """

    def __init__(
        self,
        directory: Path | str,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        recursive: bool = True,
    ):
        self.directory = Path(directory)
        self.extensions = {ext.lower() for ext in extensions}
        self.recursive = recursive

    def discover_files(self) -> list[Path]:
        """Discover all supported files in the directory, sorted by path."""
        pattern = "**/*" if self.recursive else "*"
        return sorted(
            path
            for path in self.directory.glob(pattern)
            if path.is_file() and path.suffix.lower() in self.extensions
        )

    def load(self) -> LoadResult:
        if not self.directory.is_dir():
            raise DocumentLoadError(f"Directory not found: {self.directory}")

        result = LoadResult()
        for file_path in self.discover_files():
            try:
                result.documents.append(self.load_file(file_path))
            except DocumentLoadError as e:
                logger.warning(f"Failed to load {file_path}: {e}")
                result.failures.append(
                    DocumentFailure(
                        source_path=e.source_path or str(file_path),
                        error_type=e.error_type,
                        message=str(e),
                    )
                )

        logger.info(
            f"Loaded {len(result.documents)} documents from {self.directory} "
            f"({len(result.failures)} failed)"
        )
        return result

    def _source_path(self, file_path: Path) -> str:
        try:
            return file_path.relative_to(self.directory).as_posix()
        except ValueError:
            return file_path.as_posix()

    def load_file(self, file_path: Path | str) -> Document:
        file_path = Path(file_path)
        source_path = self._source_path(file_path)

        if file_path.suffix.lower() not in self.extensions:
            raise DocumentLoadError(
                f"No loader available for file type: {file_path.suffix}",
                source_path=source_path,
            )

        try:
            reader = SimpleDirectoryReader(
                input_files=[str(file_path)], raise_on_error=True
            )
            parts = reader.load_data()
        except Exception as e:
            raise DocumentLoadError(
                f"Could not read {file_path}: {e}", source_path=source_path
            ) from e

        metadata = {
            "file_name": file_path.name,
            "file_type": file_path.suffix.lower().lstrip("."),
        }
        if metadata["file_type"] == "pdf":
            metadata["pages"] = len(parts)

        return Document(
            source_path=source_path,
            content=PAGE_SEPARATOR.join(part.text for part in parts),
            metadata=metadata,
        )
