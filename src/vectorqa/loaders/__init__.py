from pathlib import Path
from typing import Any

from .base import BaseDocumentLoader
from .directory import DEFAULT_EXTENSIONS, DirectoryLoader


def create_loader(
    provider: str,
    directory: Path | str,
    **kwargs: Any,
) -> BaseDocumentLoader:
    """Create a document loader based on provider.

    Args:
        provider: Provider name ("directory" or "auto")
        directory: Directory to load documents from
        **kwargs: Additional provider-specific parameters

    Returns:
        BaseDocumentLoader instance
    """
    if provider in ("directory", "auto"):
        return DirectoryLoader(directory, **kwargs)
    raise ValueError(f"Unknown loader provider: {provider}")


__all__ = [
    "BaseDocumentLoader",
    "DirectoryLoader",
    "DEFAULT_EXTENSIONS",
    "create_loader",
]
