from typing import Iterator, Sequence

from langchain_text_splitters import RecursiveCharacterTextSplitter

from vectorqa.models import Chunk, Document
from .base import BaseTextSplitter

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 0
DEFAULT_SEPARATORS = ("\n\n", "\n", ". ", " ", "")


class ChunkSequence:
    """Restartable view over the chunks of one text.

    Each iteration re-runs the split, so the sequence can be consumed
    any number of times.
    """

    def __init__(self, splitter: "RecursiveTextSplitter", text: str, source_path: str):
        self._splitter = splitter
        self._text = text
        self._source_path = source_path

    def __iter__(self) -> Iterator[Chunk]:
        return self._splitter._iter_chunks(self._text, self._source_path)


class RecursiveTextSplitter(BaseTextSplitter):
    """Character-based splitter that prefers the coarsest boundary that fits.

    Wraps langchain's ``RecursiveCharacterTextSplitter``: text is cut at
    paragraph breaks first, then line breaks, sentences, words and
    finally single characters. Separators stay attached to the end of the
    piece they terminate and whitespace is never stripped, so with no
    overlap the chunks concatenate back to the input exactly.

    Args:
        chunk_size: Maximum number of characters per chunk.
        chunk_overlap: Maximum number of characters carried over from the
            end of one chunk to the start of the next.
        separators: Boundaries to try, coarsest first. An empty string
            means "cut anywhere".
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
        separators: Sequence[str] = DEFAULT_SEPARATORS,
    ):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError(
                f"chunk_overlap must be in [0, chunk_size), got {chunk_overlap}"
            )
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.separators = tuple(separators)
        if "" not in self.separators:
            self.separators += ("",)

        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            separators=list(self.separators),
            keep_separator="end",
            strip_whitespace=False,
        )

    def split_document(self, document: Document) -> ChunkSequence:
        return ChunkSequence(self, document.content, document.source_path)

    def split_text(self, text: str) -> ChunkSequence:
        return ChunkSequence(self, text, "")

    def _iter_chunks(self, text: str, source_path: str) -> Iterator[Chunk]:
        line = 1
        line_offset = 0
        for ordinal, (start, overlap, body) in enumerate(
            _locate(text, self._splitter.split_text(text), self.chunk_overlap)
        ):
            line += text.count("\n", line_offset, start)
            line_offset = start
            yield Chunk(
                text=body,
                source_path=source_path,
                ordinal=ordinal,
                start=start,
                overlap=overlap,
                line_from=line,
                line_to=line + body.rstrip("\n").count("\n"),
            )


def _locate(
    text: str, pieces: list[str], chunk_overlap: int
) -> Iterator[tuple[int, int, str]]:
    """Yield (start, overlap, piece) for consecutive chunks of ``text``.

    Every chunk starts after the previous one and ends past the previous
    end, at most ``chunk_overlap`` characters before it.
    """
    previous_start = -1
    previous_end = 0
    for piece in pieces:
        start = text.find(piece, max(previous_start + 1, previous_end - chunk_overlap))
        while start != -1 and start + len(piece) <= previous_end:
            start = text.find(piece, start + 1)
        if start == -1:
            raise ValueError("Chunk text not found in source text")

        yield start, max(previous_end - start, 0), piece
        previous_start = start
        previous_end = start + len(piece)
