"""Document segmentation into overlapping fixed-size windows."""

import re
from collections.abc import Iterator
from dataclasses import dataclass

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class Chunk:
    """A window of a document's normalized text.

    Attributes:
        text: Window content
        index: Zero-based position of the window within one extraction
        start: Offset of the window in the normalized text
    """

    text: str
    index: int
    start: int = 0


def collapse_text(text: str) -> str:
    """Strip null bytes and compress whitespace runs to single spaces."""
    return _WHITESPACE_RE.sub(" ", text.replace("\x00", "")).strip()


class ChunkSequence:
    """Lazy, restartable sequence of windows over one text.

    Iterating twice yields the same chunks; nothing is computed until iteration.
    Stops after ``max_chunks`` windows even if text remains.
    """

    def __init__(self, text: str, chunk_size: int, overlap: int, max_chunks: int):
        self._text = collapse_text(text or "")
        self.chunk_size = chunk_size
        self.overlap = overlap
        self.max_chunks = max_chunks

    @property
    def normalized_text(self) -> str:
        return self._text

    def __iter__(self) -> Iterator[Chunk]:
        text = self._text
        length = len(text)
        step = self.chunk_size - self.overlap
        start = 0
        index = 0

        while start < length and index < self.max_chunks:
            end = min(start + self.chunk_size, length)
            yield Chunk(text=text[start:end], index=index, start=start)
            index += 1
            if end >= length:
                break
            start += step

    def __bool__(self) -> bool:
        return bool(self._text) and self.max_chunks > 0


def segment(
    text: str,
    chunk_size: int = 1400,
    overlap: int = 200,
    max_chunks: int = 400,
) -> ChunkSequence:
    """
    Split extracted document text into overlapping windows.

    Windows are ``chunk_size`` characters long and advance by ``chunk_size - overlap``;
    the last one may be shorter. Whatever lies past ``max_chunks`` windows is dropped
    without error.

    Args:
        text: Raw extracted text
        chunk_size: Characters per window
        overlap: Characters shared by consecutive windows (must be < chunk_size)
        max_chunks: Maximum number of windows

    Returns:
        ChunkSequence; empty for empty or whitespace-only text
    """
    return ChunkSequence(text, chunk_size, overlap, max_chunks)
