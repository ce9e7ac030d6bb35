"""Text chunking for ingestion."""

from typing import Literal

from .base import BaseChunker


class FixedSizeChunker(BaseChunker):
    """Split text into fixed-size windows that overlap their neighbours.

    Consecutive chunks share exactly ``overlap`` units, and chunks are
    returned in document order. The unit is either characters or
    whitespace-separated words.
    """

    def __init__(
        self,
        chunk_size: int = 1000,
        overlap: int = 100,
        unit: Literal["character", "word"] = "character",
    ):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if overlap < 0:
            raise ValueError("Overlap must not be negative")
        if overlap >= chunk_size:
            raise ValueError("Overlap must be less than chunk_size")
        if unit not in ("character", "word"):
            raise ValueError(f"Unsupported chunk unit: {unit}")
        self.chunk_size = chunk_size
        self.overlap = overlap
        self.unit = unit

    def split(self, text: str) -> list[str]:
        if not text or not text.strip():
            return []
        if self.unit == "word":
            words = text.split()
            return [" ".join(window) for window in self._windows(words)]
        return list(self._windows(text))

    def _windows(self, units):
        start = 0
        while start < len(units):
            end = min(start + self.chunk_size, len(units))
            yield units[start:end]
            start = end - self.overlap if end < len(units) else end
