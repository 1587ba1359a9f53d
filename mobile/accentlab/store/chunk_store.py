"""Ordered transcript chunks with generation-guarded writes."""

from __future__ import annotations

import threading
from typing import Iterable, Iterator, Tuple

from ..errors import StaleChunkIndex
from ..models import Chunk


class ChunkStore:
    """Holds the current transcript as an immutable tuple of chunks.

    Every write replaces the tuple and bumps ``generation``. Single-index writes
    must present the generation observed when the caller started working on
    that index; a mismatch means the sequence changed underneath them.
    """

    def __init__(self) -> None:
        self._chunks: Tuple[Chunk, ...] = ()
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def generation(self) -> int:
        return self._generation

    def snapshot(self) -> Tuple[Chunk, ...]:
        return self._chunks

    def replace_all(self, chunks: Iterable[Chunk]) -> int:
        incoming = tuple(chunks)
        for chunk in incoming:
            if not isinstance(chunk, Chunk):
                raise TypeError(f"expected Chunk, got {type(chunk).__name__}")
        with self._lock:
            self._chunks = incoming
            self._generation += 1
            return self._generation

    def replace_at(self, index: int, chunk: Chunk, *, expected_generation: int) -> int:
        if not isinstance(chunk, Chunk):
            raise TypeError(f"expected Chunk, got {type(chunk).__name__}")
        with self._lock:
            if expected_generation != self._generation:
                raise StaleChunkIndex(
                    f"Transcript changed while chunk {index} was being re-recorded"
                )
            if not 0 <= index < len(self._chunks):
                raise StaleChunkIndex(f"Chunk {index} no longer exists")
            updated = list(self._chunks)
            updated[index] = chunk
            self._chunks = tuple(updated)
            self._generation += 1
            return self._generation

    def clear(self) -> int:
        return self.replace_all(())

    def joined_text(self) -> str:
        return " ".join(chunk.text.strip() for chunk in self._chunks if chunk.text.strip())

    def is_valid_index(self, index: int) -> bool:
        return 0 <= index < len(self._chunks)

    def __getitem__(self, index: int) -> Chunk:
        return self._chunks[index]

    def __iter__(self) -> Iterator[Chunk]:
        return iter(self._chunks)

    def __len__(self) -> int:
        return len(self._chunks)


__all__ = ["ChunkStore"]
