"""
Chunked Loading and Processing

Progressive loading of large datasets in fixed-size chunks. The loader is
stateless: callers own a ChunkCursor and get a new one back with every
chunk, so independent consumers can page through the same data.
"""

import asyncio
import math
from dataclasses import dataclass
from typing import Callable, Generic, Iterator, Optional, Sequence, TypeVar

from config import get_settings
from core.logging_config import data_logger as logger
from schemas.results import ChunkLoadResult

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class ChunkCursor:
    """Position of a consumer in a chunked pass."""

    chunk_index: int = 0

    def advance(self) -> "ChunkCursor":
        return ChunkCursor(chunk_index=self.chunk_index + 1)


class ChunkLoader(Generic[T]):
    """Serves consecutive slices of an in-memory dataset."""

    def __init__(self, data: Sequence[T], chunk_size: Optional[int] = None):
        if chunk_size is None:
            chunk_size = get_settings().access.chunk_size
        self.data = data
        self.chunk_size = max(1, chunk_size)

    @property
    def total_chunks(self) -> int:
        return math.ceil(len(self.data) / self.chunk_size)

    def reset(self) -> ChunkCursor:
        """Cursor at the first chunk."""
        return ChunkCursor()

    def load(self, cursor: ChunkCursor) -> tuple[Optional[ChunkLoadResult], ChunkCursor]:
        """
        Load the chunk at a cursor.

        Returns:
            The chunk (None once the data is exhausted) and the cursor for
            the next call
        """
        index = cursor.chunk_index
        if index < 0 or index >= self.total_chunks:
            return None, cursor

        start = index * self.chunk_size
        end = min(start + self.chunk_size, len(self.data))

        result = ChunkLoadResult(
            data=list(self.data[start:end]),
            has_more=index + 1 < self.total_chunks,
            total_count=len(self.data),
            chunk_index=index,
        )
        return result, cursor.advance()


def iter_chunks(data: Sequence[T], chunk_size: Optional[int] = None) -> Iterator[ChunkLoadResult]:
    """Every chunk of a dataset, in order."""
    loader = ChunkLoader(data, chunk_size)
    cursor = loader.reset()
    while True:
        chunk, cursor = loader.load(cursor)
        if chunk is None:
            return
        yield chunk


async def process_in_chunks(
    data: Sequence[T],
    processor: Callable[[T, int], R],
    chunk_size: Optional[int] = None,
    on_progress: Optional[Callable[[float], None]] = None,
) -> list[R]:
    """
    Map processor(item, index) over data in batches.

    Control returns to the event loop between batches and on_progress
    receives the completed fraction, ending at 1.0.
    """
    if chunk_size is None:
        chunk_size = get_settings().access.process_batch_size
    chunk_size = max(1, chunk_size)

    total_chunks = math.ceil(len(data) / chunk_size)
    logger.debug(f"Processing {len(data):,} items in {total_chunks} batches")

    results: list[R] = []
    for i in range(total_chunks):
        start = i * chunk_size
        end = min(start + chunk_size, len(data))

        for j in range(start, end):
            results.append(processor(data[j], j))

        if on_progress is not None:
            on_progress((i + 1) / total_chunks)

        await asyncio.sleep(0)

    return results
