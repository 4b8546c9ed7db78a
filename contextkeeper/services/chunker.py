"""Fixed-window text chunking with overlap.

Splits a context's content into :class:`~contextkeeper.models.context.ContextChunk`
windows of at most ``max_chunk_size`` characters.  Consecutive windows share
``overlap`` characters so that a phrase spanning a boundary is whole in at
least one chunk.

Positions are Python string offsets (code points), so a window never cuts a
multi-byte character in half.
"""

from __future__ import annotations

import uuid

import structlog

from contextkeeper.models.context import Context, ContextChunk
from contextkeeper.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)


class ContextChunker:
    """Splits context content into overlapping fixed-size windows.

    Starting at position 0, each window spans
    ``[pos, min(pos + max_chunk_size, len))``.  Chunking stops once a window
    reaches the end of the content; otherwise ``pos`` advances by
    ``max_chunk_size - overlap``.

    Parameters
    ----------
    max_chunk_size:
        Maximum window length in characters (default 1000).
    overlap:
        Characters shared by consecutive windows (default 200).  Must be
        smaller than *max_chunk_size* or the window would never advance.

    Raises
    ------
    ConfigurationError
        If the sizes cannot produce a terminating chunk sequence.
    """

    def __init__(self, max_chunk_size: int = 1000, overlap: int = 200) -> None:
        if max_chunk_size <= 0:
            raise ConfigurationError(f"max_chunk_size must be positive (got {max_chunk_size})")
        if overlap < 0:
            raise ConfigurationError(f"overlap must be non-negative (got {overlap})")
        if overlap >= max_chunk_size:
            raise ConfigurationError(
                f"overlap ({overlap}) must be smaller than max_chunk_size ({max_chunk_size})"
            )
        self._max_chunk_size = max_chunk_size
        self._overlap = overlap

    @property
    def max_chunk_size(self) -> int:
        return self._max_chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    def chunk(self, context: Context) -> list[ContextChunk]:
        """Split *context* into ordered, overlapping chunks.

        Empty content yields no chunks; content no longer than
        ``max_chunk_size`` yields exactly one.
        """
        content = context.content
        length = len(content)
        step = self._max_chunk_size - self._overlap

        chunks: list[ContextChunk] = []
        position = 0
        while position < length:
            end = min(position + self._max_chunk_size, length)
            chunks.append(
                ContextChunk(
                    context_id=context.id,
                    chunk_id=str(uuid.uuid4()),
                    content=content[position:end],
                    position=position,
                )
            )
            if end == length:
                break
            position += step

        logger.debug(
            "chunking_complete",
            context_id=context.id,
            num_chunks=len(chunks),
            content_length=length,
        )
        return chunks
